"""Dose variance analytics."""

import logging
import math
import statistics
from typing import Optional

from ..models.analytics import DoseVarianceAnalytics
from ..models.injection import Injection
from ..models.protocol import Protocol

logger = logging.getLogger(__name__)

STABLE_SLOPE = 0.1


def dose_trend(doses: list[float]) -> str:
    """
    Classify the direction of a dose series with a least-squares slope.

    The x axis is the sample index; slopes under 0.1 in magnitude are
    reported as stable.
    """
    n = len(doses)
    if n < 2:
        return "stable"

    xs = range(n)
    sum_x = sum(xs)
    sum_y = sum(doses)
    sum_xy = sum(x * y for x, y in zip(xs, doses))
    sum_xx = sum(x * x for x in xs)

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)

    if abs(slope) < STABLE_SLOPE:
        return "stable"
    return "increasing" if slope > 0 else "decreasing"


def dose_variance(protocol: Protocol, injections: list[Injection]) -> Optional[DoseVarianceAnalytics]:
    """
    Spread of logged doses around their mean and the protocol target.

    Args:
        protocol: Protocol supplying the target (daily, else weekly)
        injections: The protocol peptide's injections in range

    Returns:
        DoseVarianceAnalytics, or None when no positive dose was logged
    """
    ordered = sorted(injections, key=lambda inj: inj.timestamp)
    doses = [inj.dose for inj in ordered if inj.dose > 0]
    if not doses:
        return None

    target = protocol.daily_target or protocol.weekly_target or 0.0
    average = statistics.mean(doses)
    variance = statistics.pvariance(doses, mu=average)
    std_dev = math.sqrt(variance)

    accuracy = 0.0
    if target > 0:
        accuracy = max(0.0, 100 - abs(average - target) / target * 100)

    high_variance_dates = [
        inj.timestamp for inj in ordered if abs(inj.dose - average) > std_dev
    ]

    logger.debug(
        f"[ANALYTICS] Dose variance {protocol.name}: mean={average:.2f}, "
        f"std={std_dev:.2f}, target={target}"
    )

    return DoseVarianceAnalytics(
        protocol_id=protocol.id,
        protocol_name=protocol.name,
        target_dose=target,
        average_dose=average,
        variance=variance,
        standard_deviation=std_dev,
        coefficient_of_variation=std_dev / average * 100 if average else 0.0,
        accuracy_percentage=accuracy,
        high_variance_dates=high_variance_dates,
        trend=dose_trend([inj.dose for inj in ordered]),
    )
