"""
Injection site rotation analytics.

Groups injections by (location, side), measures how heavily each site is
used and how many times in a row it was picked most recently.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..models.analytics import InjectionSiteAnalytics
from ..models.injection import Injection
from ..models.progress import InjectionSiteUsage

logger = logging.getLogger(__name__)

OVERUSE_PERCENTAGE = 25
ROTATION_WINDOW_DAYS = 7

ROTATION_SITES = [
    "abdomen left", "abdomen right",
    "thigh left", "thigh right",
    "arm left", "arm right",
]


@dataclass
class _SiteTally:
    location: str
    side: str
    count: int = 0
    last_used: Optional[datetime] = None


def site_key(injection: Injection) -> tuple[str, str]:
    site = injection.injection_site
    return site.location, site.side or "center"


def _tally(injections: list[Injection]) -> dict[tuple[str, str], _SiteTally]:
    tallies: dict[tuple[str, str], _SiteTally] = {}
    for inj in injections:
        if not inj.injection_site or not inj.injection_site.location:
            continue
        location, side = site_key(inj)
        tally = tallies.setdefault((location, side), _SiteTally(location=location, side=side))
        tally.count += 1
        if tally.last_used is None or inj.timestamp > tally.last_used:
            tally.last_used = inj.timestamp
    return tallies


def site_usage(injections: list[Injection], now: datetime) -> list[InjectionSiteUsage]:
    """
    Recent usage per site, including consecutive-use runs.

    ``consecutive_uses`` is the length of the latest uninterrupted run of
    injections at that site. The site of the newest injection is flagged
    ``is_current``.

    Returns:
        Usage records, current site first, then by last use descending
    """
    ordered = sorted(injections, key=lambda inj: inj.timestamp, reverse=True)
    tallies = _tally(ordered)

    runs: dict[tuple[str, str], int] = {}
    closed: set[tuple[str, str]] = set()
    previous = None
    for inj in ordered:
        key = site_key(inj)
        if key != previous and previous is not None:
            closed.add(previous)
        if key not in closed:
            runs[key] = runs.get(key, 0) + 1
        previous = key

    current = site_key(ordered[0]) if ordered else None

    usage = [
        InjectionSiteUsage(
            location=tally.location,
            side=tally.side,
            last_used=tally.last_used,
            consecutive_uses=runs.get(key, 0),
            total_uses=tally.count,
            days_since_last_use=(now - tally.last_used).days,
            is_current=key == current,
        )
        for key, tally in tallies.items()
    ]
    usage.sort(key=lambda u: (not u.is_current, -u.last_used.timestamp()))
    return usage


def rotation_suggestions(site_label: str, limit: int = 3) -> list[str]:
    """Other rotation sites to try instead of ``site_label``."""
    return [site for site in ROTATION_SITES if site != site_label][:limit]


def site_analytics(injections: list[Injection], now: datetime) -> list[InjectionSiteAnalytics]:
    """
    Usage share, recency and overuse flags per site.

    Percentages are relative to injections that carry a site, so they sum
    to 100 across the returned sites.
    """
    tallies = _tally(injections)
    total = sum(tally.count for tally in tallies.values())
    if total == 0:
        return []

    results = []
    for tally in tallies.values():
        days_since = (now - tally.last_used).days
        percentage = tally.count / total * 100
        results.append(
            InjectionSiteAnalytics(
                location=tally.location,
                side=tally.side,
                usage_count=tally.count,
                usage_percentage=percentage,
                last_used=tally.last_used,
                days_since_last_use=days_since,
                recommended_rotation=days_since < ROTATION_WINDOW_DAYS and tally.count > 1,
                overused=percentage > OVERUSE_PERCENTAGE,
            )
        )

    results.sort(key=lambda site: site.usage_count, reverse=True)
    logger.debug(f"[ANALYTICS] {len(results)} injection sites across {total} injections")
    return results
