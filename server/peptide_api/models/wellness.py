"""Wellness metric models."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field, field_validator

from .base import ApiModel, naive_local

WellnessMetricType = Literal[
    "weight", "body_fat", "muscle_mass", "energy_level", "sleep_quality", "mood", "other"
]


class WellnessMetric(ApiModel):
    """Self-reported wellness measurement."""

    id: str
    user_id: str
    metric_type: WellnessMetricType
    value: float
    unit: str
    timestamp: datetime
    notes: Optional[str] = None
    injection_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class WellnessMetricCreate(ApiModel):
    metric_type: WellnessMetricType
    value: float
    unit: str = Field(min_length=1, max_length=20)
    timestamp: datetime
    notes: Optional[str] = None
    injection_id: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def local_timestamp(cls, value: datetime) -> datetime:
        return naive_local(value)
