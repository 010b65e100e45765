"""Dosing protocol models."""
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator

from .base import ApiModel

ScheduleType = Literal["daily", "weekly", "every_other_day", "custom"]

WEEKDAY_NAMES = (
    "sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"
)


class ScheduleConfig(ApiModel):
    """Extra schedule settings; ``days`` drives custom schedules."""

    days: Optional[list[str]] = None

    @field_validator("days")
    @classmethod
    def normalize_days(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is None:
            return value
        days = [day.strip().lower() for day in value]
        unknown = [day for day in days if day not in WEEKDAY_NAMES]
        if unknown:
            raise ValueError(f"Unknown weekday names: {', '.join(unknown)}")
        return days


class Protocol(ApiModel):
    """User dosing protocol."""

    id: str
    user_id: str
    peptide_id: str
    name: str
    weekly_target: Optional[float] = None
    daily_target: Optional[float] = None
    schedule_type: ScheduleType
    schedule_config: ScheduleConfig = Field(default_factory=ScheduleConfig)
    start_date: date
    end_date: Optional[date] = None
    is_template: bool = False
    template_name: Optional[str] = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    def is_active_on(self, day: date) -> bool:
        """True when the protocol runs on the given day."""
        if not self.is_active or self.is_template:
            return False
        if self.start_date > day:
            return False
        return self.end_date is None or self.end_date >= day


class ProtocolTemplate(ApiModel):
    id: str
    peptide_id: Optional[str] = None
    name: str
    weekly_target: Optional[float] = None
    daily_target: Optional[float] = None
    schedule_type: ScheduleType
    schedule_config: ScheduleConfig = Field(default_factory=ScheduleConfig)
    template_name: Optional[str] = None
    peptide_name: Optional[str] = None
    peptide_category: Optional[str] = None


def _check_schedule(schedule_type, schedule_config, start_date, end_date):
    if schedule_type == "custom" and not (schedule_config and schedule_config.days):
        raise ValueError("Custom schedules require at least one day")
    if start_date and end_date and end_date < start_date:
        raise ValueError("end_date must not be before start_date")


class ProtocolCreate(ApiModel):
    peptide_id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=100)
    weekly_target: Optional[float] = Field(default=None, gt=0)
    daily_target: Optional[float] = Field(default=None, gt=0)
    schedule_type: ScheduleType
    schedule_config: ScheduleConfig = Field(default_factory=ScheduleConfig)
    start_date: date
    end_date: Optional[date] = None
    is_template: bool = False
    template_name: Optional[str] = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_schedule(self):
        _check_schedule(self.schedule_type, self.schedule_config, self.start_date, self.end_date)
        return self


class ProtocolUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    weekly_target: Optional[float] = Field(default=None, gt=0)
    daily_target: Optional[float] = Field(default=None, gt=0)
    schedule_type: Optional[ScheduleType] = None
    schedule_config: Optional[ScheduleConfig] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None
    template_name: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self):
        # The schedule is checked against the merged protocol when it is stored
        _check_schedule(None, None, self.start_date, self.end_date)
        return self
