"""Notification preference models."""
from typing import Literal

from pydantic import Field

from .base import ApiModel

DeliveryMethod = Literal["in_app", "email", "push"]


class DoseLimitPreferences(ApiModel):
    enabled: bool = True
    threshold: float = Field(default=90, ge=0, le=100)
    delivery_methods: list[DeliveryMethod] = Field(default_factory=lambda: ["in_app"])


class MissedDosePreferences(ApiModel):
    enabled: bool = True
    grace_period_hours: float = Field(default=6, ge=0)
    delivery_methods: list[DeliveryMethod] = Field(default_factory=lambda: ["in_app"])


class SiteRotationPreferences(ApiModel):
    enabled: bool = True
    max_consecutive_uses: int = Field(default=3, ge=1)
    delivery_methods: list[DeliveryMethod] = Field(default_factory=lambda: ["in_app"])


class MilestonePreferences(ApiModel):
    enabled: bool = True
    milestones: list[int] = Field(default_factory=lambda: [25, 50, 75, 100])
    delivery_methods: list[DeliveryMethod] = Field(default_factory=lambda: ["in_app"])


class QuietHours(ApiModel):
    enabled: bool = False
    start_time: str = Field(default="22:00", pattern=r"^\d{2}:\d{2}$")
    end_time: str = Field(default="08:00", pattern=r"^\d{2}:\d{2}$")


class NotificationPreferences(ApiModel):
    """Which alert evaluators run and with which thresholds."""

    dose_limit: DoseLimitPreferences = Field(default_factory=DoseLimitPreferences)
    missed_dose: MissedDosePreferences = Field(default_factory=MissedDosePreferences)
    site_rotation: SiteRotationPreferences = Field(default_factory=SiteRotationPreferences)
    protocol_milestones: MilestonePreferences = Field(default_factory=MilestonePreferences)
    quiet_hours: QuietHours = Field(default_factory=QuietHours)
    email_notifications: bool = False
    push_notifications: bool = False


class NotificationPreferencesUpdate(ApiModel):
    """Body of PUT /api/user/notification-preferences."""

    preferences: NotificationPreferences


class NotificationPreferencesResponse(ApiModel):
    preferences: NotificationPreferences
