"""User data models."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from .base import ApiModel

SubscriptionTier = Literal["free", "premium", "expert"]


class UnitPreferences(ApiModel):
    weight: Literal["kg", "lbs"] = "kg"
    dose: Literal["mg", "mcg"] = "mg"


class NotificationToggles(ApiModel):
    injection_reminders: bool = True
    weekly_reports: bool = True


class UserPreferences(ApiModel):
    """Display and reminder preferences stored on the user record."""

    timezone: Optional[str] = None
    units: Optional[UnitPreferences] = None
    notifications: Optional[NotificationToggles] = None
    theme: Optional[Literal["dark", "light"]] = None


class User(ApiModel):
    """Registered user."""

    id: str
    external_id: str
    email: str
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    subscription_tier: SubscriptionTier = "free"
    created_at: datetime
    updated_at: datetime


class UserCreate(ApiModel):
    email: str = Field(min_length=3, max_length=320)
