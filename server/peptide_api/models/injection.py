"""Injection log models."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field, field_validator

from .base import ApiModel, naive_local
from .peptide import DoseUnit, PeptideCategory

InjectionLocation = Literal["abdomen", "thigh", "arm", "glute", "shoulder", "other"]
InjectionSide = Literal["left", "right", "center"]


class InjectionSite(ApiModel):
    """Where on the body a dose was administered."""

    location: InjectionLocation
    side: InjectionSide = "center"
    sub_location: Optional[str] = None
    notes: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.location} {self.side}"


class Injection(ApiModel):
    """Logged injection."""

    id: str
    user_id: str
    peptide_id: str
    dose: float
    dose_unit: DoseUnit
    injection_site: InjectionSite
    timestamp: datetime
    notes: Optional[str] = None
    protocol_id: Optional[str] = None
    peptide_name: Optional[str] = None
    peptide_category: Optional[PeptideCategory] = None
    created_at: datetime
    updated_at: datetime


class InjectionCreate(ApiModel):
    peptide_id: str = Field(min_length=1)
    dose: float = Field(gt=0)
    dose_unit: DoseUnit
    injection_site: InjectionSite
    timestamp: datetime
    notes: Optional[str] = None
    protocol_id: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def local_timestamp(cls, value: datetime) -> datetime:
        return naive_local(value)


class InjectionUpdate(ApiModel):
    peptide_id: Optional[str] = Field(default=None, min_length=1)
    dose: Optional[float] = Field(default=None, gt=0)
    dose_unit: Optional[DoseUnit] = None
    injection_site: Optional[InjectionSite] = None
    timestamp: Optional[datetime] = None
    notes: Optional[str] = None
    protocol_id: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def local_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return naive_local(value) if value else value
