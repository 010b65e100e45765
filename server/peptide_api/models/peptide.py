"""Peptide data models."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field, model_validator

from .base import ApiModel

PeptideCategory = Literal[
    "weight_loss", "muscle_building", "recovery", "longevity", "cognitive", "other"
]
DoseUnit = Literal["mg", "mcg", "iu", "ml", "units"]
DoseFrequency = Literal[
    "daily", "twice_daily", "weekly", "twice_weekly", "monthly", "as_needed"
]


class DoseRange(ApiModel):
    """Typical dose range for a peptide."""

    min: float = Field(gt=0)
    max: float = Field(gt=0)
    unit: DoseUnit
    frequency: DoseFrequency

    @model_validator(mode="after")
    def check_bounds(self):
        if self.max < self.min:
            raise ValueError("Maximum dose must be greater than or equal to minimum dose")
        return self


class Peptide(ApiModel):
    """Peptide owned by a user, or a global entry when user_id is None."""

    id: str
    user_id: Optional[str] = None
    name: str
    is_custom: bool
    category: PeptideCategory
    typical_dose_range: DoseRange
    safety_notes: list[str] = Field(default_factory=list)
    content_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PeptideTemplate(ApiModel):
    """Read-only catalogue entry."""

    id: str
    name: str
    category: PeptideCategory
    typical_dose_range: DoseRange
    safety_notes: list[str] = Field(default_factory=list)
    content_id: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class PeptideCreate(ApiModel):
    name: str = Field(min_length=1, max_length=100)
    category: PeptideCategory
    typical_dose_range: DoseRange
    safety_notes: list[str] = Field(default_factory=list)
    content_id: Optional[str] = None
    is_custom: bool = True

    @model_validator(mode="after")
    def strip_text(self):
        self.name = self.name.strip()
        if not self.name:
            raise ValueError("Peptide name is required")
        self.safety_notes = [note.strip() for note in self.safety_notes]
        return self


class PeptideUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    category: Optional[PeptideCategory] = None
    typical_dose_range: Optional[DoseRange] = None
    safety_notes: Optional[list[str]] = None
    content_id: Optional[str] = None
