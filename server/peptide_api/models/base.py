"""Shared pydantic base for API models."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    components = string.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


def naive_local(value: datetime) -> datetime:
    """Drop tzinfo after converting an aware datetime to server local time."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class ApiModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )
