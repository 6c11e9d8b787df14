"""Base model and shared validators for request schemas."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..utils import parse_flexible_date


class CamelModel(BaseModel):
    """Accepts camelCase keys from the console as well as snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def coerce_date(value: Any) -> date | None:
    """Parse a request date, rejecting strings in an unknown format."""
    if value is None or value == "":
        return None
    if not isinstance(value, (str, date)):
        raise ValueError(f"Expected a date string, got {type(value).__name__}")
    parsed = parse_flexible_date(value)
    if parsed is None:
        raise ValueError(f"Invalid date: {value!r}")
    return parsed
