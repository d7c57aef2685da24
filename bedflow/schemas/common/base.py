"""
Base schema classes shared by every engine result.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

__all__ = [
    "BaseSchema",
    "DateRange",
]


class BaseSchema(BaseModel):
    """
    Base schema with common Pydantic configuration.

    Engine results are built either from ORM rows (``from_attributes``) or
    from plain dicts assembled by the services.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        # Keep enums as Enum instances; they subclass str so callers can
        # compare against raw column values.
        use_enum_values=False,
        arbitrary_types_allowed=True,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class DateRange(BaseSchema):
    """Closed reporting window used by the metrics operations."""

    start: datetime = Field(..., description="Window start (inclusive)")
    end: datetime = Field(..., description="Window end (inclusive)")

    @model_validator(mode="after")
    def validate_order(self) -> "DateRange":
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self
