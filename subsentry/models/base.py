"""
Shared model plumbing.

Stored JSON uses camelCase field names (userId, billingCycle, renewalDate...)
while Python code uses snake_case. Every persisted model derives from
CamelModel so both spellings are accepted on input and camelCase is
written on output.
"""

from datetime import date, datetime, timezone
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def _truncate_to_day(value: Any) -> Any:
    """
    Renewal dates are compared by calendar day only.

    Accepts "2024-01-05", "2024-01-05T10:30:00.000Z" or a datetime and
    drops any time-of-day part. Blank strings mean "no date".
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        if "T" in value:
            return value.split("T", 1)[0]
    return value


DayDate = Annotated[Optional[date], BeforeValidator(_truncate_to_day)]


def as_day(value: Optional[date] = None) -> date:
    """Calendar day for `value` (a date or datetime); today if None."""
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_storage_dict(self) -> dict:
        """JSON-safe dict with the camelCase field names used in storage."""
        return self.model_dump(mode="json", by_alias=True)
