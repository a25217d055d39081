"""Inclusive date ranges and the overlap rule used for bookings.

A rental day is indivisible: a range that ends on the day another begins
shares that day with it, so the two overlap.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, model_validator

from .exceptions import InvalidInterval


class DateInterval(BaseModel):
    """Immutable inclusive range of calendar days."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    start: date
    end: date

    @model_validator(mode="after")
    def check_order(self) -> DateInterval:
        """Reject ranges whose end precedes their start."""
        if self.end < self.start:
            raise InvalidInterval(self.start, self.end)
        return self

    @classmethod
    def between(cls, start: date | str, end: date | str) -> DateInterval:
        """Build an interval from dates or ISO date strings."""
        if isinstance(start, str):
            start = date.fromisoformat(start[:10])
        if isinstance(end, str):
            end = date.fromisoformat(end[:10])
        if end < start:
            raise InvalidInterval(start, end)
        return cls(start=start, end=end)

    def overlaps(self, other: DateInterval) -> bool:
        return overlaps(self, other)

    @property
    def days(self) -> int:
        return duration_days(self)

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


def overlaps(a: DateInterval, b: DateInterval) -> bool:
    """Return True when the two ranges share at least one day."""
    return not (a.end < b.start or a.start > b.end)


def duration_days(interval: DateInterval) -> int:
    """Number of rental days, counting both endpoints."""
    if interval.end < interval.start:
        raise InvalidInterval(interval.start, interval.end)
    return (interval.end - interval.start).days + 1
