"""
Filtering and ordering of check-in lists.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Iterable, Optional, Union

from checkin_shared.types import Checkin, as_utc

BoundInput = Union[str, date, datetime, None]

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def parse_bound(value: BoundInput, *, end_of_day: bool = False) -> Optional[datetime]:
    """
    Parse a date-range bound.

    Accepts an ISO datetime or an ISO date (``YYYY-MM-DD``). A bare date maps
    to the start of that day, or its last instant when ``end_of_day`` is set,
    so ``to=2024-05-01`` still covers the whole of May 1st. Naive values are
    read as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime.combine(
            value, time.max if end_of_day else time.min, tzinfo=timezone.utc
        )
    text = str(value).strip()
    if len(text) == 10:
        return parse_bound(date.fromisoformat(text), end_of_day=end_of_day)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


@dataclass(frozen=True)
class CheckinFilter:
    """Name substring plus inclusive creation-time bounds."""

    name: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    @classmethod
    def from_params(
        cls,
        name: Optional[str] = None,
        date_from: BoundInput = None,
        date_to: BoundInput = None,
    ) -> "CheckinFilter":
        """Raises ValueError on unparseable bounds."""
        return cls(
            name=(name or "").strip() or None,
            date_from=parse_bound(date_from),
            date_to=parse_bound(date_to, end_of_day=True),
        )

    @property
    def is_empty(self) -> bool:
        return self.name is None and self.date_from is None and self.date_to is None

    def matches(self, checkin: Checkin) -> bool:
        if self.name and self.name.casefold() not in checkin.full_name.casefold():
            return False
        if self.date_from is None and self.date_to is None:
            return True
        if checkin.created_at is None:
            return False
        if self.date_from is not None and checkin.created_at < self.date_from:
            return False
        if self.date_to is not None and checkin.created_at > self.date_to:
            return False
        return True

    def apply(self, checkins: Iterable[Checkin]) -> list[Checkin]:
        """Matching check-ins, newest first. Ties keep their incoming order."""
        matched = [c for c in checkins if self.matches(c)]
        return sorted(matched, key=lambda c: c.created_at or _OLDEST, reverse=True)
