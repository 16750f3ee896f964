"""Calendar date helpers shared by the classifier and the alert throttler."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any


class DateError(str, Enum):
    MISSING = "missing"
    MALFORMED = "malformed"


@dataclass(slots=True, frozen=True)
class DateParseResult:
    """Outcome of parsing a stored date.

    Exactly one of ``value`` and ``error`` is set.
    """

    value: date | None = None
    error: DateError | None = None

    @property
    def ok(self) -> bool:
        return self.value is not None


def parse_iso_date(value: Any) -> DateParseResult:
    """Parse ``YYYY-MM-DD`` into a :class:`date`.

    ``date`` and ``datetime`` instances are accepted as-is (a datetime is
    truncated to its calendar day). Anything else that is not three
    dash-separated integers forming a real calendar date is malformed.
    """

    if value is None:
        return DateParseResult(error=DateError.MISSING)
    if isinstance(value, datetime):
        return DateParseResult(value=value.date())
    if isinstance(value, date):
        return DateParseResult(value=value)

    raw = str(value).strip()
    if not raw:
        return DateParseResult(error=DateError.MISSING)

    parts = raw.split("-")
    if len(parts) != 3:
        return DateParseResult(error=DateError.MALFORMED)
    try:
        year, month, day = (int(part) for part in parts)
        return DateParseResult(value=date(year, month, day))
    except (ValueError, OverflowError):
        return DateParseResult(error=DateError.MALFORMED)


def whole_days_between(start: date | datetime, end: date | datetime) -> int:
    """Return ``end - start`` in whole days, ignoring time of day."""

    if isinstance(start, datetime):
        start = start.date()
    if isinstance(end, datetime):
        end = end.date()
    # symmetric rounding; calendar-date spans are already whole days
    return round((end - start).total_seconds() / 86400)


def format_date_br(value: Any) -> str:
    """Render a stored date as ``dd/mm/yyyy`` or ``-`` when unusable."""

    parsed = parse_iso_date(value)
    if parsed.value is None:
        return "-"
    return parsed.value.strftime("%d/%m/%Y")
