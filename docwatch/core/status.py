"""Expiry classification for document termination dates."""
from __future__ import annotations

from datetime import date
from typing import Any

from docwatch.core.dates import parse_iso_date, whole_days_between
from docwatch.domain import ClassificationResult, ExpiryStatus

WARNING_WINDOW_DAYS = 90

_INVALID = ClassificationResult(
    status=ExpiryStatus.INVALID,
    label="Invalid date",
    days_remaining=None,
    tone="warning",
)


def classify(termination_date: Any, today: date) -> ClassificationResult:
    """Bucket a termination date relative to ``today``.

    Returns ``expired`` when the date has passed, ``warning`` when it falls
    within the next 90 days (today included) and ``on_time`` otherwise.
    Missing or malformed dates yield ``invalid``; this never raises.
    """

    parsed = parse_iso_date(termination_date)
    if parsed.value is None:
        return _INVALID

    days_remaining = whole_days_between(today, parsed.value)

    if days_remaining < 0:
        return ClassificationResult(ExpiryStatus.EXPIRED, "Expired", days_remaining, "danger")
    if days_remaining <= WARNING_WINDOW_DAYS:
        return ClassificationResult(
            ExpiryStatus.WARNING,
            f"Due within {WARNING_WINDOW_DAYS} days",
            days_remaining,
            "warning",
        )
    return ClassificationResult(ExpiryStatus.ON_TIME, "On time", days_remaining, "success")


def describe_days_remaining(days_remaining: int) -> str:
    if days_remaining < 0:
        return f"{abs(days_remaining)} day(s) overdue"
    if days_remaining == 0:
        return "Due today"
    return f"Due in {days_remaining} day(s)"
