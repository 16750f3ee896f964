"""Expiry alert selection with per-document display throttling."""
from __future__ import annotations

import logging
import threading
from datetime import date
from typing import Iterable

from docwatch.core.dates import parse_iso_date, whole_days_between
from docwatch.core.status import classify, describe_days_remaining
from docwatch.domain import AlertEntry, AlertReport, Company, DocumentKind, ExpiryStatus
from docwatch.infrastructure.storage import KeyValueStore, StoreError

LOGGER = logging.getLogger(__name__)

ALERTS_STORAGE_KEY = "scdo_alerts"
COOLDOWN_DAYS = 3


def alert_key(company_id: str, kind: DocumentKind | str) -> str:
    """Throttle slot for one document of one company, e.g. ``comp_1_pcmso``."""

    value = kind.value if isinstance(kind, DocumentKind) else str(kind)
    return f"{company_id}_{value.lower()}"


class AlertThrottler:
    """Decides whether an alert may be shown again.

    The record keeps only the last day each alert was shown; an alert becomes
    eligible again once ``COOLDOWN_DAYS`` whole days have passed. This is a
    one-sample window approximating "about twice a week", not a rate counter.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._lock = threading.Lock()

    def _load(self) -> dict[str, str]:
        result = self._store.get(ALERTS_STORAGE_KEY)
        if result.error is StoreError.EMPTY:
            return {}
        if result.error is StoreError.CORRUPT or not isinstance(result.value, dict):
            LOGGER.warning("Alert throttle record is unreadable; treating every alert as unseen")
            return {}
        return dict(result.value)

    def should_show(self, key: str, today: date) -> bool:
        last_shown = self._load().get(key)
        if last_shown is None:
            return True
        parsed = parse_iso_date(last_shown)
        if parsed.value is None:
            LOGGER.warning("Ignoring malformed last-shown date %r for %s", last_shown, key)
            return True
        return whole_days_between(parsed.value, today) >= COOLDOWN_DAYS

    def record_shown(self, key: str, today: date) -> None:
        record = self._load()
        record[key] = today.isoformat()
        self._store.set(ALERTS_STORAGE_KEY, record)

    def claim(self, key: str, today: date) -> bool:
        """Check and record in one step; returns whether the caller may show the alert."""

        with self._lock:
            if not self.should_show(key, today):
                return False
            self.record_shown(key, today)
            return True


class AlertAggregator:
    """Builds the alert list and expiry counters for a set of companies."""

    def __init__(self, throttler: AlertThrottler) -> None:
        self._throttler = throttler

    def aggregate(self, companies: Iterable[Company], today: date) -> AlertReport:
        report = AlertReport()

        for company in companies:
            if not company.termination_date:
                continue
            for kind in company.present_kinds():
                result = classify(company.termination_date, today)
                if result.status is ExpiryStatus.WARNING:
                    report.counts.warning += 1
                elif result.status is ExpiryStatus.EXPIRED:
                    report.counts.expired += 1
                else:
                    continue

                key = alert_key(company.company_id, kind)
                if not self._throttler.should_show(key, today):
                    continue

                report.alerts.append(
                    AlertEntry(
                        key=key,
                        company_id=company.company_id,
                        company_name=company.name,
                        document_kind=kind.value.upper(),
                        status=result.status,
                        label=result.label,
                        days_remaining=result.days_remaining,  # type: ignore[arg-type]
                        message=describe_days_remaining(result.days_remaining),  # type: ignore[arg-type]
                    )
                )

        return report
