"""Application service layer for company registration and tracking views."""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, BinaryIO

from docwatch.application.alerts import AlertAggregator, AlertThrottler
from docwatch.application.views import build_control_panel, build_history_tree, build_status_rows
from docwatch.core.dates import format_date_br
from docwatch.core.files import (
    ensure_data_root,
    remove_company_files,
    resolve_document_file,
    save_document_file,
)
from docwatch.core.schema import CompanyPayload, StatusReportRow
from docwatch.core.status import classify
from docwatch.core.validation import ValidationError, validate_company, validate_documents
from docwatch.domain import DOCUMENT_KINDS, Company, DocumentSlot
from docwatch.infrastructure import (
    CompanyRepository,
    JsonFileKeyValueStore,
    KeyValueCompanyRepository,
    KeyValueStore,
)
from docwatch.infrastructure.companies import generate_id

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class DocumentUpload:
    """An uploaded file waiting to be stored in a document slot."""

    filename: str
    content_type: str | None
    stream: BinaryIO


class CompanyService:
    """Coordinates company registration, alerting and reporting use cases."""

    def __init__(self, repository: CompanyRepository, throttler: AlertThrottler) -> None:
        self._repository = repository
        self._throttler = throttler
        self._aggregator = AlertAggregator(throttler)

    @classmethod
    def from_store(cls, store: KeyValueStore) -> "CompanyService":
        return cls(KeyValueCompanyRepository(store), AlertThrottler(store))

    # ------------------------------------------------------------------
    # registration
    # ------------------------------------------------------------------
    def register_company(
        self,
        payload: CompanyPayload,
        uploads: dict[str, DocumentUpload],
        *,
        today: date,
        company_id: str | None = None,
    ) -> Company:
        """Create a company or update an existing one with its documents.

        New registrations must attach all three PDFs. Updates keep the stored
        slot of every document kind that is not uploaded again. Every slot is
        filed under the year of the start date.
        """

        existing: Company | None = None
        if company_id is not None:
            existing = self._repository.get_company(company_id)
            if existing is None:
                raise KeyError(company_id)

        validate_company(payload)
        if existing is not None and payload.kind == "branch":
            if payload.parent_company_id == existing.company_id:
                raise ValidationError("a company cannot be its own parent")
            if existing.is_principal and self._repository.list_branches(existing.company_id):
                raise ValidationError("a principal with branches cannot become a branch")
        if payload.kind == "branch":
            parent = self._repository.get_company(payload.parent_company_id or "")
            if parent is None or not parent.is_principal:
                raise ValidationError("parent company not found")
        validate_documents(
            {kind: upload.content_type for kind, upload in uploads.items()},
            creating=existing is None,
        )

        target_id = company_id or generate_id("comp")
        year = payload.start_date[:4]
        uploaded_at = datetime.now(timezone.utc).isoformat()

        documents: dict[str, DocumentSlot] = {}
        for kind in DOCUMENT_KINDS:
            upload = uploads.get(kind.value)
            if upload is not None:
                path = save_document_file(target_id, kind.value, upload.stream)
                LOGGER.info("Stored %s for %s", kind.value.upper(), target_id)
                documents[kind.value] = DocumentSlot(
                    filename=Path(upload.filename).name or f"{kind.value.upper()}.pdf",
                    uploaded_at=uploaded_at,
                    year=year,
                    path=path,
                )
            elif existing is not None and kind.value in existing.documents:
                previous = existing.documents[kind.value]
                documents[kind.value] = DocumentSlot(
                    filename=previous.filename,
                    uploaded_at=previous.uploaded_at,
                    year=year,
                    path=previous.path,
                )

        record: dict[str, Any] = payload.model_dump()
        record["documents"] = {kind: asdict(slot) for kind, slot in documents.items()}
        if payload.kind == "principal":
            record["parent_company_id"] = None

        if existing is not None:
            updated = self._repository.update_company(target_id, record, today=today)
            if updated is None:
                raise KeyError(target_id)
            return updated

        record["company_id"] = target_id
        return self._repository.add_company(record, today=today)

    def delete_company(self, company_id: str) -> list[str]:
        removed = self._repository.delete_company(company_id)
        for removed_id in removed:
            remove_company_files(removed_id)
        return removed

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------
    def get_company(self, company_id: str) -> Company | None:
        return self._repository.get_company(company_id)

    def list_companies(self) -> list[Company]:
        return self._repository.list_companies()

    def describe_company(self, company: Company, today: date) -> dict[str, Any]:
        data = company.to_dict()
        data["expiry"] = classify(company.termination_date, today).to_dict()
        data["termination_date_display"] = format_date_br(company.termination_date)
        return data

    def company_tree(self, today: date) -> list[dict[str, Any]]:
        """Principals with their branches, each annotated with its expiry status."""

        return [
            {
                "principal": self.describe_company(principal, today),
                "branches": [
                    self.describe_company(branch, today)
                    for branch in self._repository.list_branches(principal.company_id)
                ],
            }
            for principal in self._repository.list_principals()
        ]

    def document_file(self, company_id: str, kind: str) -> tuple[Path, str]:
        company = self._repository.get_company(company_id)
        if company is None:
            raise KeyError(company_id)
        slot = company.documents.get(kind.lower())
        if slot is None or not slot.path:
            raise KeyError(kind)
        path = resolve_document_file(slot.path)
        if path is None or not path.exists():
            raise KeyError(kind)
        return path, slot.filename

    # ------------------------------------------------------------------
    # views
    # ------------------------------------------------------------------
    def dashboard(self, today: date) -> dict[str, Any]:
        """Counters plus the alerts due for display today.

        Returned alerts are recorded as shown, so they stay hidden for the
        cooldown period.
        """

        companies = self.list_companies()
        report = self._aggregator.aggregate(companies, today)
        for alert in report.alerts:
            self._throttler.record_shown(alert.key, today)
        data = report.to_dict()
        data["companies"] = len(companies)
        return data

    def preview_alerts(self, today: date) -> dict[str, Any]:
        return self._aggregator.aggregate(self.list_companies(), today).to_dict()

    def control_panel(self, today: date, *, start: str | None = None, end: str | None = None) -> dict[str, Any]:
        return build_control_panel(self.list_companies(), today, start=start, end=end)

    def history_tree(self) -> list[dict[str, Any]]:
        return build_history_tree(self.list_companies())

    def status_rows(self, today: date) -> list[StatusReportRow]:
        return build_status_rows(self.list_companies(), today)

    # ------------------------------------------------------------------
    # testing helpers
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self._repository.reset()


_service: CompanyService | None = None


def get_company_service() -> CompanyService:
    """Return the process-wide service bound to the JSON store under the data root."""

    global _service
    if _service is None:
        store = JsonFileKeyValueStore(ensure_data_root() / "store")
        _service = CompanyService.from_store(store)
    return _service


def configure_company_service(service: CompanyService | None) -> None:
    """Install the service used by the HTTP layer; ``None`` rebuilds it lazily."""

    global _service
    _service = service


def reset_company_state() -> None:
    """Drop the cached service (used in tests)."""

    configure_company_service(None)
