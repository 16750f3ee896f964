"""Domain entities for tracked companies and their documents."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class DocumentKind(str, Enum):
    """Mandatory occupational-health documents kept per company."""

    PCMSO = "pcmso"
    LTCAT = "ltcat"
    PGR = "pgr"


DOCUMENT_KINDS: tuple[DocumentKind, ...] = (DocumentKind.PCMSO, DocumentKind.LTCAT, DocumentKind.PGR)


class ExpiryStatus(str, Enum):
    ON_TIME = "on_time"
    WARNING = "warning"
    EXPIRED = "expired"
    INVALID = "invalid"


@dataclass(slots=True)
class DocumentSlot:
    """A stored PDF for one document kind."""

    filename: str
    uploaded_at: str
    year: str | None = None
    path: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DocumentSlot":
        return cls(
            filename=str(data.get("filename") or ""),
            uploaded_at=str(data.get("uploaded_at") or ""),
            year=data.get("year"),
            path=data.get("path"),
        )


@dataclass(slots=True)
class Company:
    """A principal company or one of its branches."""

    company_id: str
    name: str
    cnpj: str
    kind: str = "principal"
    parent_company_id: str | None = None
    company_status: str = "active"
    start_date: str | None = None
    termination_date: str | None = None
    esocial: bool = False
    physician: str = ""
    notes: str = ""
    documents: dict[str, DocumentSlot] = field(default_factory=dict)
    created_on: str | None = None
    updated_on: str | None = None

    @property
    def is_principal(self) -> bool:
        return self.kind == "principal"

    def present_kinds(self) -> list[DocumentKind]:
        """Document kinds with a populated slot, in canonical order."""

        return [kind for kind in DOCUMENT_KINDS if self.documents.get(kind.value) is not None]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Company":
        documents: dict[str, DocumentSlot] = {}
        raw_documents = data.get("documents") or {}
        if isinstance(raw_documents, dict):
            for kind, slot in raw_documents.items():
                if isinstance(slot, dict):
                    documents[str(kind).lower()] = DocumentSlot.from_dict(slot)
        return cls(
            company_id=str(data["company_id"]),
            name=str(data.get("name") or ""),
            cnpj=str(data.get("cnpj") or ""),
            kind=str(data.get("kind") or "principal"),
            parent_company_id=data.get("parent_company_id"),
            company_status=str(data.get("company_status") or "active"),
            start_date=data.get("start_date"),
            termination_date=data.get("termination_date"),
            esocial=bool(data.get("esocial", False)),
            physician=str(data.get("physician") or ""),
            notes=str(data.get("notes") or ""),
            documents=documents,
            created_on=data.get("created_on"),
            updated_on=data.get("updated_on"),
        )


@dataclass(slots=True, frozen=True)
class ClassificationResult:
    """Expiry status derived from a termination date; never persisted."""

    status: ExpiryStatus
    label: str
    days_remaining: int | None
    tone: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "label": self.label,
            "days_remaining": self.days_remaining,
            "tone": self.tone,
        }


@dataclass(slots=True, frozen=True)
class AlertEntry:
    """A warning or expired document selected for display."""

    key: str
    company_id: str
    company_name: str
    document_kind: str
    status: ExpiryStatus
    label: str
    days_remaining: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass(slots=True)
class AlertCounts:
    warning: int = 0
    expired: int = 0


@dataclass(slots=True)
class AlertReport:
    """Output of one aggregation pass."""

    alerts: list[AlertEntry] = field(default_factory=list)
    counts: AlertCounts = field(default_factory=AlertCounts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "alerts": [alert.to_dict() for alert in self.alerts],
            "counts": {"warning": self.counts.warning, "expired": self.counts.expired},
        }
