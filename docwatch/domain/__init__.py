"""Domain layer definitions."""

from .companies import (
    DOCUMENT_KINDS,
    AlertCounts,
    AlertEntry,
    AlertReport,
    ClassificationResult,
    Company,
    DocumentKind,
    DocumentSlot,
    ExpiryStatus,
)

__all__ = [
    "DOCUMENT_KINDS",
    "AlertCounts",
    "AlertEntry",
    "AlertReport",
    "ClassificationResult",
    "Company",
    "DocumentKind",
    "DocumentSlot",
    "ExpiryStatus",
]
