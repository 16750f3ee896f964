from __future__ import annotations

import re

from docwatch.core.dates import parse_iso_date
from docwatch.core.schema import CompanyPayload
from docwatch.domain import DOCUMENT_KINDS

PDF_CONTENT_TYPE = "application/pdf"


class ValidationError(Exception):
    """Raised when domain validation fails."""


def validate_company(payload: CompanyPayload) -> None:
    if not re.fullmatch(r"\d{14}", payload.cnpj):
        raise ValidationError("cnpj must contain exactly 14 digits")
    for field_name in ("start_date", "termination_date"):
        if not parse_iso_date(getattr(payload, field_name)).ok:
            raise ValidationError(f"{field_name} is not a valid calendar date")
    if payload.kind == "branch" and not payload.parent_company_id:
        raise ValidationError("a branch must reference its principal company")


def validate_documents(uploads: dict[str, str | None], *, creating: bool) -> None:
    """Check uploaded document content types.

    ``uploads`` maps document kind to the content type of the uploaded file.
    New registrations must attach every document kind.
    """

    if creating:
        missing = [kind.value for kind in DOCUMENT_KINDS if kind.value not in uploads]
        if missing:
            raise ValidationError(
                "registration requires all three PDFs: " + ", ".join(kind.upper() for kind in missing)
            )
    for kind, content_type in uploads.items():
        if content_type != PDF_CONTENT_TYPE:
            raise ValidationError(f"the file for {kind.upper()} is not a valid PDF")
