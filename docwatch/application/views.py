"""Read-only projections over the company list: control panel, history tree, status rows."""
from __future__ import annotations

from collections import Counter
from datetime import date
from typing import Any, Iterable

from docwatch.core.dates import parse_iso_date
from docwatch.core.schema import StatusReportRow
from docwatch.core.status import classify
from docwatch.core.validation import ValidationError
from docwatch.domain import DOCUMENT_KINDS, Company, ExpiryStatus


def filter_by_created_on(companies: Iterable[Company], start: str | None, end: str | None) -> list[Company]:
    """Keep companies registered within ``[start, end]``; both bounds optional."""

    companies = list(companies)
    if not start and not end:
        return companies

    bounds: dict[str, date | None] = {}
    for name, value in (("start", start), ("end", end)):
        if not value:
            bounds[name] = None
            continue
        parsed = parse_iso_date(value)
        if parsed.value is None:
            raise ValidationError(f"{name} must be a YYYY-MM-DD date")
        bounds[name] = parsed.value

    selected: list[Company] = []
    for company in companies:
        created = parse_iso_date(company.created_on).value
        if created is None:
            continue
        if bounds["start"] and created < bounds["start"]:
            continue
        if bounds["end"] and created > bounds["end"]:
            continue
        selected.append(company)
    return selected


def build_control_panel(
    companies: Iterable[Company],
    today: date,
    *,
    start: str | None = None,
    end: str | None = None,
) -> dict[str, Any]:
    selected = filter_by_created_on(companies, start, end)
    documents: Counter[str] = Counter()
    active = 0
    expired = 0
    for company in selected:
        for kind in company.present_kinds():
            documents[kind.value] += 1
        # invalid dates count as active; only a past termination date is expired
        if classify(company.termination_date, today).status is ExpiryStatus.EXPIRED:
            expired += 1
        else:
            active += 1

    return {
        "start": start or None,
        "end": end or None,
        "companies": len(selected),
        "documents": {kind.value: documents.get(kind.value, 0) for kind in DOCUMENT_KINDS},
        "active": active,
        "expired": expired,
    }


def _company_folder(company: Company, label: str) -> dict[str, Any]:
    years = sorted({slot.year for slot in company.documents.values() if slot is not None and slot.year})
    children: list[dict[str, Any]] = []
    for year in years:
        files = []
        for kind in DOCUMENT_KINDS:
            slot = company.documents.get(kind.value)
            if slot is None or slot.year != year:
                continue
            files.append(
                {
                    "type": "file",
                    "label": slot.filename or f"{kind.value.upper()}.pdf",
                    "company_id": company.company_id,
                    "document_kind": kind.value,
                }
            )
        children.append({"type": "year", "label": year, "children": files})

    return {
        "type": "folder",
        "label": label,
        "company_id": company.company_id,
        "empty": not children,
        "children": children,
    }


def build_history_tree(companies: Iterable[Company]) -> list[dict[str, Any]]:
    """Folder view: principal → (``Principal`` | branch) → year → files."""

    companies = list(companies)
    branches_by_parent: dict[str, list[Company]] = {}
    for company in companies:
        if not company.is_principal and company.parent_company_id:
            branches_by_parent.setdefault(company.parent_company_id, []).append(company)

    tree: list[dict[str, Any]] = []
    for principal in companies:
        if not principal.is_principal:
            continue
        children = [_company_folder(principal, "Principal")]
        children.extend(
            _company_folder(branch, branch.name)
            for branch in branches_by_parent.get(principal.company_id, [])
        )
        tree.append(
            {
                "type": "company",
                "label": principal.name,
                "company_id": principal.company_id,
                "children": children,
            }
        )
    return tree


def build_status_rows(companies: Iterable[Company], today: date) -> list[StatusReportRow]:
    rows: list[StatusReportRow] = []
    for company in companies:
        result = classify(company.termination_date, today)
        for kind in company.present_kinds():
            slot = company.documents[kind.value]
            rows.append(
                StatusReportRow(
                    company_id=company.company_id,
                    company_name=company.name,
                    cnpj=company.cnpj,
                    kind=company.kind,
                    document_kind=kind.value.upper(),
                    filename=slot.filename or None,
                    termination_date=company.termination_date,
                    status=result.status.value,
                    days_remaining=result.days_remaining,
                )
            )
    return rows
