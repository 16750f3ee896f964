from __future__ import annotations

from datetime import date

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse
from pydantic import ValidationError as PayloadError

from docwatch.application import DocumentUpload, get_company_service
from docwatch.core.schema import CompanyPayload
from docwatch.core.validation import ValidationError
from docwatch.domain import DOCUMENT_KINDS

router = APIRouter(prefix="/companies", tags=["companies"])


def _build_payload(**fields: object) -> CompanyPayload:
    try:
        return CompanyPayload(**fields)
    except PayloadError as exc:
        missing = sorted({str(error["loc"][0]) for error in exc.errors() if error.get("loc")})
        raise HTTPException(status_code=400, detail=f"invalid or missing fields: {', '.join(missing)}") from exc


def _collect_uploads(pcmso: UploadFile | None, ltcat: UploadFile | None, pgr: UploadFile | None) -> dict[str, DocumentUpload]:
    uploads: dict[str, DocumentUpload] = {}
    for kind, upload in (("pcmso", pcmso), ("ltcat", ltcat), ("pgr", pgr)):
        if upload is None or not upload.filename:
            continue
        uploads[kind] = DocumentUpload(filename=upload.filename, content_type=upload.content_type, stream=upload.file)
    return uploads


async def _close_all(*uploads: UploadFile | None) -> None:
    for upload in uploads:
        if upload is not None:
            await upload.close()


@router.get("")
async def list_companies() -> dict:
    service = get_company_service()
    return {"items": service.company_tree(date.today())}


@router.post("")
async def create_company(
    name: str = Form(""),
    cnpj: str = Form(""),
    kind: str = Form("principal"),
    parent_company_id: str | None = Form(default=None),
    company_status: str = Form("active"),
    start_date: str = Form(""),
    termination_date: str = Form(""),
    esocial: bool = Form(False),
    physician: str = Form(""),
    notes: str = Form(""),
    pcmso: UploadFile | None = File(default=None),
    ltcat: UploadFile | None = File(default=None),
    pgr: UploadFile | None = File(default=None),
) -> dict:
    """Register a principal company or a branch with its three PDFs."""
    try:
        payload = _build_payload(
            name=name,
            cnpj=cnpj,
            kind=kind,
            parent_company_id=parent_company_id,
            company_status=company_status,
            start_date=start_date,
            termination_date=termination_date,
            esocial=esocial,
            physician=physician,
            notes=notes,
        )
        service = get_company_service()
        try:
            company = service.register_company(payload, _collect_uploads(pcmso, ltcat, pgr), today=date.today())
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        await _close_all(pcmso, ltcat, pgr)
    return service.describe_company(company, date.today())


@router.get("/{company_id}")
async def get_company(company_id: str) -> dict:
    service = get_company_service()
    company = service.get_company(company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="company not found")
    return service.describe_company(company, date.today())


@router.put("/{company_id}")
async def update_company(
    company_id: str,
    name: str = Form(""),
    cnpj: str = Form(""),
    kind: str | None = Form(default=None),
    parent_company_id: str | None = Form(default=None),
    company_status: str = Form("active"),
    start_date: str = Form(""),
    termination_date: str = Form(""),
    esocial: bool = Form(False),
    physician: str = Form(""),
    notes: str = Form(""),
    pcmso: UploadFile | None = File(default=None),
    ltcat: UploadFile | None = File(default=None),
    pgr: UploadFile | None = File(default=None),
) -> dict:
    """Edit a registration; documents not uploaded again are kept.

    Omitted ``kind`` and ``parent_company_id`` keep the stored values.
    """
    try:
        service = get_company_service()
        existing = service.get_company(company_id)
        if existing is None:
            raise HTTPException(status_code=404, detail="company not found")
        kind = kind or existing.kind
        if parent_company_id is None and kind == existing.kind:
            parent_company_id = existing.parent_company_id
        payload = _build_payload(
            name=name,
            cnpj=cnpj,
            kind=kind,
            parent_company_id=parent_company_id,
            company_status=company_status,
            start_date=start_date,
            termination_date=termination_date,
            esocial=esocial,
            physician=physician,
            notes=notes,
        )
        try:
            company = service.register_company(
                payload,
                _collect_uploads(pcmso, ltcat, pgr),
                today=date.today(),
                company_id=company_id,
            )
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="company not found") from exc
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        await _close_all(pcmso, ltcat, pgr)
    return service.describe_company(company, date.today())


@router.delete("/{company_id}")
async def delete_company(company_id: str) -> dict:
    service = get_company_service()
    removed = service.delete_company(company_id)
    if not removed:
        raise HTTPException(status_code=404, detail="company not found")
    return {"removed": removed}


@router.get("/{company_id}/documents/{kind}")
async def download_document(company_id: str, kind: str) -> FileResponse:
    if kind.lower() not in {item.value for item in DOCUMENT_KINDS}:
        raise HTTPException(status_code=400, detail="unknown document kind")
    service = get_company_service()
    try:
        path, filename = service.document_file(company_id, kind)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="document not found") from exc
    return FileResponse(path, media_type="application/pdf", filename=filename)
