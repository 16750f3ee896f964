from __future__ import annotations

from datetime import date

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import FileResponse

from docwatch.application import get_company_service
from docwatch.core.files import ensure_data_root
from docwatch.core.validation import ValidationError
from docwatch.exporters.status_report_csv import export_status_report

router = APIRouter(tags=["views"])


@router.get("/dashboard")
async def get_dashboard() -> dict:
    """Counters and the alerts due today; returned alerts are marked as shown."""
    service = get_company_service()
    return service.dashboard(date.today())


@router.get("/alerts")
async def preview_alerts() -> dict:
    service = get_company_service()
    return service.preview_alerts(date.today())


@router.get("/control")
async def get_control_panel(
    start: str | None = Query(default=None),
    end: str | None = Query(default=None),
) -> dict:
    service = get_company_service()
    try:
        return service.control_panel(date.today(), start=start, end=end)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/history")
async def get_history() -> dict:
    service = get_company_service()
    return {"items": service.history_tree()}


@router.get("/reports/status.csv")
async def download_status_report() -> FileResponse:
    service = get_company_service()
    today = date.today()
    target = ensure_data_root() / "reports" / f"status-{today.isoformat()}.csv"
    export_status_report(target, service.status_rows(today))
    return FileResponse(target, media_type="text/csv", filename=target.name)
