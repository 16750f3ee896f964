from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd

from docwatch.core.schema import StatusReportRow

COLUMNS = [
    "company_id",
    "company_name",
    "cnpj",
    "kind",
    "document_kind",
    "filename",
    "termination_date",
    "status",
    "days_remaining",
]


def export_status_report(path: Path, rows: Iterable[StatusReportRow]) -> Path:
    df = pd.DataFrame([row.model_dump() for row in rows], columns=COLUMNS)
    if not df.empty:
        df["days_remaining"] = df["days_remaining"].astype("Int64")
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path
