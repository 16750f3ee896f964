#!/usr/bin/env python
from __future__ import annotations

import argparse
import io
import os
import sys
from datetime import date, timedelta
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

MINIMAL_PDF = (
    b"%PDF-1.4\n1 0 obj<</Type/Catalog/Pages 2 0 R>>endobj\n"
    b"2 0 obj<</Type/Pages/Kids[]/Count 0>>endobj\ntrailer<</Root 1 0 R>>\n%%EOF\n"
)


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed a data root with a sample company and its three PDFs")
    parser.add_argument("--data-root", required=True, help="Directory used as DOCWATCH_DATA_ROOT")
    parser.add_argument("--name", default="Acme Industrial", help="Company name")
    parser.add_argument("--cnpj", default="12345678000190", help="CNPJ with 14 digits")
    parser.add_argument(
        "--days-to-expiry",
        type=int,
        default=30,
        help="Termination date offset from today (negative for an expired company)",
    )
    args = parser.parse_args()

    os.environ["DOCWATCH_DATA_ROOT"] = str(Path(args.data_root).expanduser().resolve())

    from docwatch.application import DocumentUpload, get_company_service
    from docwatch.core.schema import CompanyPayload

    today = date.today()
    payload = CompanyPayload(
        name=args.name,
        cnpj=args.cnpj,
        start_date=(today - timedelta(days=365)).isoformat(),
        termination_date=(today + timedelta(days=args.days_to_expiry)).isoformat(),
        physician="Dr. Sample",
    )
    uploads = {
        kind: DocumentUpload(filename=f"{kind.upper()}.pdf", content_type="application/pdf", stream=io.BytesIO(MINIMAL_PDF))
        for kind in ("pcmso", "ltcat", "pgr")
    }
    company = get_company_service().register_company(payload, uploads, today=today)

    print(f"Sample company registered: {company.company_id} ({company.name})")


if __name__ == "__main__":
    main()
