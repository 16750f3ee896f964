import io
import sys
from datetime import date, timedelta
from pathlib import Path

import pandas as pd
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from docwatch.application import CompanyService, DocumentUpload
from docwatch.core.files import resolve_document_file
from docwatch.core.schema import CompanyPayload
from docwatch.core.validation import ValidationError
from docwatch.exporters.status_report_csv import export_status_report
from docwatch.infrastructure import (
    COMPANY_STORAGE_KEY,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueCompanyRepository,
)

TODAY = date(2025, 3, 10)
PDF_BYTES = b"%PDF-1.4\n%%EOF\n"


@pytest.fixture()
def service(tmp_path, monkeypatch):
    monkeypatch.setenv("DOCWATCH_DATA_ROOT", str(tmp_path))
    return CompanyService.from_store(InMemoryKeyValueStore())


def _payload(**overrides) -> CompanyPayload:
    fields = {
        "name": "Acme",
        "cnpj": "12.345.678/0001-90",
        "start_date": "2024-02-01",
        "termination_date": (TODAY + timedelta(days=30)).isoformat(),
        "physician": "Dr. House",
    }
    fields.update(overrides)
    return CompanyPayload(**fields)


def _uploads(*kinds: str, content_type: str = "application/pdf") -> dict[str, DocumentUpload]:
    kinds = kinds or ("pcmso", "ltcat", "pgr")
    return {
        kind: DocumentUpload(filename=f"{kind.upper()}-2024.pdf", content_type=content_type, stream=io.BytesIO(PDF_BYTES))
        for kind in kinds
    }


def test_register_company_stores_documents(service, tmp_path):
    company = service.register_company(_payload(), _uploads(), today=TODAY)

    assert company.company_id.startswith("comp_")
    assert company.cnpj == "12345678000190"
    assert company.created_on == "2025-03-10"
    assert company.updated_on is None
    assert sorted(company.documents) == ["ltcat", "pcmso", "pgr"]
    assert {slot.year for slot in company.documents.values()} == {"2024"}

    path, filename = service.document_file(company.company_id, "pcmso")
    assert filename == "PCMSO-2024.pdf"
    assert path.read_bytes() == PDF_BYTES
    assert path.is_relative_to(tmp_path.resolve())


def test_registration_requires_all_three_pdfs(service):
    with pytest.raises(ValidationError, match="LTCAT"):
        service.register_company(_payload(), _uploads("pcmso", "pgr"), today=TODAY)
    assert service.list_companies() == []


def test_registration_rejects_non_pdf(service):
    with pytest.raises(ValidationError, match="not a valid PDF"):
        service.register_company(_payload(), _uploads(content_type="image/png"), today=TODAY)


@pytest.mark.parametrize(
    "overrides",
    [
        {"cnpj": "1234567800019"},
        {"termination_date": "2025-02-30"},
        {"kind": "branch"},
    ],
)
def test_registration_domain_rules(service, overrides):
    with pytest.raises(ValidationError):
        service.register_company(_payload(**overrides), _uploads(), today=TODAY)


def test_branch_requires_existing_principal(service):
    with pytest.raises(ValidationError, match="parent company not found"):
        service.register_company(_payload(kind="branch", parent_company_id="comp_missing"), _uploads(), today=TODAY)


def test_update_keeps_documents_not_reuploaded(service):
    company = service.register_company(_payload(), _uploads(), today=TODAY)
    original_slot = company.documents["ltcat"]

    later = TODAY + timedelta(days=7)
    updated = service.register_company(
        _payload(name="Acme Renamed", start_date="2025-01-15"),
        _uploads("pcmso"),
        today=later,
        company_id=company.company_id,
    )

    assert updated.name == "Acme Renamed"
    assert updated.created_on == "2025-03-10"
    assert updated.updated_on == later.isoformat()
    assert updated.documents["ltcat"].filename == original_slot.filename
    assert updated.documents["ltcat"].path == original_slot.path
    assert {slot.year for slot in updated.documents.values()} == {"2025"}


def test_update_rejects_self_parenting(service):
    company = service.register_company(_payload(), _uploads(), today=TODAY)

    with pytest.raises(ValidationError, match="own parent"):
        service.register_company(
            _payload(kind="branch", parent_company_id=company.company_id),
            {},
            today=TODAY,
            company_id=company.company_id,
        )

    assert service.get_company(company.company_id).is_principal
    assert [group["principal"]["company_id"] for group in service.company_tree(TODAY)] == [company.company_id]
    assert service.history_tree()[0]["company_id"] == company.company_id


def test_principal_with_branches_cannot_become_branch(service):
    principal = service.register_company(_payload(), _uploads(), today=TODAY)
    service.register_company(
        _payload(name="Acme South", kind="branch", parent_company_id=principal.company_id),
        _uploads(),
        today=TODAY,
    )
    other = service.register_company(_payload(name="Other"), _uploads(), today=TODAY)

    with pytest.raises(ValidationError, match="with branches"):
        service.register_company(
            _payload(kind="branch", parent_company_id=other.company_id),
            {},
            today=TODAY,
            company_id=principal.company_id,
        )
    assert service.get_company(principal.company_id).is_principal


def test_update_unknown_company(service):
    with pytest.raises(KeyError):
        service.register_company(_payload(), {}, today=TODAY, company_id="comp_missing")


def test_delete_principal_removes_branches(service, tmp_path):
    principal = service.register_company(_payload(), _uploads(), today=TODAY)
    branch = service.register_company(
        _payload(name="Acme South", kind="branch", parent_company_id=principal.company_id),
        _uploads(),
        today=TODAY,
    )
    other = service.register_company(_payload(name="Other"), _uploads(), today=TODAY)

    tree = service.company_tree(TODAY)
    assert [group["principal"]["name"] for group in tree] == ["Acme", "Other"]
    assert [item["name"] for item in tree[0]["branches"]] == ["Acme South"]
    assert tree[0]["principal"]["expiry"]["status"] == "warning"

    removed = service.delete_company(principal.company_id)
    assert sorted(removed) == sorted([principal.company_id, branch.company_id])
    assert [company.company_id for company in service.list_companies()] == [other.company_id]
    assert not (tmp_path / "documents" / principal.company_id).exists()
    assert service.delete_company("comp_missing") == []


def test_delete_branch_keeps_principal(service):
    principal = service.register_company(_payload(), _uploads(), today=TODAY)
    branch = service.register_company(
        _payload(name="Acme North", kind="branch", parent_company_id=principal.company_id),
        _uploads(),
        today=TODAY,
    )
    assert service.delete_company(branch.company_id) == [branch.company_id]
    assert service.get_company(principal.company_id) is not None


def test_dashboard_records_shown_alerts(service):
    service.register_company(_payload(), _uploads(), today=TODAY)
    service.register_company(
        _payload(name="Late", termination_date=(TODAY - timedelta(days=2)).isoformat()),
        _uploads("pcmso", "ltcat", "pgr"),
        today=TODAY,
    )

    preview = service.preview_alerts(TODAY)
    assert len(preview["alerts"]) == 6

    first = service.dashboard(TODAY)
    assert first["companies"] == 2
    assert first["counts"] == {"warning": 3, "expired": 3}
    assert len(first["alerts"]) == 6

    second = service.dashboard(TODAY + timedelta(days=1))
    assert second["alerts"] == []
    assert second["counts"] == {"warning": 3, "expired": 3}

    third = service.dashboard(TODAY + timedelta(days=3))
    assert len(third["alerts"]) == 6


def test_control_panel_filters_by_created_on(service):
    service.register_company(_payload(), _uploads(), today=date(2025, 1, 5))
    service.register_company(
        _payload(name="Expired Co", termination_date="2024-12-31"),
        _uploads(),
        today=date(2025, 2, 20),
    )

    everything = service.control_panel(TODAY)
    assert everything["companies"] == 2
    assert everything["documents"] == {"pcmso": 2, "ltcat": 2, "pgr": 2}
    assert everything["active"] == 1
    assert everything["expired"] == 1

    february = service.control_panel(TODAY, start="2025-02-01", end="2025-02-20")
    assert february["companies"] == 1
    assert february["expired"] == 1

    assert service.control_panel(TODAY, end="2025-01-04")["companies"] == 0

    with pytest.raises(ValidationError):
        service.control_panel(TODAY, start="yesterday")


def test_history_tree_groups_by_year(service):
    principal = service.register_company(_payload(), _uploads(), today=TODAY)
    service.register_company(
        _payload(name="Acme South", kind="branch", parent_company_id=principal.company_id, start_date="2023-06-01"),
        _uploads(),
        today=TODAY,
    )

    tree = service.history_tree()
    assert len(tree) == 1
    company_node = tree[0]
    assert company_node["label"] == "Acme"
    assert [child["label"] for child in company_node["children"]] == ["Principal", "Acme South"]

    principal_folder = company_node["children"][0]
    assert principal_folder["empty"] is False
    year = principal_folder["children"][0]
    assert year["label"] == "2024"
    assert [item["label"] for item in year["children"]] == ["PCMSO-2024.pdf", "LTCAT-2024.pdf", "PGR-2024.pdf"]
    assert company_node["children"][1]["children"][0]["label"] == "2023"


def test_status_report_export(service, tmp_path):
    service.register_company(_payload(), _uploads(), today=TODAY)
    target = export_status_report(tmp_path / "reports" / "status.csv", service.status_rows(TODAY))

    df = pd.read_csv(target)
    assert list(df["document_kind"]) == ["PCMSO", "LTCAT", "PGR"]
    assert set(df["status"]) == {"warning"}
    assert set(df["days_remaining"]) == {30}


def test_corrupt_company_store_reads_as_empty():
    store = InMemoryKeyValueStore()
    store.set_raw(COMPANY_STORAGE_KEY, "[{oops")
    repository = KeyValueCompanyRepository(store)
    assert repository.list_companies() == []

    store.set(COMPANY_STORAGE_KEY, {"not": "a list"})
    assert repository.list_companies() == []


def test_json_store_survives_reopen(tmp_path):
    repository = KeyValueCompanyRepository(JsonFileKeyValueStore(tmp_path / "store"))
    company = repository.add_company({"name": "Persisted", "cnpj": "12345678000190"}, today=TODAY)

    reopened = KeyValueCompanyRepository(JsonFileKeyValueStore(tmp_path / "store"))
    loaded = reopened.get_company(company.company_id)
    assert loaded is not None
    assert loaded.name == "Persisted"
    assert (tmp_path / "store" / f"{COMPANY_STORAGE_KEY}.json").exists()


def test_document_paths_stay_inside_data_root(tmp_path, monkeypatch):
    root = tmp_path / "data"
    sibling = tmp_path / "data2"
    sibling.mkdir()
    (sibling / "leak.pdf").write_bytes(PDF_BYTES)
    monkeypatch.setenv("DOCWATCH_DATA_ROOT", str(root))

    assert resolve_document_file("../data2/leak.pdf") is None
    assert resolve_document_file("documents/comp_1/pcmso.pdf") == (root / "documents" / "comp_1" / "pcmso.pdf").resolve()
