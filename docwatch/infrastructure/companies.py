"""Infrastructure layer for company persistence."""
from __future__ import annotations

import logging
import random
import time
from datetime import date
from typing import Any, Protocol

from docwatch.domain import Company
from docwatch.infrastructure.storage import KeyValueStore, StoreError

LOGGER = logging.getLogger(__name__)

COMPANY_STORAGE_KEY = "scdo_companies"


def generate_id(prefix: str = "id") -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{random.randrange(1_000_000)}"


class CompanyRepository(Protocol):
    """Persistence contract for tracked companies."""

    def list_companies(self) -> list[Company]: ...

    def get_company(self, company_id: str) -> Company | None: ...

    def add_company(self, data: dict[str, Any], *, today: date) -> Company: ...

    def update_company(self, company_id: str, updates: dict[str, Any], *, today: date) -> Company | None: ...

    def delete_company(self, company_id: str) -> list[str]: ...

    def list_principals(self) -> list[Company]: ...

    def list_branches(self, parent_company_id: str) -> list[Company]: ...

    def reset(self) -> None: ...


class KeyValueCompanyRepository:
    """Stores the full company list as one JSON array under ``scdo_companies``."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # internal helpers
    # ------------------------------------------------------------------
    def _load(self) -> list[dict[str, Any]]:
        result = self._store.get(COMPANY_STORAGE_KEY)
        if result.error is StoreError.EMPTY:
            return []
        if result.error is StoreError.CORRUPT or not isinstance(result.value, list):
            LOGGER.warning("Company store is unreadable; treating it as empty")
            return []
        return [row for row in result.value if isinstance(row, dict) and row.get("company_id")]

    def _save(self, rows: list[dict[str, Any]]) -> None:
        self._store.set(COMPANY_STORAGE_KEY, rows)

    # ------------------------------------------------------------------
    # CRUD operations
    # ------------------------------------------------------------------
    def list_companies(self) -> list[Company]:
        return [Company.from_dict(row) for row in self._load()]

    def get_company(self, company_id: str) -> Company | None:
        for row in self._load():
            if row["company_id"] == company_id:
                return Company.from_dict(row)
        return None

    def add_company(self, data: dict[str, Any], *, today: date) -> Company:
        rows = self._load()
        record = dict(data)
        record["company_id"] = record.get("company_id") or generate_id("comp")
        record.setdefault("created_on", today.isoformat())
        record["updated_on"] = None
        company = Company.from_dict(record)
        rows.append(company.to_dict())
        self._save(rows)
        LOGGER.info("Registered %s %s (%s)", company.kind, company.company_id, company.name)
        return company

    def update_company(self, company_id: str, updates: dict[str, Any], *, today: date) -> Company | None:
        rows = self._load()
        for index, row in enumerate(rows):
            if row["company_id"] == company_id:
                merged = {**row, **updates, "company_id": company_id, "updated_on": today.isoformat()}
                company = Company.from_dict(merged)
                rows[index] = company.to_dict()
                self._save(rows)
                LOGGER.info("Updated company %s", company_id)
                return company
        return None

    def delete_company(self, company_id: str) -> list[str]:
        """Remove a company; removing a principal also removes its branches.

        Returns the ids that were removed (empty when nothing matched).
        """

        rows = self._load()
        target = next((row for row in rows if row["company_id"] == company_id), None)
        if target is None:
            return []

        if (target.get("kind") or "principal") == "principal":
            removed = [
                row["company_id"]
                for row in rows
                if row["company_id"] == company_id or row.get("parent_company_id") == company_id
            ]
        else:
            removed = [company_id]

        self._save([row for row in rows if row["company_id"] not in removed])
        LOGGER.info("Deleted companies %s", ", ".join(removed))
        return removed

    def list_principals(self) -> list[Company]:
        return [company for company in self.list_companies() if company.is_principal]

    def list_branches(self, parent_company_id: str) -> list[Company]:
        return [
            company
            for company in self.list_companies()
            if not company.is_principal and company.parent_company_id == parent_company_id
        ]

    def reset(self) -> None:
        self._save([])
