from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class CompanyPayload(BaseModel):
    """Registration form for a principal company or a branch."""

    name: str = Field(min_length=1)
    cnpj: str
    kind: Literal["principal", "branch"] = "principal"
    parent_company_id: str | None = None
    company_status: Literal["active", "inactive"] = "active"
    start_date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    termination_date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    esocial: bool = False
    physician: str = Field(min_length=1)
    notes: str = ""

    @field_validator("name", "physician", "notes", mode="before")
    @classmethod
    def _strip_text(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("cnpj", mode="before")
    @classmethod
    def _digits_only(cls, value: object) -> object:
        if isinstance(value, (str, int)):
            return re.sub(r"\D", "", str(value))
        return value

    @field_validator("parent_company_id", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class StatusReportRow(BaseModel):
    company_id: str
    company_name: str
    cnpj: str
    kind: str
    document_kind: str
    filename: str | None = None
    termination_date: str | None = None
    status: str
    days_remaining: int | None = None
