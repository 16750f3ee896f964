"""Infrastructure layer exports."""

from .companies import COMPANY_STORAGE_KEY, CompanyRepository, KeyValueCompanyRepository
from .storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    StoreError,
    StoreReadResult,
)

__all__ = [
    "COMPANY_STORAGE_KEY",
    "CompanyRepository",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueCompanyRepository",
    "KeyValueStore",
    "StoreError",
    "StoreReadResult",
]
