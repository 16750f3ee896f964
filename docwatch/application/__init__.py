"""Application services."""

from .alerts import AlertAggregator, AlertThrottler, alert_key
from .companies import (
    CompanyService,
    DocumentUpload,
    configure_company_service,
    get_company_service,
    reset_company_state,
)

__all__ = [
    "AlertAggregator",
    "AlertThrottler",
    "CompanyService",
    "DocumentUpload",
    "alert_key",
    "configure_company_service",
    "get_company_service",
    "reset_company_state",
]
