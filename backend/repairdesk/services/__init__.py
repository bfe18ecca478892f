"""Service layer exports."""
from repairdesk.services import (
    audit_service,
    auth_service,
    inventory_service,
    service_catalog_service,
    user_service,
)

__all__ = [
    "audit_service",
    "auth_service",
    "inventory_service",
    "service_catalog_service",
    "user_service",
]
