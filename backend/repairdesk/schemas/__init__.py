"""Schema exports."""

from repairdesk.schemas.auth import (
    MagicLinkRequest,
    MagicLinkResponse,
    MagicLinkVerify,
    OAuthProfile,
    OAuthStart,
    SessionAccess,
    SessionPayload,
    SessionUser,
    Token,
)
from repairdesk.schemas.catalog import (
    BulkUpdateResult,
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
    CategoryWithServices,
    ServiceBulkUpdate,
    ServiceCreate,
    ServiceDuplicate,
    ServiceListFilters,
    ServicePage,
    ServiceRead,
    ServiceStats,
    ServiceUpdate,
)
from repairdesk.schemas.inventory import (
    DeviceCreate,
    DeviceDetail,
    DeviceFilters,
    DevicePage,
    DeviceRead,
    DeviceUpdate,
    InventoryStats,
    MovementCreate,
    MovementFilters,
    MovementPage,
    MovementRead,
    PartCreate,
    PartDetail,
    PartFilters,
    PartPage,
    PartRead,
    PartUpdate,
    RepairHistoryCreate,
    RepairHistoryRead,
)
from repairdesk.schemas.user import (
    ProfileUpdate,
    UserCreate,
    UserDetail,
    UserListFilters,
    UserListItem,
    UserListPage,
    UserStats,
    UserUpdate,
)

__all__ = [
    "BulkUpdateResult",
    "CategoryCreate",
    "CategoryRead",
    "CategoryUpdate",
    "CategoryWithServices",
    "DeviceCreate",
    "DeviceDetail",
    "DeviceFilters",
    "DevicePage",
    "DeviceRead",
    "DeviceUpdate",
    "InventoryStats",
    "MagicLinkRequest",
    "MagicLinkResponse",
    "MagicLinkVerify",
    "MovementCreate",
    "MovementFilters",
    "MovementPage",
    "MovementRead",
    "OAuthProfile",
    "OAuthStart",
    "PartCreate",
    "PartDetail",
    "PartFilters",
    "PartPage",
    "PartRead",
    "PartUpdate",
    "RepairHistoryCreate",
    "RepairHistoryRead",
    "ServiceBulkUpdate",
    "ServiceCreate",
    "ServiceDuplicate",
    "ServiceListFilters",
    "ServicePage",
    "ServiceRead",
    "ServiceStats",
    "ServiceUpdate",
    "SessionAccess",
    "SessionPayload",
    "SessionUser",
    "Token",
    "ProfileUpdate",
    "UserCreate",
    "UserDetail",
    "UserListFilters",
    "UserListItem",
    "UserListPage",
    "UserStats",
    "UserUpdate",
]
