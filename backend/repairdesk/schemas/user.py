"""User-related schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    field_validator,
)

from repairdesk.models.account import ContactMethod, CustomerRole, StaffRole

AccountType = Literal["staff", "customer"]
DisplayName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)
]


class UserListFilters(BaseModel):
    """Filters accepted by the user list."""

    search: str | None = None
    account_type: Literal["staff", "customer", "all"] = "all"
    role: StaffRole | CustomerRole | None = None
    is_active: bool | None = None

    @field_validator("search")
    @classmethod
    def _strip_search(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None


class UserListItem(BaseModel):
    """Row in the user management list."""

    id: uuid.UUID
    name: str | None
    email: str
    phone: str | None
    preferred_contact: ContactMethod
    account_type: AccountType
    staff_role: StaffRole | None = None
    customer_role: CustomerRole | None = None
    is_active: bool
    blocked: bool
    created_at: datetime


class UserListPage(BaseModel):
    users: list[UserListItem]
    total: int
    page: int
    limit: int


class StaffProfileRead(BaseModel):
    role: StaffRole | None
    specializations: list[str] = Field(default_factory=list)
    availability: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)


class CustomerProfileRead(BaseModel):
    role: CustomerRole | None
    company_name: str | None = None
    address: str | None = None
    notes: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserDetail(BaseModel):
    """Full account with its profile."""

    id: uuid.UUID
    name: str | None
    email: str
    phone: str | None
    image: str | None
    preferred_contact: ContactMethod
    is_staff: bool
    is_superuser: bool
    is_active: bool
    blocked: bool
    email_verified_at: datetime | None
    created_at: datetime
    updated_at: datetime
    staff_profile: StaffProfileRead | None = None
    customer_profile: CustomerProfileRead | None = None


class UserCreate(BaseModel):
    """Payload for creating a staff or customer account."""

    email: EmailStr
    name: DisplayName
    phone: str | None = Field(default=None, max_length=32)
    preferred_contact: ContactMethod = ContactMethod.EMAIL
    is_staff: bool = False
    staff_role: StaffRole | None = None
    specializations: list[str] = Field(default_factory=list)
    availability: dict[str, Any] = Field(default_factory=dict)
    customer_role: CustomerRole = CustomerRole.INDIVIDUAL
    company_name: str | None = None
    address: str | None = None
    notes: str | None = None


class ProfileUpdate(BaseModel):
    """Fields an account holder may change on their own profile."""

    name: DisplayName | None = None
    phone: str | None = Field(default=None, max_length=32)
    preferred_contact: ContactMethod | None = None
    company_name: str | None = None
    address: str | None = None
    notes: str | None = None


_STAFF_FIELDS = frozenset({"staff_role", "specializations", "availability"})
_CUSTOMER_FIELDS = frozenset({"customer_role", "company_name", "address", "notes"})


class UserUpdate(BaseModel):
    """Mutable account and profile fields; only sent fields are applied."""

    name: DisplayName | None = None
    phone: str | None = Field(default=None, max_length=32)
    preferred_contact: ContactMethod | None = None
    is_active: bool | None = None
    staff_role: StaffRole | None = None
    specializations: list[str] | None = None
    availability: dict[str, Any] | None = None
    customer_role: CustomerRole | None = None
    company_name: str | None = None
    address: str | None = None
    notes: str | None = None

    def account_changes(self) -> dict[str, Any]:
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if key not in _STAFF_FIELDS and key not in _CUSTOMER_FIELDS
        }

    def staff_changes(self) -> dict[str, Any]:
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if key in _STAFF_FIELDS
        }

    def customer_changes(self) -> dict[str, Any]:
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if key in _CUSTOMER_FIELDS
        }


class UserStats(BaseModel):
    total_users: int
    active_users: int
    staff_users: int
    customer_users: int
    blocked_users: int
