"""Authentication schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from repairdesk.models.account import CustomerRole, StaffRole


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class MagicLinkRequest(BaseModel):
    email: EmailStr
    callback_url: str | None = None


class MagicLinkResponse(BaseModel):
    """Acknowledgement; ``debug_token`` is only filled in local/test envs."""

    detail: str = "If the address can sign in, a link is on its way"
    debug_token: str | None = None


class MagicLinkVerify(BaseModel):
    token: str = Field(min_length=16)


class SessionUser(BaseModel):
    """User block of the session payload, serialized in camelCase."""

    id: uuid.UUID
    name: str | None
    email: str
    image: str | None
    is_staff: bool
    is_superuser: bool
    is_active: bool
    staff_role: StaffRole | None = None
    customer_role: CustomerRole | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SessionPayload(BaseModel):
    user: SessionUser
    expires: datetime


class SessionAccess(BaseModel):
    status: str
    role: str
    permissions: list[str]
    can_access: dict[str, bool]
    is_authenticated: bool


class OAuthStart(BaseModel):
    """Where to send the browser to begin a provider sign-in."""

    authorization_url: str
    state: str
    provider: str


class OAuthProfile(BaseModel):
    """Identity fields read from a provider's user-info endpoint."""

    provider: str
    provider_account_id: str
    email: EmailStr
    email_verified: bool = False
    name: str | None = None
    picture: str | None = None
