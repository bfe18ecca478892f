"""Account identities and their staff/customer profiles."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repairdesk.db.base import Base
from repairdesk.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover
    from repairdesk.models.auth_identity import AuthIdentity


class ContactMethod(str, enum.Enum):
    """Preferred channel for reaching an account holder."""

    EMAIL = "EMAIL"
    PHONE = "PHONE"


class StaffRole(str, enum.Enum):
    """Job role recorded on a staff profile."""

    ADMINISTRATOR = "ADMINISTRATOR"
    TECHNICIAN = "TECHNICIAN"
    RECEPTIONIST = "RECEPTIONIST"


class CustomerRole(str, enum.Enum):
    INDIVIDUAL = "INDIVIDUAL"
    COMPANY = "COMPANY"


class ProfileKind(str, enum.Enum):
    STAFF = "staff"
    CUSTOMER = "customer"


class Account(TimestampMixin, Base):
    """Signed-in identity shared by staff and customers."""

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(32))
    image: Mapped[str | None] = mapped_column(String(1024))
    email_verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    preferred_contact: Mapped[ContactMethod] = mapped_column(
        Enum(ContactMethod), default=ContactMethod.EMAIL, nullable=False
    )
    is_staff: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_superuser: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    blocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    profile: Mapped["Profile | None"] = relationship(
        "Profile",
        back_populates="account",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    identities: Mapped[list["AuthIdentity"]] = relationship(
        "AuthIdentity",
        back_populates="account",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def staff_profile(self) -> "StaffProfile | None":
        return self.profile if isinstance(self.profile, StaffProfile) else None

    @property
    def customer_profile(self) -> "CustomerProfile | None":
        return self.profile if isinstance(self.profile, CustomerProfile) else None

    @property
    def staff_role(self) -> StaffRole | None:
        profile = self.staff_profile
        return profile.role if profile is not None else None

    @property
    def customer_role(self) -> CustomerRole | None:
        profile = self.customer_profile
        return profile.role if profile is not None else None


class Profile(Base):
    """One-per-account profile, discriminated by ``kind``."""

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    kind: Mapped[ProfileKind] = mapped_column(Enum(ProfileKind), nullable=False)

    account: Mapped[Account] = relationship("Account", back_populates="profile")

    __mapper_args__ = {
        "polymorphic_on": "kind",
        "with_polymorphic": "*",
    }


class StaffProfile(Profile):
    """Profile for employees; the role drives the permission level."""

    role: Mapped[StaffRole | None] = mapped_column(
        "staff_role", Enum(StaffRole), nullable=True
    )
    specializations: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    availability: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    __mapper_args__ = {"polymorphic_identity": ProfileKind.STAFF}


class CustomerProfile(Profile):
    role: Mapped[CustomerRole | None] = mapped_column(
        "customer_role", Enum(CustomerRole), nullable=True
    )
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __mapper_args__ = {"polymorphic_identity": ProfileKind.CUSTOMER}
