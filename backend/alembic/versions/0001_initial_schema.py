"""Initial schema: accounts, profiles, catalog and inventory.

Revision ID: 0001
Revises:
Create Date: 2026-10-17
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    contact_method_enum = sa.Enum("EMAIL", "PHONE", name="contactmethod")
    profile_kind_enum = sa.Enum("STAFF", "CUSTOMER", name="profilekind")
    staff_role_enum = sa.Enum(
        "ADMINISTRATOR", "TECHNICIAN", "RECEPTIONIST", name="staffrole"
    )
    customer_role_enum = sa.Enum("INDIVIDUAL", "COMPANY", name="customerrole")
    device_type_enum = sa.Enum("LAPTOP", "DESKTOP", "PRINTER", name="devicetype")
    repair_status_enum = sa.Enum(
        "PENDING_START",
        "IN_PROGRESS",
        "AWAITING_PARTS",
        "COMPLETED",
        "CANCELLED",
        name="devicerepairstatus",
    )
    sale_status_enum = sa.Enum(
        "NOT_FOR_SALE", "AVAILABLE", "RESERVED", "SOLD", name="salestatus"
    )
    part_status_enum = sa.Enum(
        "IN_STOCK", "OUT_OF_STOCK", "RESERVED", "INSTALLED", name="devicepartstatus"
    )
    movement_type_enum = sa.Enum(
        "STOCK_IN", "STOCK_OUT", "ADJUSTMENT", "RETURN", name="movementtype"
    )

    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255)),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("image", sa.String(length=1024)),
        sa.Column("email_verified_at", sa.DateTime(timezone=True)),
        sa.Column("preferred_contact", contact_method_enum, nullable=False),
        sa.Column("is_staff", sa.Boolean(), nullable=False),
        sa.Column("is_superuser", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("blocked", sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "account_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("kind", profile_kind_enum, nullable=False),
        sa.Column("staff_role", staff_role_enum),
        sa.Column("specializations", sa.JSON()),
        sa.Column("availability", sa.JSON()),
        sa.Column("customer_role", customer_role_enum),
        sa.Column("company_name", sa.String(length=255)),
        sa.Column("address", sa.Text()),
        sa.Column("notes", sa.Text()),
    )

    op.create_table(
        "auth_identities",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "account_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("provider", sa.String(length=64), nullable=False),
        sa.Column("provider_account_id", sa.String(length=320), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "provider", "provider_account_id", name="uq_auth_identities_provider"
        ),
    )

    op.create_table(
        "magic_link_tokens",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("token_hash", sa.String(length=128), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("consumed_at", sa.DateTime(timezone=True)),
    )
    op.create_index(
        "ix_magic_link_tokens_email", "magic_link_tokens", ["email"], unique=False
    )

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "actor_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("accounts.id", ondelete="SET NULL"),
        ),
        sa.Column("operation", sa.String(length=64), nullable=False),
        sa.Column("target_type", sa.String(length=32)),
        sa.Column("target_id", sa.Uuid(as_uuid=True)),
        sa.Column("details", sa.JSON()),
        sa.Column("ip_address", sa.String(length=64)),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_audit_events_actor_id", "audit_events", ["actor_id"])
    op.create_index("ix_audit_events_operation", "audit_events", ["operation"])
    op.create_index(
        "ix_audit_events_target", "audit_events", ["target_type", "target_id"]
    )

    op.create_table(
        "service_categories",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False, unique=True),
        sa.Column("description", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "services",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "category_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("service_categories.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("device", device_type_enum, nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("estimated_time", sa.String(length=120)),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "name", "category_id", "device", name="uq_services_name_category_device"
        ),
    )

    op.create_table(
        "devices",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "customer_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("accounts.id", ondelete="SET NULL"),
        ),
        sa.Column("device_type", device_type_enum, nullable=False),
        sa.Column("brand", sa.String(length=120), nullable=False),
        sa.Column("model", sa.String(length=120), nullable=False),
        sa.Column("serial_number", sa.String(length=120), nullable=False, unique=True),
        sa.Column("warranty_months", sa.Integer()),
        sa.Column("price", sa.Numeric(10, 2)),
        sa.Column("repair_status", repair_status_enum, nullable=False),
        sa.Column("sale_status", sale_status_enum, nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "device_parts",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "customer_device_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("devices.id", ondelete="SET NULL"),
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("model", sa.String(length=120)),
        sa.Column("serial_number", sa.String(length=120), nullable=False, unique=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("warranty_months", sa.Integer()),
        sa.Column("status", part_status_enum, nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "part_movements",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "part_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("device_parts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("movement_type", movement_type_enum, nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column(
            "created_by_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("accounts.id", ondelete="SET NULL"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "repair_history",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "device_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("devices.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("booking_id", sa.Uuid(as_uuid=True)),
        sa.Column(
            "technician_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="SET NULL"),
        ),
        sa.Column("diagnosis", sa.Text()),
        sa.Column("repair_date", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "repair_history_parts",
        sa.Column(
            "repair_history_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("repair_history.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "part_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("device_parts.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )


def downgrade() -> None:
    op.drop_table("repair_history_parts")
    op.drop_table("repair_history")
    op.drop_table("part_movements")
    op.drop_table("device_parts")
    op.drop_table("devices")
    op.drop_table("services")
    op.drop_table("service_categories")
    op.drop_index("ix_audit_events_target", table_name="audit_events")
    op.drop_index("ix_audit_events_operation", table_name="audit_events")
    op.drop_index("ix_audit_events_actor_id", table_name="audit_events")
    op.drop_table("audit_events")
    op.drop_index("ix_magic_link_tokens_email", table_name="magic_link_tokens")
    op.drop_table("magic_link_tokens")
    op.drop_table("auth_identities")
    op.drop_table("profiles")
    op.drop_table("accounts")

    bind = op.get_bind()
    for enum_name in (
        "movementtype",
        "devicepartstatus",
        "salestatus",
        "devicerepairstatus",
        "devicetype",
        "customerrole",
        "staffrole",
        "profilekind",
        "contactmethod",
    ):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
