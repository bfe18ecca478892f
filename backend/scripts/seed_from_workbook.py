"""Seed staff accounts and the service catalog from an Excel workbook.

Reads the ``users``, ``categories`` and ``services`` sheets of the file named
by ``DATA_IMPORT_PATH`` (or ``STAFF_EXCEL_PATH``). Rows that already exist are
skipped, so the script can be re-run safely.

    DATA_IMPORT_PATH=./data/seed.xlsx python backend/scripts/seed_from_workbook.py
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import pandas as pd
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.core.config import get_settings
from repairdesk.db.session import get_sessionmaker
from repairdesk.models import (
    Account,
    ContactMethod,
    DeviceType,
    Service,
    ServiceCategory,
    StaffProfile,
    StaffRole,
)

logger = logging.getLogger("seed_from_workbook")

_ROLE_ALIASES = {
    "ADMIN": StaffRole.ADMINISTRATOR,
    "ADMINISTRATOR": StaffRole.ADMINISTRATOR,
    "TECHNICIAN": StaffRole.TECHNICIAN,
    "RECEPTIONIST": StaffRole.RECEPTIONIST,
}


@dataclass
class Summary:
    created: int = 0
    skipped: int = 0
    errors: int = 0

    def __str__(self) -> str:
        return f"created={self.created} skipped={self.skipped} errors={self.errors}"


def _cell(row: pd.Series, key: str) -> str:
    value = row.get(key)
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def read_sheet(path: Path, sheet: str) -> list[pd.Series]:
    frame = pd.read_excel(path, sheet_name=sheet, dtype=str, engine="openpyxl")
    frame.columns = [str(column).strip().lower() for column in frame.columns]
    return [row for _, row in frame.iterrows()]


def parse_staff_role(value: str) -> StaffRole:
    role = _ROLE_ALIASES.get(value.strip().upper())
    if role is None:
        logger.warning("Unknown staff role %r, defaulting to TECHNICIAN", value)
        return StaffRole.TECHNICIAN
    return role


def parse_specializations(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_availability(value: str) -> dict[str, str]:
    """``"mon:08:00-17:00, tue:09:00-12:00"`` -> ``{"mon": "08:00-17:00", ...}``."""
    availability: dict[str, str] = {}
    for entry in value.split(","):
        day, sep, hours = entry.partition(":")
        if sep and day.strip() and hours.strip():
            availability[day.strip().lower()] = hours.strip()
    return availability


def parse_device_type(value: str) -> DeviceType:
    try:
        return DeviceType(value.strip().upper())
    except ValueError:
        logger.warning("Unknown device type %r, defaulting to LAPTOP", value)
        return DeviceType.LAPTOP


def parse_price(value: str) -> Decimal:
    cleaned = re.sub(r"[^\d.]", "", value)
    try:
        return Decimal(cleaned).quantize(Decimal("0.01"))
    except InvalidOperation:
        logger.warning("Invalid price %r, defaulting to 0", value)
        return Decimal("0.00")


def _contact_method(value: str) -> ContactMethod:
    try:
        return ContactMethod(value.strip().upper())
    except ValueError:
        return ContactMethod.EMAIL


async def seed_users(session: AsyncSession, rows: list[pd.Series]) -> Summary:
    summary = Summary()
    for row in rows:
        email = _cell(row, "email").lower()
        if not email:
            continue
        existing = await session.execute(select(Account.id).where(Account.email == email))
        if existing.scalar_one_or_none() is not None:
            summary.skipped += 1
            continue
        role = parse_staff_role(_cell(row, "role"))
        name = " ".join(
            part for part in (_cell(row, "first_name"), _cell(row, "last_name")) if part
        )
        account = Account(
            email=email,
            name=name or None,
            phone=_cell(row, "phone_number") or None,
            preferred_contact=_contact_method(_cell(row, "preferred_contact")),
            is_staff=True,
            is_superuser=role is StaffRole.ADMINISTRATOR,
        )
        account.profile = StaffProfile(
            role=role,
            specializations=parse_specializations(_cell(row, "specializations")),
            availability=parse_availability(_cell(row, "availability")),
        )
        session.add(account)
        try:
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            logger.exception("Failed to create staff account %s", email)
            summary.errors += 1
            continue
        summary.created += 1
    return summary


async def seed_categories(
    session: AsyncSession, rows: list[pd.Series]
) -> tuple[Summary, dict[str, Any]]:
    summary = Summary()
    categories: dict[str, Any] = {}
    for row in rows:
        name = _cell(row, "name")
        if not name:
            continue
        existing = await session.execute(
            select(ServiceCategory).where(ServiceCategory.name == name)
        )
        category = existing.scalar_one_or_none()
        if category is not None:
            categories[name] = category.id
            summary.skipped += 1
            continue
        category = ServiceCategory(
            name=name, description=_cell(row, "description") or None, is_active=True
        )
        session.add(category)
        try:
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            logger.exception("Failed to create category %s", name)
            summary.errors += 1
            continue
        categories[name] = category.id
        summary.created += 1
    return summary, categories


async def seed_services(
    session: AsyncSession, rows: list[pd.Series], categories: dict[str, Any]
) -> Summary:
    summary = Summary()
    for row in rows:
        name = _cell(row, "service_name")
        category_name = _cell(row, "service_category")
        if not name:
            continue
        category_id = categories.get(category_name)
        if category_id is None:
            logger.error("Service %r references unknown category %r", name, category_name)
            summary.errors += 1
            continue
        device = parse_device_type(_cell(row, "device_type"))
        existing = await session.execute(
            select(Service.id).where(
                Service.name == name,
                Service.category_id == category_id,
                Service.device == device,
            )
        )
        if existing.scalar_one_or_none() is not None:
            summary.skipped += 1
            continue
        session.add(
            Service(
                category_id=category_id,
                name=name,
                description=_cell(row, "description") or None,
                device=device,
                price=parse_price(_cell(row, "service_price")),
                notes=_cell(row, "notes") or None,
                estimated_time=_cell(row, "estimated_time") or None,
                is_active=True,
            )
        )
        try:
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            logger.exception("Failed to create service %s", name)
            summary.errors += 1
            continue
        summary.created += 1
    return summary


async def main(path: Path, *, users: bool, services: bool) -> None:
    settings = get_settings()
    sessionmaker = get_sessionmaker(settings.database_url)
    async with sessionmaker() as session:
        if users:
            result = await seed_users(session, read_sheet(path, "users"))
            print(f"Users: {result}")
        if services:
            category_result, categories = await seed_categories(
                session, read_sheet(path, "categories")
            )
            print(f"Categories: {category_result}")
            service_result = await seed_services(
                session, read_sheet(path, "services"), categories
            )
            print(f"Services: {service_result}")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--path", help="Workbook path (defaults to DATA_IMPORT_PATH)")
    parser.add_argument("--only", choices=("users", "services"), default=None)
    return parser.parse_args()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    args = _parse_args()
    raw_path = args.path or get_settings().data_import_path
    if not raw_path:
        raise SystemExit("Set DATA_IMPORT_PATH (or pass --path) to the workbook to import")
    workbook = Path(raw_path).resolve()
    if not workbook.exists():
        raise SystemExit(f"Workbook not found: {workbook}")
    asyncio.run(
        main(
            workbook,
            users=args.only in (None, "users"),
            services=args.only in (None, "services"),
        )
    )
