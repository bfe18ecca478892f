"""Recording of audited operations."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.models.audit_event import AuditEvent
from repairdesk.security.permissions import Operation

SIGN_IN = "auth.sign_in"
ACCOUNT_TARGET = "account"


async def record_event(
    session: AsyncSession,
    *,
    operation: Operation | str,
    actor_id: uuid.UUID | None,
    target_type: str | None = None,
    target_id: uuid.UUID | None = None,
    details: dict[str, Any] | None = None,
    ip_address: str | None = None,
    commit: bool = True,
) -> AuditEvent:
    """Persist an audit event for ``operation`` performed by ``actor_id``.

    With ``commit=False`` the event is only flushed so it lands in the
    caller's transaction.
    """
    event = AuditEvent(
        actor_id=actor_id,
        operation=operation.value if isinstance(operation, Operation) else operation,
        target_type=target_type,
        target_id=target_id,
        details=details,
        ip_address=ip_address,
    )
    session.add(event)
    if not commit:
        await session.flush()
        return event
    await session.commit()
    await session.refresh(event)
    return event
