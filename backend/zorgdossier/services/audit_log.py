"""Audit Log — append-only record of who did what to which client.

Invariants:
    - Events are added to the caller's session; the caller commits
    - Events are never updated or deleted through the API
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from zorgdossier.models.audit_event import AuditEvent

logger = logging.getLogger(__name__)


def record_audit_event(
    db: AsyncSession,
    actor: str,
    action: str,
    client_id: str | None = None,
    meta: dict | None = None,
) -> AuditEvent:
    event = AuditEvent(actor=actor, action=action, client_id=client_id, meta=meta or {})
    db.add(event)
    logger.info(
        f"Audit: {actor} {action}",
        extra={"client_id": client_id, "action": action},
    )
    return event


async def list_audit_events(
    db: AsyncSession,
    client_id: str | None = None,
    actor: str | None = None,
    limit: int = 100,
) -> list[AuditEvent]:
    query = select(AuditEvent).order_by(AuditEvent.ts.desc())
    if client_id:
        query = query.where(AuditEvent.client_id == client_id)
    if actor:
        query = query.where(AuditEvent.actor == actor)
    result = await db.execute(query.limit(limit))
    return list(result.scalars().all())


def audit_event_to_dict(event: AuditEvent) -> dict:
    return {
        "id": str(event.id),
        "ts": event.ts.isoformat(),
        "actor": event.actor,
        "client_id": event.client_id,
        "action": event.action,
        "meta": event.meta,
    }
