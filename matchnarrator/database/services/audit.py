"""
Database services for the audit trail (insert-only).
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..schema import AuditLog

logger = logging.getLogger(__name__)

DEFAULT_TAKE = 100
MAX_TAKE = 500


def _jsonable(payload: Any) -> Any:
    if payload is None:
        return None
    if hasattr(payload, "model_dump"):
        return payload.model_dump(mode="json", exclude_unset=True)
    if isinstance(payload, dict):
        return {str(k): _jsonable(v) for k, v in payload.items()}
    if isinstance(payload, (list, tuple)):
        return [_jsonable(v) for v in payload]
    if isinstance(payload, (str, int, float, bool)):
        return payload
    return str(payload)


def write_audit(
    session: Session,
    actor_user_id: Optional[int],
    action: str,
    entity_type: str,
    entity_id: Any = None,
    payload: Any = None,
) -> AuditLog:
    """Adds an audit row to the current transaction; the caller commits."""
    entry = AuditLog(
        actor_user_id=actor_user_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        payload=_jsonable(payload),
    )
    session.add(entry)
    logger.debug("audit %s %s:%s by %s", action, entity_type, entity_id, actor_user_id)
    return entry


def clamp_take(take: Optional[int], default: int = DEFAULT_TAKE, maximum: int = MAX_TAKE) -> int:
    if take is None:
        return default
    return min(max(int(take), 1), maximum)


def list_audit(
    session: Session,
    *,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    action: Optional[str] = None,
    actor_user_id: Optional[int] = None,
    take: Optional[int] = None,
    default_take: int = DEFAULT_TAKE,
    max_take: int = MAX_TAKE,
) -> list[AuditLog]:
    stmt = select(AuditLog)
    if entity_type:
        stmt = stmt.where(AuditLog.entity_type == entity_type)
    if entity_id:
        stmt = stmt.where(AuditLog.entity_id == str(entity_id))
    if action:
        stmt = stmt.where(AuditLog.action == action)
    if actor_user_id is not None:
        stmt = stmt.where(AuditLog.actor_user_id == actor_user_id)
    stmt = stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(
        clamp_take(take, default_take, max_take)
    )
    return list(session.scalars(stmt))
