"""
Audit API Endpoints
"""

import time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from matchnarrator.api.dependencies import get_db_session, get_settings, require_superadmin
from matchnarrator.api.models import APIResponse, ok
from matchnarrator.core.config import Settings
from matchnarrator.database.serializers import audit_to_dict
from matchnarrator.database.services import audit as audit_service

router = APIRouter(prefix="/audit", dependencies=[Depends(require_superadmin)])


@router.get("", response_model=APIResponse)
def list_audit(
    entity_type: Optional[str] = Query(default=None, alias="entityType"),
    entity_id: Optional[str] = Query(default=None, alias="entityId"),
    action: Optional[str] = None,
    actor_user_id: Optional[int] = Query(default=None, alias="actorUserId"),
    take: Optional[int] = None,
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    """Audit trail, newest first"""
    start_time = time.time()
    rows = audit_service.list_audit(
        session,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        actor_user_id=actor_user_id,
        take=take,
        default_take=settings.audit_default_take,
        max_take=settings.audit_max_take,
    )
    return ok({"items": [audit_to_dict(r) for r in rows]}, start_time)
