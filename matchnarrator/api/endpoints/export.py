"""
Export API Endpoints
"""

import time

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from matchnarrator.api.dependencies import get_current_user, get_db_session
from matchnarrator.api.models import APIResponse, ok
from matchnarrator.database.services import export as export_service

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/matches/{match_id}/export", response_model=APIResponse)
def export_match(match_id: int, session: Session = Depends(get_db_session)):
    """Full match document: roster, events, per-side stats and score"""
    start_time = time.time()
    return ok(export_service.export_match(session, match_id), start_time)
