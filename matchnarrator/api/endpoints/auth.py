"""
Auth API Endpoints
Login und aktueller Benutzer
"""

import time

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from matchnarrator.api.dependencies import get_current_user, get_db_session, get_settings
from matchnarrator.api.models import APIResponse, LoginRequest, ok
from matchnarrator.core.config import Settings
from matchnarrator.core.security import create_access_token
from matchnarrator.database.schema import User
from matchnarrator.database.serializers import user_to_dict
from matchnarrator.database.services import users as user_service

router = APIRouter(prefix="/auth")


@router.post("/login", response_model=APIResponse)
def login(
    body: LoginRequest,
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    """Exchange email and password for a bearer token"""
    start_time = time.time()
    user = user_service.authenticate(session, body.email, body.password)
    token = create_access_token(user.id, user.role.value, settings)
    return ok({"access_token": token, "token_type": "bearer", "user": user_to_dict(user)}, start_time)


@router.get("/me", response_model=APIResponse)
def me(user: User = Depends(get_current_user)):
    start_time = time.time()
    return ok(user_to_dict(user), start_time)
