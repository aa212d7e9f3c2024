"""
Users API Endpoints
Benutzerverwaltung (nur SUPERADMIN)
"""

import time

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from matchnarrator.api.dependencies import get_db_session, require_superadmin
from matchnarrator.api.models import APIResponse, UserCreateRequest, UserUpdateRequest, ok
from matchnarrator.database.serializers import user_to_dict
from matchnarrator.database.services import users as user_service

router = APIRouter(prefix="/users", dependencies=[Depends(require_superadmin)])


@router.post("", response_model=APIResponse, status_code=201)
def create_user(body: UserCreateRequest, session: Session = Depends(get_db_session)):
    start_time = time.time()
    user = user_service.create_user(
        session, email=body.email, password=body.password, name=body.name, role=body.role
    )
    return ok(user_to_dict(user), start_time)


@router.get("", response_model=APIResponse)
def list_users(session: Session = Depends(get_db_session)):
    start_time = time.time()
    return ok([user_to_dict(u) for u in user_service.list_users(session)], start_time)


@router.get("/{user_id}", response_model=APIResponse)
def get_user(user_id: int, session: Session = Depends(get_db_session)):
    start_time = time.time()
    return ok(user_to_dict(user_service.get_user(session, user_id)), start_time)


@router.patch("/{user_id}", response_model=APIResponse)
def update_user(user_id: int, body: UserUpdateRequest, session: Session = Depends(get_db_session)):
    start_time = time.time()
    user = user_service.update_user(session, user_id, body.to_data())
    return ok(user_to_dict(user), start_time)


@router.delete("/{user_id}", response_model=APIResponse)
def delete_user(user_id: int, session: Session = Depends(get_db_session)):
    start_time = time.time()
    user_service.delete_user(session, user_id)
    return ok({"message": "User deleted"}, start_time)
