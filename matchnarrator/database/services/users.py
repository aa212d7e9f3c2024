"""
Database services for users and login.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from matchnarrator.core.security import hash_password, verify_password
from matchnarrator.domain.errors import ConflictError, NotFoundError, UnauthorizedError
from matchnarrator.domain.models import UserRole

from ..schema import MatchSession, User

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def get_by_email(session: Session, email: str) -> Optional[User]:
    return session.scalar(select(User).where(User.email == _normalize_email(email)))


def get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError.for_entity("User", user_id)
    return user


def list_users(session: Session) -> list[User]:
    return list(session.scalars(select(User).order_by(User.created_at.desc(), User.id.desc())))


def create_user(
    session: Session,
    *,
    email: str,
    password: str,
    name: str,
    role: UserRole = UserRole.NARRADOR,
) -> User:
    if get_by_email(session, email) is not None:
        raise ConflictError("User with this email already exists")
    user = User(
        email=_normalize_email(email),
        password_hash=hash_password(password),
        name=name,
        role=role,
    )
    session.add(user)
    session.commit()
    logger.info("User created", extra={"user_id": user.id, "role": user.role.value})
    return user


def update_user(session: Session, user_id: int, data: dict[str, Any]) -> User:
    user = get_user(session, user_id)
    if data.get("email"):
        existing = get_by_email(session, data["email"])
        if existing is not None and existing.id != user.id:
            raise ConflictError("User with this email already exists")
        user.email = _normalize_email(data["email"])
    if data.get("password"):
        user.password_hash = hash_password(data["password"])
    if data.get("name"):
        user.name = data["name"]
    if data.get("role"):
        user.role = UserRole(data["role"])
    session.commit()
    return user


def delete_user(session: Session, user_id: int) -> None:
    user = get_user(session, user_id)
    owned = session.scalar(
        select(func.count(MatchSession.id)).where(MatchSession.narrator_id == user.id)
    )
    if owned:
        raise ConflictError(f"User still owns {owned} match session(s)")
    session.delete(user)
    session.commit()
    logger.info("User deleted", extra={"user_id": user_id})


def authenticate(session: Session, email: str, password: str) -> User:
    """Returns the user for valid credentials; wrong email and wrong password look the same."""
    user = get_by_email(session, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt", extra={"email": _normalize_email(email)})
        raise UnauthorizedError("Invalid credentials")
    return user
