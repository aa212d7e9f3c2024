"""
Security
Passwort-Hashing (argon2) und JWT Access Tokens
"""

import logging
import secrets
from datetime import timedelta
from typing import Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerifyMismatchError
from jwt.exceptions import InvalidTokenError

from matchnarrator.common.timeutils import utcnow
from matchnarrator.core.config import Settings
from matchnarrator.domain.errors import UnauthorizedError

logger = logging.getLogger(__name__)
ph = PasswordHasher()


def hash_password(password: str) -> str:
    return ph.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    try:
        return ph.verify(hashed, password)
    except (VerifyMismatchError, InvalidHashError):
        return False


def create_access_token(user_id: int, role: str, settings: Settings) -> str:
    expire = utcnow() + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": str(user_id),
        "role": role,
        "exp": expire,
        "type": "access",
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except InvalidTokenError as e:
        logger.warning(f"Rejected access token: {e}")
        raise UnauthorizedError("Invalid or expired token") from e
    if payload.get("type") != "access" or not payload.get("sub"):
        raise UnauthorizedError("Invalid token payload")
    return payload
