"""
Bearer token verification.

Token issuance belongs to the identity provider; this module only
verifies HS256 tokens and, for development and tests, mints them.
Staff PINs are stored as bcrypt hashes.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
from jose import JWTError, jwt

from qrmenu.core.config import get_settings
from qrmenu.core.exceptions import AuthenticationError


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None, **claims: Any) -> str:
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    to_encode = {"sub": subject, **claims}
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """Return the user id carried in ``sub`` or raise AuthenticationError."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise AuthenticationError("Invalid or expired token")

    subject = payload.get("sub")
    if not subject:
        raise AuthenticationError("Invalid or expired token")
    return subject


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except (ValueError, TypeError):
        return False
