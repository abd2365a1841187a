"""
Request dependencies: service container, authenticated principal and
the effective tenant id.
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.core.exceptions import AuthenticationError, ForbiddenError
from qrmenu.core.security import decode_access_token
from qrmenu.database import get_db
from qrmenu.models import User
from qrmenu.services.container import ServiceContainer
from qrmenu.services.tenancy import Principal, effective_tenant_id

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated")

    user_id = decode_access_token(credentials.credentials)
    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        logger.warning(f"Inactive user {user_id} attempted access")
        raise ForbiddenError("Account is deactivated")
    return user


async def get_current_principal(user: User = Depends(get_current_user)) -> Principal:
    return Principal.from_user(user)


async def get_tenant_id(principal: Principal = Depends(get_current_principal)) -> str:
    """Resolved once per request; every tenant-scoped route keys on this."""
    return effective_tenant_id(principal)


async def require_owner(user: User = Depends(get_current_user)) -> User:
    if Principal.from_user(user).is_staff:
        raise ForbiddenError("Only restaurant owners can manage staff")
    return user
