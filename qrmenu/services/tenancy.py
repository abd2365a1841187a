"""
Tenant & identity resolution.

A tenant is an owner account. Staff act on behalf of exactly one owner,
so every tenant-scoped read or write is keyed by the *effective* tenant
id rather than the raw principal id.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from qrmenu.core.exceptions import ConfigurationError
from qrmenu.models import User, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller of a request."""
    id: str
    role: UserRole
    owner_id: Optional[str] = None
    name: str = ""
    restaurant_name: Optional[str] = None
    permissions: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_staff(self) -> bool:
        return self.role == UserRole.STAFF

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            id=user.id,
            role=UserRole(user.role),
            owner_id=user.owner_id,
            name=user.name,
            restaurant_name=user.restaurant_name,
            permissions=tuple(user.permissions or ()),
        )


def effective_tenant_id(principal: Principal) -> str:
    """
    Resolve the tenant a principal acts for.

    Owners act for themselves; staff act for ``owner_id``. A staff
    account without an owner is a broken deployment, not a missing
    resource, so it raises ConfigurationError.
    """
    if principal.is_staff:
        if not principal.owner_id:
            logger.error(f"Staff principal {principal.id} has no owner linkage")
            raise ConfigurationError("Staff account is not linked to an owner")
        return principal.owner_id
    return principal.id
