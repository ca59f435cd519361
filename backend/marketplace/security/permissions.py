"""Role and ownership helpers for explicit authorization checks."""

from __future__ import annotations

import uuid

from marketplace.core.errors import Forbidden
from marketplace.models.user import User, UserRole


def require_roles(user: User, allowed: set[UserRole]) -> None:
    """Raise :class:`Forbidden` if a user is not a member of the allowed role set."""

    if user.role not in allowed:
        raise Forbidden("Insufficient permissions")


def ensure_owner_or_admin(user: User, owner_id: uuid.UUID) -> None:
    """Raise :class:`Forbidden` unless ``user`` owns the resource or is an admin."""

    if user.is_admin or user.id == owner_id:
        return
    raise Forbidden("Not allowed to manage this listing")


__all__ = ["ensure_owner_or_admin", "require_roles"]
