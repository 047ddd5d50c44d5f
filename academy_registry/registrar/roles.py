"""
Roles — The two fixed roles and the admin-of table.

The hierarchy is data, not inheritance:

    ROLE_ADMINS = {
        ADMINISTRATOR: RECTOR,   # only a Rector may grant/revoke Administrator
        RECTOR:        None,     # root role, immutable after construction
    }
"""

from __future__ import annotations

from enum import Enum


class Role(Enum):
    """Roles known to the access ledger."""
    RECTOR = "RECTOR_ROLE"
    ADMINISTRATOR = "ADMIN_ROLE"


# Role -> role authorized to grant/revoke it (None = nobody)
ROLE_ADMINS: dict[Role, Role | None] = {
    Role.ADMINISTRATOR: Role.RECTOR,
    Role.RECTOR: None,
}


def admin_role_of(role: Role) -> Role | None:
    """Get the role that administers ``role``."""
    return ROLE_ADMINS.get(role)
