"""
Access Ledger — Rector / Administrator role membership.

The ledger holds one member list per role and a fixed admin-of table
(roles.ROLE_ADMINS). A single rule gates every mutation: the caller must
hold the admin role of the role being changed. For Administrator that is
Rector; Rector has no admin role, so its membership never changes after
construction.

Member lists keep insertion order and compact on removal: a revoked
member disappears, survivors keep their relative order, and a re-granted
member goes to the end.
"""

from __future__ import annotations

import logging
import threading

from .errors import ReservedIdentity, Unauthorized
from .events import AdministratorGranted, AdministratorRevoked, EventLog
from .identity import Identity, is_null
from .roles import ROLE_ADMINS, Role, admin_role_of

logger = logging.getLogger(__name__)


class AccessLedger:
    """
    Role ledger for the academy.

    Usage:
        ledger = AccessLedger(rector)
        ledger.grant_administrator(rector, admin)

        ledger.has_role(Role.ADMINISTRATOR, admin)   # True
        ledger.grant_administrator(admin, other)     # raises Unauthorized
    """

    def __init__(self, rector: Identity, event_log: EventLog | None = None) -> None:
        if is_null(rector):
            raise ReservedIdentity(rector, argument="rector")

        self._event_log = event_log if event_log is not None else EventLog()
        self._members: dict[Role, list[Identity]] = {role: [] for role in ROLE_ADMINS}
        self._lock = threading.RLock()

        # The root is always also an administrator; no events at construction
        self._add(Role.RECTOR, rector)
        self._add(Role.ADMINISTRATOR, rector)

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def lock(self) -> threading.RLock:
        """The lock guarding membership; registries built on this ledger share it."""
        return self._lock

    # -------------------------------------------------------------------------
    # Mutations (Rector only)
    # -------------------------------------------------------------------------

    def grant_administrator(self, caller: Identity, target: Identity) -> None:
        """
        Grant the Administrator role to ``target``.

        Granting to a current administrator is not an error; the event is
        emitted again and membership is unchanged.

        Raises:
            Unauthorized: If caller does not hold the Rector role
        """
        with self._lock:
            self._check_role_admin(Role.ADMINISTRATOR, caller)
            added = self._add(Role.ADMINISTRATOR, target)
            self._event_log.emit(AdministratorGranted(target))

        logger.info(
            "Administrator granted: %s by %s%s",
            target, caller, "" if added else " (already held)",
        )

    def revoke_administrator(self, caller: Identity, target: Identity) -> None:
        """
        Revoke the Administrator role from ``target``.

        Revoking from a non-administrator is not an error.

        Raises:
            Unauthorized: If caller does not hold the Rector role
        """
        with self._lock:
            self._check_role_admin(Role.ADMINISTRATOR, caller)
            removed = self._remove(Role.ADMINISTRATOR, target)
            self._event_log.emit(AdministratorRevoked(target))

        logger.info(
            "Administrator revoked: %s by %s%s",
            target, caller, "" if removed else " (not held)",
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def has_role(self, role: Role, identity: Identity | None) -> bool:
        """Check if ``identity`` holds ``role``."""
        with self._lock:
            return identity in self._members[role]

    def require_role(self, role: Role, caller: Identity | None) -> None:
        """
        Raise unless ``caller`` holds ``role``.

        Raises:
            Unauthorized: Naming the missing role
        """
        if not self.has_role(role, caller):
            raise Unauthorized(role, caller)

    def role_members(self, role: Role) -> tuple[Identity, ...]:
        """Get members of ``role`` in insertion order."""
        with self._lock:
            return tuple(self._members[role])

    def get_role_member(self, role: Role, index: int) -> Identity:
        """
        Get the member of ``role`` at ``index``.

        Raises:
            IndexError: If index is out of range
        """
        with self._lock:
            members = self._members[role]
            if not 0 <= index < len(members):
                raise IndexError(
                    f"Role {role.value} has {len(members)} members, no index {index}"
                )
            return members[index]

    def get_role_member_count(self, role: Role) -> int:
        """Get the number of members of ``role``."""
        with self._lock:
            return len(self._members[role])

    def get_role_admin(self, role: Role) -> Role | None:
        """Get the role allowed to grant and revoke ``role``."""
        return admin_role_of(role)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _check_role_admin(self, role: Role, caller: Identity) -> None:
        admin = admin_role_of(role)
        if admin is None:
            # Root role: nobody may change it
            raise Unauthorized(role, caller, details={"immutable": True})
        if not self.has_role(admin, caller):
            logger.warning(
                "Unauthorized %s change by %s (requires %s)",
                role.value, caller, admin.value,
            )
            raise Unauthorized(admin, caller)

    def _add(self, role: Role, identity: Identity) -> bool:
        members = self._members[role]
        if identity in members:
            return False
        members.append(identity)
        return True

    def _remove(self, role: Role, identity: Identity) -> bool:
        members = self._members[role]
        if identity not in members:
            return False
        members.remove(identity)
        return True
