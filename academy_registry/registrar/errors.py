"""
Registrar Errors — Domain-specific error types.

Every error is a rejected operation: none of them is raised after the
registrar has started mutating state.

Error hierarchy:
    RegistrarError (base)
    ├── Unauthorized
    ├── AlreadyDirector
    │   └── ReservedIdentity
    ├── NotADirector
    ├── UnknownSchool
    ├── CollaboratorFailure
    └── InvariantViolationError (HALT-level)
"""

from __future__ import annotations

from typing import Any

from .identity import Identity, SchoolHandle
from .roles import Role


class RegistrarError(Exception):
    """Base error for all registrar-related errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class Unauthorized(RegistrarError):
    """
    Raised when the caller lacks the role gating an operation.

    Examples:
    - A lambda account calling create_school
    - An Administrator trying to grant the Administrator role
    """

    def __init__(
        self,
        required_role: Role,
        caller: Identity | None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            f"account {caller} is missing role {required_role.value}",
            details,
        )
        self.required_role = required_role
        self.caller = caller


class AlreadyDirector(RegistrarError):
    """Raised when assigning a director that already governs a school."""

    def __init__(
        self,
        identity: Identity | None,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message or f"{identity} is already a school director", details)
        self.identity = identity


class ReservedIdentity(AlreadyDirector):
    """
    Raised when the null identity is used where a real account is required.

    The null sentinel is reserved: it can never become a director or the
    Rector, so it is rejected under the same precondition that rejects an
    already-assigned director.
    """

    def __init__(self, identity: Identity | None, argument: str = "identity"):
        super().__init__(
            identity,
            message=f"{argument} must not be the null identity",
            details={"argument": argument},
        )
        self.argument = argument


class NotADirector(RegistrarError):
    """Raised when reassigning away from an identity that governs no school."""

    def __init__(self, identity: Identity | None, details: dict[str, Any] | None = None):
        super().__init__(f"{identity} is not a school director", details)
        self.identity = identity


class UnknownSchool(RegistrarError):
    """Raised when deleting a school handle with no active mapping."""

    def __init__(self, school: SchoolHandle | None, details: dict[str, Any] | None = None):
        super().__init__(f"{school} is not a registered school", details)
        self.school = school


class CollaboratorFailure(RegistrarError):
    """
    Raised when the school factory fails to produce a new school.

    Failures raised by the factory as CollaboratorFailure propagate
    unchanged; any other exception is wrapped, with the original kept as
    ``cause`` (and as ``__cause__``).
    """

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(f"School factory failed: {message}", details)
        self.cause = cause


class InvariantViolationError(RegistrarError):
    """
    Raised when a commit would break a registry invariant.

    Note: This is NOT raised during normal operation. Preconditions
    reject bad requests before any mutation happens.

    This error is raised only when:
    - RegistryConfig.verify_after_commit is enabled, and
    - the check on the staged state finds a violation (a registrar bug)
    """

    def __init__(
        self,
        invariant_id: str,
        message: str,
        classification: str = "HALT",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(f"[{invariant_id}] {message}", details)
        self.invariant_id = invariant_id
        self.classification = classification
