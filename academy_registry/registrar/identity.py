"""
Identity Handles — Opaque, comparable account and school identifiers.

The registrar interprets nothing about an identity beyond equality and
the reserved null sentinel. Identities are Ethereum-style address strings
in practice, but any non-null string works.
"""

from __future__ import annotations

import hashlib
from typing import Any

# Both sides of the bijection are identity-shaped
Identity = str
SchoolHandle = str

NULL_IDENTITY: Identity = "0x" + "0" * 40


def is_null(identity: Any) -> bool:
    """Check if an identity is the reserved null sentinel (or None)."""
    return identity is None or identity == NULL_IDENTITY or identity == ""


def derive_address(origin: Identity, nonce: int) -> Identity:
    """
    Derive a deterministic address from an origin account and a nonce.

    Mirrors how a deployer's address and transaction count determine the
    address of a newly created contract, so callers can predict the
    handle of the next school before it exists.
    """
    if nonce < 0:
        raise ValueError(f"Nonce must be non-negative, got {nonce}")
    digest = hashlib.sha256(f"{origin.lower()}:{nonce}".encode("utf-8")).hexdigest()
    return "0x" + digest[-40:]
