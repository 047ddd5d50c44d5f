"""
Registrar configuration.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class RegistryConfig:
    """Configuration for a SchoolRegistry."""

    # Re-check every registry invariant after each commit and halt on failure
    verify_after_commit: bool = False

    # Log rejected operations at WARNING
    log_rejections: bool = True
