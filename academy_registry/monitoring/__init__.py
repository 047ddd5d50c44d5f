"""
Monitoring for the academy registry.

Components:
    StructuredLogger    - JSON structured logging
    EventLogSubscriber  - Writes every registry event as a log line

Example:
    from academy_registry.monitoring import EventLogSubscriber, configure_logging

    logger = configure_logging("info")
    academy.event_log.subscribe(EventLogSubscriber(logger))
"""

from academy_registry.monitoring.logging import (
    EventLogSubscriber,
    LogLevel,
    StructuredLogger,
    configure_logging,
    get_logger,
)

__all__ = [
    "StructuredLogger",
    "EventLogSubscriber",
    "LogLevel",
    "configure_logging",
    "get_logger",
]
