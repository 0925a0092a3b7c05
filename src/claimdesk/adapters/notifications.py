"""Notification sinks."""

from __future__ import annotations

from logging import getLogger

log = getLogger("claimdesk.notifications")


class LoggingNotifier:
    """Reports mutation outcomes through the logging system."""

    def success(self, message: str) -> None:
        log.info(message)

    def error(self, message: str) -> None:
        log.error(message)
