"""Ports for user feedback and cleanup of client-local resources."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Notifier(Protocol):
    """Fire-and-forget sink for user-visible messages."""

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


@runtime_checkable
class ResourceReleaser(Protocol):
    """Releases a client-local resource such as a file preview handle."""

    def __call__(self, resource: str) -> None: ...
