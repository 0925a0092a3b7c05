"""Domain port definitions for adapters."""

from __future__ import annotations

from .claims import ClaimsGateway, NewClaim, UploadFile
from .notifications import Notifier, ResourceReleaser

__all__ = [
    "ClaimsGateway",
    "NewClaim",
    "Notifier",
    "ResourceReleaser",
    "UploadFile",
]
