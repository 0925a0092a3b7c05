"""Public interface for the claims API adapter."""

from __future__ import annotations

from .client import UPLOAD_ERROR_MESSAGES, ClaimsApiClient, ClaimsApiError
from .schema import AttachmentPayload, ClaimPayload, ItemPayload
from .translator import (
    parse_attachment,
    parse_claim_detail,
    parse_claim_summary,
    parse_item,
    parse_items,
)

__all__ = [
    "UPLOAD_ERROR_MESSAGES",
    "AttachmentPayload",
    "ClaimPayload",
    "ClaimsApiClient",
    "ClaimsApiError",
    "ItemPayload",
    "parse_attachment",
    "parse_claim_detail",
    "parse_claim_summary",
    "parse_item",
    "parse_items",
]
