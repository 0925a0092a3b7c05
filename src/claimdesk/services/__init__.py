"""Claim queries and optimistic mutations built on the domain cache."""

from __future__ import annotations

from .attachments import (
    AddAttachments,
    AddAttachmentsInput,
    RemoveAttachment,
    RemoveAttachmentInput,
)
from .claims import CreateClaim, placeholder_claim
from .items import (
    CreateItem,
    CreateItemInput,
    DeleteItem,
    DeleteItemInput,
    DuplicateItem,
    DuplicateItemInput,
    MoveItemInput,
    ReorderItems,
    ReorderItemsInput,
    UpdateItem,
    UpdateItemInput,
    move_item,
)
from .keys import CLAIMS_KEY, claim_key
from .queries import ClaimQueries

__all__ = [
    "CLAIMS_KEY",
    "AddAttachments",
    "AddAttachmentsInput",
    "ClaimQueries",
    "CreateClaim",
    "CreateItem",
    "CreateItemInput",
    "DeleteItem",
    "DeleteItemInput",
    "DuplicateItem",
    "DuplicateItemInput",
    "MoveItemInput",
    "RemoveAttachment",
    "RemoveAttachmentInput",
    "ReorderItems",
    "ReorderItemsInput",
    "UpdateItem",
    "UpdateItemInput",
    "claim_key",
    "move_item",
    "placeholder_claim",
]
