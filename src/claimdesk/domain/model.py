"""
Claim, item and attachment entities as they are held in the client cache.

Entities are frozen and keep their collections in tuples, so a cached value can
be snapshotted and compared by value. Every entity records whether it was
synthesized locally (``Origin.OPTIMISTIC``) or returned by the server
(``Origin.CONFIRMED``).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable
from uuid import uuid4

if TYPE_CHECKING:
    from decimal import Decimal

TEMP_ID_PREFIX: Final[str] = "temp-"
TEMP_CLAIM_NUMBER_PREFIX: Final[str] = "TEMP-"

type EntityId = str


def new_temp_id() -> EntityId:
    return f"{TEMP_ID_PREFIX}{uuid4().hex}"


def utcnow() -> datetime:
    return datetime.now(UTC)


class Origin(StrEnum):
    """Where an entity's current state came from."""

    OPTIMISTIC = "optimistic"
    CONFIRMED = "confirmed"


class ClaimStatus(StrEnum):
    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CLOSED = "CLOSED"


@runtime_checkable
class Identified(Protocol):
    """Anything the reconciler can locate inside a collection."""

    @property
    def id(self) -> EntityId: ...

    @property
    def origin(self) -> Origin: ...


def is_temporary(entity: Identified) -> bool:
    return entity.origin is Origin.OPTIMISTIC


@dataclass(frozen=True, slots=True, kw_only=True)
class Attachment:
    id: EntityId
    item_id: EntityId
    filename: str
    url: str
    mime_type: str
    size: int
    thumbnail_url: str | None = None
    width: int | None = None
    height: int | None = None
    public_id: str = ""
    format: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    origin: Origin = Origin.CONFIRMED
    # handle of a local preview, only set while the upload is pending
    preview: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class Item:
    id: EntityId
    claim_id: EntityId
    title: str
    description: str = ""
    order: int = 0
    attachments: tuple[Attachment, ...] = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None
    origin: Origin = Origin.CONFIRMED

    def with_attachments(self, attachments: tuple[Attachment, ...]) -> Item:
        return replace(self, attachments=attachments)


@dataclass(frozen=True, slots=True, kw_only=True)
class ClaimantSummary:
    id: EntityId
    name: str | None
    email: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ClaimFields:
    """Attributes shared by list rows and the claim detail view."""

    id: EntityId
    title: str
    claim_number: str
    status: ClaimStatus = ClaimStatus.PENDING
    description: str | None = None
    amount: Decimal | None = None
    customer: str | None = None
    adjustor_name: str | None = None
    adjustor_phone: str | None = None
    adjustor_email: str | None = None
    claimant_name: str | None = None
    claimant_phone: str | None = None
    claimant_email: str | None = None
    claimant_address: str | None = None
    claimant: ClaimantSummary | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    origin: Origin = Origin.CONFIRMED


@dataclass(frozen=True, slots=True, kw_only=True)
class ClaimSummary(ClaimFields):
    item_count: int = 0


@dataclass(frozen=True, slots=True, kw_only=True)
class ClaimDetail(ClaimFields):
    items: tuple[Item, ...] = field(default_factory=tuple)

    def with_items(self, items: tuple[Item, ...]) -> ClaimDetail:
        return replace(self, items=items)

    def find_item(self, item_id: EntityId) -> Item | None:
        return next((item for item in self.items if item.id == item_id), None)
