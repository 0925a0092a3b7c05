"""Port for the remote claims API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from claimdesk.domain.model import Attachment, ClaimDetail, ClaimSummary, EntityId, Item


@dataclass(frozen=True, slots=True, kw_only=True)
class NewClaim:
    title: str
    customer: str | None = None
    adjustor_name: str | None = None
    adjustor_phone: str | None = None
    adjustor_email: str | None = None
    claimant_name: str | None = None
    claimant_phone: str | None = None
    claimant_email: str | None = None
    claimant_address: str | None = None


@dataclass(frozen=True, slots=True)
class UploadFile:
    """A local file queued for upload."""

    filename: str
    content: bytes
    mime_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


@runtime_checkable
class ClaimsGateway(Protocol):
    """Remote operations on claims, items and attachments."""

    async def list_claims(self) -> tuple[ClaimSummary, ...]: ...

    async def get_claim(self, claim_id: EntityId) -> ClaimDetail: ...

    async def create_claim(self, claim: NewClaim) -> ClaimSummary: ...

    async def create_item(
        self,
        claim_id: EntityId,
        *,
        title: str,
        description: str,
        order: int | None = None,
    ) -> Item: ...

    async def update_item(
        self,
        claim_id: EntityId,
        item_id: EntityId,
        *,
        title: str,
        description: str,
    ) -> Item: ...

    async def delete_item(self, claim_id: EntityId, item_id: EntityId) -> None: ...

    async def reorder_items(
        self,
        claim_id: EntityId,
        orders: Mapping[EntityId, int],
    ) -> tuple[Item, ...]: ...

    async def upload_attachment(
        self,
        claim_id: EntityId,
        item_id: EntityId,
        file: UploadFile,
    ) -> Attachment: ...

    async def delete_attachment(
        self,
        claim_id: EntityId,
        item_id: EntityId,
        attachment_id: EntityId,
    ) -> None: ...
