"""Application session wiring the cache, executor and claims API together."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from claimdesk.adapters.claims_api import ClaimsApiClient
from claimdesk.adapters.notifications import LoggingNotifier
from claimdesk.adapters.previews import PreviewRegistry
from claimdesk.config.mutations import MutationConfig, get_mutation_config
from claimdesk.domain.cache import QueryCache
from claimdesk.domain.mutations import MutationExecutor, MutationResult
from claimdesk.domain.ports.claims import NewClaim, UploadFile
from claimdesk.services import (
    AddAttachments,
    AddAttachmentsInput,
    ClaimQueries,
    CreateClaim,
    CreateItem,
    CreateItemInput,
    DeleteItem,
    DeleteItemInput,
    DuplicateItem,
    DuplicateItemInput,
    MoveItemInput,
    RemoveAttachment,
    RemoveAttachmentInput,
    ReorderItems,
    ReorderItemsInput,
    UpdateItem,
    UpdateItemInput,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path
    from types import TracebackType

    from claimdesk.domain.model import Attachment, ClaimDetail, ClaimSummary, EntityId, Item
    from claimdesk.domain.ports.claims import ClaimsGateway
    from claimdesk.domain.ports.notifications import Notifier

log = getLogger(__name__)


def load_upload_file(path: Path, *, mime_type: str | None = None) -> UploadFile:
    """Read a local file into an :class:`UploadFile`."""

    guessed, _ = mimetypes.guess_type(path.name)
    return UploadFile(
        filename=path.name,
        content=path.read_bytes(),
        mime_type=mime_type or guessed or "application/octet-stream",
    )


@dataclass(slots=True)
class ClaimsSession:
    """One user session: a single cache shared by every query and mutation."""

    gateway: ClaimsGateway
    notifier: Notifier = field(default_factory=LoggingNotifier)
    config: MutationConfig = field(default_factory=get_mutation_config)
    cache: QueryCache = field(default_factory=QueryCache)
    previews: PreviewRegistry = field(default_factory=PreviewRegistry)
    executor: MutationExecutor = field(init=False)
    queries: ClaimQueries = field(init=False)

    def __post_init__(self) -> None:
        self.executor = MutationExecutor(
            cache=self.cache,
            notifier=self.notifier,
            release=self.previews,
            timeout_seconds=self.config.timeout_seconds,
        )
        self.queries = ClaimQueries(cache=self.cache, gateway=self.gateway)

    async def __aenter__(self) -> ClaimsSession:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if isinstance(self.gateway, ClaimsApiClient):
            await self.gateway.aclose()
        for handle in self.previews.active:
            self.previews.release(handle)

    async def list_claims(self, *, refresh: bool = False) -> tuple[ClaimSummary, ...]:
        return await self.queries.list_claims(refresh=refresh)

    async def get_claim(self, claim_id: EntityId, *, refresh: bool = False) -> ClaimDetail | None:
        return await self.queries.get_claim(claim_id, refresh=refresh)

    async def create_claim(self, claim: NewClaim) -> MutationResult[ClaimSummary]:
        return await self.executor.run(CreateClaim(self.cache, self.gateway), claim)

    async def create_item(
        self,
        claim_id: EntityId,
        *,
        title: str,
        description: str = "",
        order: int | None = None,
    ) -> MutationResult[Item]:
        return await self.executor.run(
            CreateItem(self.cache, self.gateway),
            CreateItemInput(claim_id=claim_id, title=title, description=description, order=order),
        )

    async def update_item(
        self,
        claim_id: EntityId,
        item_id: EntityId,
        *,
        title: str,
        description: str,
    ) -> MutationResult[Item]:
        return await self.executor.run(
            UpdateItem(self.cache, self.gateway),
            UpdateItemInput(
                claim_id=claim_id, item_id=item_id, title=title, description=description
            ),
        )

    async def delete_item(self, claim_id: EntityId, item_id: EntityId) -> MutationResult[None]:
        return await self.executor.run(
            DeleteItem(self.cache, self.gateway),
            DeleteItemInput(claim_id=claim_id, item_id=item_id),
        )

    async def duplicate_item(self, claim_id: EntityId, item_id: EntityId) -> MutationResult[Item]:
        return await self.executor.run(
            DuplicateItem(self.cache, self.gateway),
            DuplicateItemInput(claim_id=claim_id, item_id=item_id),
        )

    async def reorder_items(
        self,
        claim_id: EntityId,
        orders: Mapping[EntityId, int],
    ) -> MutationResult[tuple[Item, ...]]:
        return await self.executor.run(
            ReorderItems(self.cache, self.gateway),
            ReorderItemsInput(claim_id=claim_id, orders=dict(orders)),
        )

    async def move_item(
        self,
        claim_id: EntityId,
        item_id: EntityId,
        position: int,
    ) -> MutationResult[tuple[Item, ...]]:
        """Drag-and-drop helper: move one item to ``position`` and reorder the rest."""

        # the new order is computed from the cached items
        await self.get_claim(claim_id)
        return await self.executor.run(
            ReorderItems(self.cache, self.gateway),
            MoveItemInput(claim_id=claim_id, item_id=item_id, position=position),
        )

    async def add_attachments(
        self,
        claim_id: EntityId,
        item_id: EntityId,
        files: Iterable[UploadFile],
    ) -> MutationResult[tuple[Attachment, ...]]:
        mutation = AddAttachments(
            self.cache,
            self.gateway,
            open_preview=self.previews.open,
            max_upload_bytes=self.config.max_upload_bytes,
        )
        return await self.executor.run(
            mutation,
            AddAttachmentsInput(claim_id=claim_id, item_id=item_id, files=tuple(files)),
        )

    async def remove_attachment(
        self,
        claim_id: EntityId,
        item_id: EntityId,
        attachment_id: EntityId,
    ) -> MutationResult[None]:
        return await self.executor.run(
            RemoveAttachment(self.cache, self.gateway, release_preview=self.previews.release),
            RemoveAttachmentInput(
                claim_id=claim_id, item_id=item_id, attachment_id=attachment_id
            ),
        )


def open_session(
    *,
    gateway: ClaimsGateway | None = None,
    notifier: Notifier | None = None,
    config: MutationConfig | None = None,
) -> ClaimsSession:
    """Build a session from environment configuration unless collaborators are given."""

    effective_gateway = gateway or ClaimsApiClient()
    log.debug("Opening claims session with %s", type(effective_gateway).__name__)
    return ClaimsSession(
        gateway=effective_gateway,
        notifier=notifier or LoggingNotifier(),
        config=config or get_mutation_config(),
    )
