"""Shared plumbing for claim mutations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from claimdesk.domain.errors import TemporaryEntityError
from claimdesk.domain.model import ClaimDetail, is_temporary
from claimdesk.domain.mutations import BaseMutation

if TYPE_CHECKING:
    from collections.abc import Callable

    from claimdesk.domain.cache import QueryCache
    from claimdesk.domain.model import Attachment, EntityId, Identified, Item
    from claimdesk.domain.ports.claims import ClaimsGateway

type ItemsUpdate = Callable[[tuple[Item, ...]], tuple[Item, ...]]
type AttachmentsUpdate = Callable[[tuple[Attachment, ...]], tuple[Attachment, ...]]
type ClaimUpdater = Callable[[ClaimDetail | None], ClaimDetail | None]

STILL_CREATING = "Item is still being created"


class ClaimsMutation[TInput, TResult](BaseMutation[TInput, TResult]):
    """Mutation with access to the query cache and the claims gateway."""

    def __init__(self, cache: QueryCache, gateway: ClaimsGateway) -> None:
        self.cache = cache
        self.gateway = gateway


def map_items(update: ItemsUpdate) -> ClaimUpdater:
    """Build a cache updater applying ``update`` to a claim's items."""

    def updater(claim: ClaimDetail | None) -> ClaimDetail | None:
        if claim is None:
            return None
        return claim.with_items(update(claim.items))

    return updater


def map_attachments(item_id: EntityId, update: AttachmentsUpdate) -> ClaimUpdater:
    """Build a cache updater applying ``update`` to one item's attachments."""

    def update_items(items: tuple[Item, ...]) -> tuple[Item, ...]:
        return tuple(
            item.with_attachments(update(item.attachments)) if item.id == item_id else item
            for item in items
        )

    return map_items(update_items)


def find_item(claim: object, item_id: EntityId) -> Item | None:
    return claim.find_item(item_id) if isinstance(claim, ClaimDetail) else None


def ensure_confirmed(entity: Identified | None, message: str) -> None:
    """Refuse to address ``entity`` on the server while it is still a placeholder."""

    if entity is not None and is_temporary(entity):
        raise TemporaryEntityError(message)
