"""Item mutations for the claim detail view."""

from __future__ import annotations

from dataclasses import dataclass, field
from dataclasses import replace as dataclass_replace
from typing import TYPE_CHECKING

from claimdesk.domain import reconcile
from claimdesk.domain.errors import EntityNotFoundError
from claimdesk.domain.model import ClaimDetail, Item, Origin, is_temporary, new_temp_id, utcnow

from .base import STILL_CREATING, ClaimsMutation, ensure_confirmed, find_item, map_items
from .keys import claim_key

if TYPE_CHECKING:
    from collections.abc import Mapping

    from claimdesk.domain.cache import QueryCache
    from claimdesk.domain.model import EntityId
    from claimdesk.domain.mutations import MutationContext, OptimisticScope
    from claimdesk.domain.ports.claims import ClaimsGateway


@dataclass(frozen=True, slots=True)
class CreateItemInput:
    claim_id: EntityId
    title: str
    description: str = ""
    order: int | None = None


@dataclass(frozen=True, slots=True)
class UpdateItemInput:
    claim_id: EntityId
    item_id: EntityId
    title: str
    description: str


@dataclass(frozen=True, slots=True)
class DeleteItemInput:
    claim_id: EntityId
    item_id: EntityId


@dataclass(frozen=True, slots=True)
class DuplicateItemInput:
    claim_id: EntityId
    item_id: EntityId


@dataclass(frozen=True, slots=True)
class ReorderItemsInput:
    claim_id: EntityId
    orders: Mapping[EntityId, int] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class MoveItemInput:
    claim_id: EntityId
    item_id: EntityId
    position: int


def move_item(items: tuple[Item, ...], item_id: EntityId, position: int) -> dict[EntityId, int]:
    """Return the order mapping after moving ``item_id`` to ``position`` (0-based)."""

    ids = [item.id for item in items]
    if item_id not in ids:
        raise EntityNotFoundError("Item not found")
    ids.remove(item_id)
    ids.insert(max(0, min(position, len(ids))), item_id)
    return {entity_id: index for index, entity_id in enumerate(ids)}


class CreateItem(ClaimsMutation[CreateItemInput, Item]):
    """Show the new item at the top of the list while the server creates it."""

    name = "create-item"
    failure_message = "Failed to create item"

    def on_mutate(self, variables: CreateItemInput, scope: OptimisticScope) -> None:
        now = utcnow()
        placeholder = scope.track(
            Item(
                id=new_temp_id(),
                claim_id=variables.claim_id,
                title=variables.title,
                description=variables.description,
                order=variables.order if variables.order is not None else 0,
                created_at=now,
                updated_at=now,
                origin=Origin.OPTIMISTIC,
            )
        )
        scope.apply(
            claim_key(variables.claim_id),
            map_items(lambda items: (placeholder, *items)),
        )

    async def execute(self, variables: CreateItemInput) -> Item:
        return await self.gateway.create_item(
            variables.claim_id,
            title=variables.title,
            description=variables.description,
            order=variables.order,
        )

    def on_success(
        self,
        result: Item,
        variables: CreateItemInput,
        context: MutationContext,
    ) -> None:
        (temp_id,) = context.temporary_ids()
        self.cache.set(
            claim_key(variables.claim_id),
            map_items(lambda items: reconcile.replace(items, temp_id, result)),
        )

    def success_message(self, result: Item, variables: CreateItemInput) -> str | None:
        return "Item created"


class UpdateItem(ClaimsMutation[UpdateItemInput, Item]):
    name = "update-item"
    failure_message = "Failed to save item"

    def on_mutate(self, variables: UpdateItemInput, scope: OptimisticScope) -> None:
        key = claim_key(variables.claim_id)
        ensure_confirmed(find_item(scope.read(key), variables.item_id), STILL_CREATING)
        scope.apply(
            key,
            map_items(
                lambda items: reconcile.update_where(
                    items,
                    variables.item_id,
                    lambda item: dataclass_replace(
                        item, title=variables.title, description=variables.description
                    ),
                )
            ),
        )

    async def execute(self, variables: UpdateItemInput) -> Item:
        return await self.gateway.update_item(
            variables.claim_id,
            variables.item_id,
            title=variables.title,
            description=variables.description,
        )

    def on_success(
        self,
        result: Item,
        variables: UpdateItemInput,
        context: MutationContext,
    ) -> None:
        # attachments may be mid-upload, so only the edited fields are taken over
        self.cache.set(
            claim_key(variables.claim_id),
            map_items(
                lambda items: reconcile.update_where(
                    items,
                    variables.item_id,
                    lambda item: dataclass_replace(
                        item,
                        title=result.title,
                        description=result.description,
                        updated_at=result.updated_at,
                    ),
                )
            ),
        )

    def success_message(self, result: Item, variables: UpdateItemInput) -> str | None:
        return "Item saved"


class DeleteItem(ClaimsMutation[DeleteItemInput, None]):
    name = "delete-item"
    failure_message = "Failed to delete item"

    def on_mutate(self, variables: DeleteItemInput, scope: OptimisticScope) -> None:
        key = claim_key(variables.claim_id)
        ensure_confirmed(find_item(scope.read(key), variables.item_id), STILL_CREATING)
        scope.apply(
            key,
            map_items(lambda items: reconcile.remove(items, variables.item_id)),
        )

    async def execute(self, variables: DeleteItemInput) -> None:
        await self.gateway.delete_item(variables.claim_id, variables.item_id)

    def success_message(self, result: None, variables: DeleteItemInput) -> str | None:
        return "Item deleted"


class DuplicateItem(ClaimsMutation[DuplicateItemInput, Item]):
    """Insert a copy right after the source item; attachments are not copied.

    The copy's title and description are fixed in ``on_mutate`` so the item
    created on the server matches the placeholder even if the source is
    edited meanwhile. Instances are single-use.
    """

    name = "duplicate-item"
    failure_message = "Failed to duplicate item"

    def __init__(self, cache: QueryCache, gateway: ClaimsGateway) -> None:
        super().__init__(cache, gateway)
        self._copy: Item | None = None

    def on_mutate(self, variables: DuplicateItemInput, scope: OptimisticScope) -> None:
        source = find_item(scope.read(claim_key(variables.claim_id)), variables.item_id)
        if source is None:
            raise EntityNotFoundError("Item not found")
        now = utcnow()
        placeholder = scope.track(
            Item(
                id=new_temp_id(),
                claim_id=variables.claim_id,
                title=f"{source.title} (Copy)",
                description=source.description,
                order=source.order + 1,
                created_at=now,
                updated_at=now,
                origin=Origin.OPTIMISTIC,
            )
        )
        self._copy = placeholder
        scope.apply(
            claim_key(variables.claim_id),
            map_items(lambda items: reconcile.insert_after(items, variables.item_id, placeholder)),
        )

    async def execute(self, variables: DuplicateItemInput) -> Item:
        if self._copy is None:
            raise EntityNotFoundError("Item not found")
        return await self.gateway.create_item(
            variables.claim_id,
            title=self._copy.title,
            description=self._copy.description,
        )

    def on_success(
        self,
        result: Item,
        variables: DuplicateItemInput,
        context: MutationContext,
    ) -> None:
        (temp_id,) = context.temporary_ids()
        self.cache.set(
            claim_key(variables.claim_id),
            map_items(lambda items: reconcile.replace(items, temp_id, result)),
        )

    def success_message(self, result: Item, variables: DuplicateItemInput) -> str | None:
        return "Item duplicated"


class ReorderItems(ClaimsMutation[ReorderItemsInput | MoveItemInput, tuple[Item, ...]]):
    """Re-sort a claim's items locally, then persist the new order.

    Placeholders take part in the local ordering but are left out of the
    mapping sent to the server, which does not know their ids yet.
    Instances are single-use.
    """

    name = "reorder-items"
    failure_message = "Failed to update order"

    def __init__(self, cache: QueryCache, gateway: ClaimsGateway) -> None:
        super().__init__(cache, gateway)
        self._server_orders: dict[EntityId, int] = {}

    def on_mutate(
        self,
        variables: ReorderItemsInput | MoveItemInput,
        scope: OptimisticScope,
    ) -> None:
        key = claim_key(variables.claim_id)
        claim = scope.read(key)
        items = claim.items if isinstance(claim, ClaimDetail) else ()
        if isinstance(variables, MoveItemInput):
            orders = move_item(items, variables.item_id, variables.position)
        else:
            orders = dict(variables.orders)

        placeholders = {item.id for item in items if is_temporary(item)}
        self._server_orders = {
            item_id: order for item_id, order in orders.items() if item_id not in placeholders
        }
        scope.apply(key, map_items(lambda items: reconcile.apply_order(items, orders)))

    async def execute(self, variables: ReorderItemsInput | MoveItemInput) -> tuple[Item, ...]:
        if not self._server_orders:
            return ()
        return await self.gateway.reorder_items(variables.claim_id, self._server_orders)

    def on_success(
        self,
        result: tuple[Item, ...],
        variables: ReorderItemsInput | MoveItemInput,
        context: MutationContext,
    ) -> None:
        server_orders = {item.id: item.order for item in result}
        self.cache.set(
            claim_key(variables.claim_id),
            map_items(lambda items: reconcile.apply_order(items, server_orders)),
        )
