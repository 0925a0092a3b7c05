"""Pure helpers that swap placeholders for server entities inside cached collections.

Every function returns a new tuple and never mutates its input. None of them
raise when the element they look for is missing: a placeholder may already be
gone because the user deleted it before the server answered.
"""

from __future__ import annotations

from dataclasses import replace as dataclass_replace
from typing import TYPE_CHECKING

from claimdesk.domain.model import EntityId, Identified, Item, is_temporary

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping


def _matches_placeholder(entity: Identified, temp_id: EntityId) -> bool:
    return entity.id == temp_id and is_temporary(entity)


def replace[T: Identified](collection: Iterable[T], temp_id: EntityId, real: T) -> tuple[T, ...]:
    """Swap the placeholder ``temp_id`` for ``real``, keeping its position."""

    return tuple(real if _matches_placeholder(entity, temp_id) else entity for entity in collection)


def replace_many[T: Identified](
    collection: Iterable[T],
    pairs: Iterable[tuple[EntityId, T]],
) -> tuple[T, ...]:
    result = tuple(collection)
    for temp_id, real in pairs:
        result = replace(result, temp_id, real)
    return result


def remove[T: Identified](collection: Iterable[T], entity_id: EntityId) -> tuple[T, ...]:
    """Drop the element identified by ``entity_id``; a no-op when absent."""

    return tuple(entity for entity in collection if entity.id != entity_id)


def discard_temporaries[T: Identified](collection: Iterable[T]) -> tuple[T, ...]:
    return tuple(entity for entity in collection if not is_temporary(entity))


def update_where[T: Identified](
    collection: Iterable[T],
    entity_id: EntityId,
    update: Callable[[T], T],
) -> tuple[T, ...]:
    return tuple(update(entity) if entity.id == entity_id else entity for entity in collection)


def insert_after[T: Identified](
    collection: Iterable[T],
    anchor_id: EntityId,
    entity: T,
) -> tuple[T, ...]:
    """Insert ``entity`` right after ``anchor_id``, or append when the anchor is gone."""

    items = list(collection)
    for index, candidate in enumerate(items):
        if candidate.id == anchor_id:
            items.insert(index + 1, entity)
            return tuple(items)
    items.append(entity)
    return tuple(items)


def apply_order(items: Iterable[Item], orders: Mapping[EntityId, int]) -> tuple[Item, ...]:
    """Assign new ``order`` values and stable-sort by them.

    Items missing from ``orders`` keep their current position value.
    """

    reordered = [
        dataclass_replace(item, order=orders[item.id]) if item.id in orders else item
        for item in items
    ]
    reordered.sort(key=lambda item: item.order)
    return tuple(reordered)
