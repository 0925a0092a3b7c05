"""Optimistic item edits against a shared session cache."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import TYPE_CHECKING

from claimdesk.adapters.claims_api import ClaimsApiError
from claimdesk.domain.errors import EntityNotFoundError, TemporaryEntityError
from claimdesk.domain.model import ClaimDetail, Origin
from claimdesk.domain.mutations import MutationFailure, MutationSuccess
from claimdesk.domain.ports.claims import UploadFile
from claimdesk.services import claim_key, move_item
from tests.helpers.claims import make_claim, make_item

if TYPE_CHECKING:
    from claimdesk.app import ClaimsSession
    from tests.helpers.claims import FakeClaimsGateway, RecordingNotifier

CLAIM_KEY = claim_key("claim-1")
PHOTO = UploadFile(filename="kitchen.jpg", content=b"JPEGDATA", mime_type="image/jpeg")


def _items(session: ClaimsSession) -> list[tuple[str, str, int]]:
    claim = session.cache.get(CLAIM_KEY)
    assert isinstance(claim, ClaimDetail)
    return [(item.id, item.title, item.order) for item in claim.items]


def _claim(session: ClaimsSession) -> ClaimDetail:
    claim = session.cache.get(CLAIM_KEY)
    assert isinstance(claim, ClaimDetail)
    return claim


def test_create_item_shows_placeholder_then_server_item(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
    notifier: RecordingNotifier,
) -> None:
    async def scenario() -> tuple[ClaimDetail, object]:
        gateway.gates["create_item"] = asyncio.Event()
        task = asyncio.create_task(session.create_item("claim-1", title="Ceiling"))
        await asyncio.sleep(0)
        during = _claim(session)
        gateway.gates["create_item"].set()
        return during, await task

    during, result = asyncio.run(scenario())

    placeholder = during.items[0]
    assert placeholder.title == "Ceiling"
    assert placeholder.origin is Origin.OPTIMISTIC
    assert placeholder.id.startswith("temp-")
    assert isinstance(result, MutationSuccess)
    ids = [item_id for item_id, _, _ in _items(session)]
    assert ids[0] == result.value.id
    assert ids[1:] == ["item-1", "item-2", "item-3"]
    assert all(item.origin is Origin.CONFIRMED for item in _claim(session).items)
    assert notifier.successes == ["Item created"]


def test_create_item_failure_restores_claim(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
    notifier: RecordingNotifier,
    seeded_claim: ClaimDetail,
) -> None:
    gateway.failures["create_item"] = ClaimsApiError("Failed to create item", status_code=500)

    result = asyncio.run(session.create_item("claim-1", title="Ceiling"))

    assert isinstance(result, MutationFailure)
    assert _claim(session) == seeded_claim
    assert notifier.errors == ["Failed to create item"]


def test_update_item_applies_edit_and_merges_server_timestamps(
    session: ClaimsSession,
    notifier: RecordingNotifier,
) -> None:
    result = asyncio.run(
        session.update_item("claim-1", "item-2", title="Drywall", description="North wall")
    )

    assert isinstance(result, MutationSuccess)
    item = _claim(session).find_item("item-2")
    assert item is not None
    assert (item.title, item.description) == ("Drywall", "North wall")
    assert item.updated_at == result.value.updated_at
    assert item.order == 1
    assert notifier.errors == []
    assert notifier.successes == ["Item saved"]


def test_update_item_failure_restores_previous_title(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
    seeded_claim: ClaimDetail,
) -> None:
    gateway.failures["update_item"] = ClaimsApiError("Item is locked", status_code=409)

    result = asyncio.run(
        session.update_item("claim-1", "item-2", title="Drywall", description="North wall")
    )

    assert isinstance(result, MutationFailure)
    assert result.message == "Item is locked"
    assert _claim(session) == seeded_claim


def test_delete_survives_refetch_started_before_it(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
    notifier: RecordingNotifier,
) -> None:
    async def scenario() -> object:
        gateway.gates["get_claim"] = asyncio.Event()
        refetch = asyncio.create_task(session.get_claim("claim-1", refresh=True))
        await asyncio.sleep(0)
        result = await session.delete_item("claim-1", "item-2")
        gateway.gates["get_claim"].set()
        await refetch
        return result

    result = asyncio.run(scenario())

    assert isinstance(result, MutationSuccess)
    assert [item_id for item_id, _, _ in _items(session)] == ["item-1", "item-3"]
    assert notifier.errors == []


def test_delete_failure_brings_item_back(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
    notifier: RecordingNotifier,
    seeded_claim: ClaimDetail,
) -> None:
    gateway.failures["delete_item"] = ConnectionError("offline")

    result = asyncio.run(session.delete_item("claim-1", "item-2"))

    assert isinstance(result, MutationFailure)
    assert _claim(session) == seeded_claim
    assert notifier.errors == ["Failed to delete item"]


def test_duplicate_item_inserts_copy_after_source(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
) -> None:
    async def scenario() -> tuple[list[tuple[str, str, int]], object]:
        gateway.gates["create_item"] = asyncio.Event()
        task = asyncio.create_task(session.duplicate_item("claim-1", "item-1"))
        await asyncio.sleep(0)
        during = _items(session)
        gateway.gates["create_item"].set()
        return during, await task

    during, result = asyncio.run(scenario())

    assert during[1][1] == "Title of item-1 (Copy)"
    assert during[1][0].startswith("temp-")
    assert isinstance(result, MutationSuccess)
    after = _items(session)
    assert after[1][0] == result.value.id
    assert after[1][1] == "Title of item-1 (Copy)"
    assert len(after) == 4


def test_duplicate_of_unknown_item_fails_without_touching_cache(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
    notifier: RecordingNotifier,
    seeded_claim: ClaimDetail,
) -> None:
    result = asyncio.run(session.duplicate_item("claim-1", "missing"))

    assert isinstance(result, MutationFailure)
    assert isinstance(result.error, EntityNotFoundError)
    assert notifier.errors == ["Item not found"]
    assert _claim(session) == seeded_claim
    assert "create_item" not in gateway.call_names()


def test_move_item_reorders_and_sends_new_positions(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
) -> None:
    result = asyncio.run(session.move_item("claim-1", "item-3", 0))

    assert isinstance(result, MutationSuccess)
    assert _items(session) == [
        ("item-3", "Title of item-3", 0),
        ("item-1", "Title of item-1", 1),
        ("item-2", "Title of item-2", 2),
    ]
    assert gateway.calls[-1] == (
        "reorder_items",
        ("claim-1", {"item-3": 0, "item-1": 1, "item-2": 2}),
    )


def test_rejected_drag_restores_original_five_item_order(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
    notifier: RecordingNotifier,
) -> None:
    five = make_claim(items=[make_item(f"item-{n}", order=n - 1) for n in range(1, 6)])
    session.cache.set(CLAIM_KEY, five)
    gateway.failures["reorder_items"] = ConnectionError("reset by peer")

    async def scenario() -> tuple[list[tuple[str, str, int]], object]:
        gateway.gates["reorder_items"] = asyncio.Event()
        task = asyncio.create_task(session.move_item("claim-1", "item-3", 0))
        await asyncio.sleep(0)
        during = _items(session)
        gateway.gates["reorder_items"].set()
        return during, await task

    during, result = asyncio.run(scenario())

    assert [item_id for item_id, _, _ in during] == [
        "item-3",
        "item-1",
        "item-2",
        "item-4",
        "item-5",
    ]
    assert isinstance(result, MutationFailure)
    assert _claim(session) == five
    assert notifier.errors == ["Failed to update order"]


def test_move_item_helper_clamps_position(seeded_claim: ClaimDetail) -> None:
    assert move_item(seeded_claim.items, "item-1", 10) == {"item-2": 0, "item-3": 1, "item-1": 2}


def test_mutation_on_uncached_claim_writes_nothing(
    session: ClaimsSession,
    notifier: RecordingNotifier,
) -> None:
    result = asyncio.run(session.delete_item("claim-9", "item-1"))

    assert isinstance(result, MutationSuccess)
    assert claim_key("claim-9") not in session.cache
    assert notifier.errors == []


def test_move_item_leaves_placeholders_out_of_server_order(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
) -> None:
    async def scenario() -> tuple[object, object]:
        gateway.gates["create_item"] = asyncio.Event()
        create = asyncio.create_task(session.create_item("claim-1", title="Ceiling"))
        await asyncio.sleep(0)
        moved = await session.move_item("claim-1", "item-3", 0)
        gateway.gates["create_item"].set()
        return moved, await create

    moved, created = asyncio.run(scenario())

    assert isinstance(moved, MutationSuccess)
    assert isinstance(created, MutationSuccess)
    reorder_calls = [args for name, args in gateway.calls if name == "reorder_items"]
    assert reorder_calls == [("claim-1", {"item-3": 0, "item-1": 2, "item-2": 3})]
    ids = [item_id for item_id, _, _ in _items(session)]
    assert ids == ["item-3", created.value.id, "item-1", "item-2"]


def test_edits_of_placeholder_items_never_reach_the_server(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
    notifier: RecordingNotifier,
) -> None:
    async def scenario() -> list[object]:
        gateway.gates["create_item"] = asyncio.Event()
        create = asyncio.create_task(session.create_item("claim-1", title="Ceiling"))
        await asyncio.sleep(0)
        temp_id = _claim(session).items[0].id
        results = [
            await session.update_item("claim-1", temp_id, title="Roof", description=""),
            await session.delete_item("claim-1", temp_id),
            await session.add_attachments("claim-1", temp_id, [PHOTO]),
        ]
        gateway.gates["create_item"].set()
        await create
        return results

    results = asyncio.run(scenario())

    assert all(isinstance(result, MutationFailure) for result in results)
    assert all(isinstance(result.error, TemporaryEntityError) for result in results)
    assert notifier.errors == ["Item is still being created"] * 3
    assert gateway.call_names() == ["create_item"]
    assert _items(session)[0][1] == "Ceiling"


def test_moving_unknown_item_fails_through_the_executor(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
    notifier: RecordingNotifier,
    seeded_claim: ClaimDetail,
) -> None:
    result = asyncio.run(session.move_item("claim-1", "missing", 0))

    assert isinstance(result, MutationFailure)
    assert isinstance(result.error, EntityNotFoundError)
    assert notifier.errors == ["Item not found"]
    assert _claim(session) == seeded_claim
    assert "reorder_items" not in gateway.call_names()


def test_duplicate_sends_the_copy_shown_in_the_placeholder(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
) -> None:
    async def scenario() -> object:
        gateway.gates["create_item"] = asyncio.Event()
        task = asyncio.create_task(session.duplicate_item("claim-1", "item-1"))
        await asyncio.sleep(0)
        # the source changes while the copy is being created
        session.cache.set(
            CLAIM_KEY,
            lambda claim: claim.with_items(
                tuple(
                    replace(item, title="Renamed") if item.id == "item-1" else item
                    for item in claim.items
                )
            ),
        )
        gateway.gates["create_item"].set()
        return await task

    result = asyncio.run(scenario())

    assert isinstance(result, MutationSuccess)
    assert gateway.calls == [("create_item", ("claim-1", "Title of item-1 (Copy)"))]


def test_failed_mutation_keeps_placeholder_written_before_it_started(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
) -> None:
    gateway.failures["delete_item"] = ConnectionError("offline")

    async def scenario() -> tuple[list[str], object, object]:
        gateway.gates["create_item"] = asyncio.Event()
        create = asyncio.create_task(session.create_item("claim-1", title="Ceiling"))
        await asyncio.sleep(0)
        deleted = await session.delete_item("claim-1", "item-2")
        after_rollback = [item_id for item_id, _, _ in _items(session)]
        gateway.gates["create_item"].set()
        return after_rollback, deleted, await create

    after_rollback, deleted, created = asyncio.run(scenario())

    assert isinstance(deleted, MutationFailure)
    assert after_rollback[0].startswith("temp-")
    assert after_rollback[1:] == ["item-1", "item-2", "item-3"]
    assert isinstance(created, MutationSuccess)
    assert [item_id for item_id, _, _ in _items(session)] == [
        created.value.id,
        "item-1",
        "item-2",
        "item-3",
    ]


def test_late_rollback_overwrites_change_settled_meanwhile(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
    seeded_claim: ClaimDetail,
) -> None:
    # overlapping mutations on one key are not serialized: last write wins
    gateway.failures["create_item"] = ConnectionError("offline")

    async def scenario() -> tuple[object, object]:
        gateway.gates["create_item"] = asyncio.Event()
        create = asyncio.create_task(session.create_item("claim-1", title="Ceiling"))
        await asyncio.sleep(0)
        deleted = await session.delete_item("claim-1", "item-2")
        gateway.gates["create_item"].set()
        return deleted, await create

    deleted, created = asyncio.run(scenario())

    assert isinstance(deleted, MutationSuccess)
    assert isinstance(created, MutationFailure)
    assert _claim(session) == seeded_claim
    assert "item-2" in [item_id for item_id, _, _ in _items(session)]
