"""Attachment uploads with local previews."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import TYPE_CHECKING

from claimdesk.adapters.claims_api import ClaimsApiError
from claimdesk.adapters.previews import is_preview_url
from claimdesk.domain.errors import AttachmentTooLargeError, TemporaryEntityError
from claimdesk.domain.model import ClaimDetail, Origin
from claimdesk.domain.mutations import MutationFailure, MutationSuccess
from claimdesk.domain.ports.claims import UploadFile
from claimdesk.services import claim_key

if TYPE_CHECKING:
    from claimdesk.app import ClaimsSession
    from claimdesk.domain.model import Attachment
    from tests.helpers.claims import FakeClaimsGateway, RecordingNotifier

CLAIM_KEY = claim_key("claim-1")


def _attachments(session: ClaimsSession, item_id: str = "item-2") -> tuple[Attachment, ...]:
    claim = session.cache.get(CLAIM_KEY)
    assert isinstance(claim, ClaimDetail)
    item = claim.find_item(item_id)
    assert item is not None
    return item.attachments


def _file(name: str, size: int = 16) -> UploadFile:
    return UploadFile(filename=name, content=b"x" * size, mime_type="image/jpeg")


def test_back_to_back_uploads_reconcile_independently(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
    notifier: RecordingNotifier,
) -> None:
    async def scenario() -> tuple[tuple[Attachment, ...], list[object]]:
        gateway.gates["upload_attachment"] = asyncio.Event()
        first = asyncio.create_task(
            session.add_attachments("claim-1", "item-2", [_file("a.jpg")])
        )
        second = asyncio.create_task(
            session.add_attachments("claim-1", "item-2", [_file("b.jpg")])
        )
        await asyncio.sleep(0)
        during = _attachments(session)
        gateway.gates["upload_attachment"].set()
        return during, list(await asyncio.gather(first, second))

    during, results = asyncio.run(scenario())

    assert [att.filename for att in during] == ["a.jpg", "b.jpg"]
    assert all(att.origin is Origin.OPTIMISTIC for att in during)
    assert all(att.preview is not None and is_preview_url(att.url) for att in during)
    assert all(isinstance(result, MutationSuccess) for result in results)

    final = _attachments(session)
    assert [att.filename for att in final] == ["a.jpg", "b.jpg"]
    assert all(att.origin is Origin.CONFIRMED for att in final)
    assert {att.id for att in final} == {
        result.value[0].id for result in results if isinstance(result, MutationSuccess)
    }
    assert session.previews.active == frozenset()
    assert notifier.successes == ["Uploaded 1 file", "Uploaded 1 file"]


def test_upload_of_several_files_keeps_their_order(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
    notifier: RecordingNotifier,
) -> None:
    result = asyncio.run(
        session.add_attachments("claim-1", "item-1", [_file("b.jpg"), _file("c.jpg")])
    )

    assert isinstance(result, MutationSuccess)
    assert [att.filename for att in _attachments(session, "item-1")] == [
        "photo.jpg",
        "b.jpg",
        "c.jpg",
    ]
    assert gateway.call_names().count("upload_attachment") == 2
    assert notifier.successes == ["Uploaded 2 files"]


def test_oversized_file_fails_before_any_upload(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
    notifier: RecordingNotifier,
) -> None:
    big = _file("scan.pdf", size=1024 * 1024 + 1)

    result = asyncio.run(session.add_attachments("claim-1", "item-2", [_file("a.jpg"), big]))

    assert isinstance(result, MutationFailure)
    assert isinstance(result.error, AttachmentTooLargeError)
    assert notifier.errors == ["scan.pdf exceeds 1MB limit"]
    assert "upload_attachment" not in gateway.call_names()
    assert _attachments(session) == ()
    assert session.previews.active == frozenset()


def test_failed_upload_rolls_back_and_marks_claim_for_refetch(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
    notifier: RecordingNotifier,
) -> None:
    gateway.failures["upload_attachment"] = ClaimsApiError(
        "File too large (max 100MB)", status_code=413
    )

    result = asyncio.run(session.add_attachments("claim-1", "item-2", [_file("a.jpg")]))

    assert isinstance(result, MutationFailure)
    assert _attachments(session) == ()
    assert session.cache.is_stale(CLAIM_KEY)
    assert notifier.errors == ["File too large (max 100MB)"]
    assert session.previews.active == frozenset()


def test_remove_attachment_releases_its_preview_on_success(session: ClaimsSession) -> None:
    handle = session.previews.open(b"local bytes")
    claim = session.cache.get(CLAIM_KEY)
    assert isinstance(claim, ClaimDetail)
    item = claim.items[0]
    pending = replace(item.attachments[0], preview=handle, url=handle)
    session.cache.set(CLAIM_KEY, claim.with_items((item.with_attachments((pending,)),)))

    result = asyncio.run(session.remove_attachment("claim-1", "item-1", "att-1"))

    assert isinstance(result, MutationSuccess)
    assert _attachments(session, "item-1") == ()
    assert handle not in session.previews.active


def test_remove_attachment_failure_restores_it_and_keeps_preview(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
    notifier: RecordingNotifier,
) -> None:
    handle = session.previews.open(b"local bytes")
    claim = session.cache.get(CLAIM_KEY)
    assert isinstance(claim, ClaimDetail)
    item = claim.items[0]
    pending = replace(item.attachments[0], preview=handle, url=handle)
    session.cache.set(CLAIM_KEY, claim.with_items((item.with_attachments((pending,)),)))
    gateway.failures["delete_attachment"] = ClaimsApiError("Failed to delete attachment")

    result = asyncio.run(session.remove_attachment("claim-1", "item-1", "att-1"))

    assert isinstance(result, MutationFailure)
    assert _attachments(session, "item-1") == (pending,)
    assert handle in session.previews.active
    assert notifier.errors == ["Failed to delete attachment"]


def test_removing_an_attachment_still_uploading_is_refused(
    session: ClaimsSession,
    gateway: FakeClaimsGateway,
    notifier: RecordingNotifier,
) -> None:
    async def scenario() -> object:
        gateway.gates["upload_attachment"] = asyncio.Event()
        upload = asyncio.create_task(
            session.add_attachments("claim-1", "item-2", [_file("a.jpg")])
        )
        await asyncio.sleep(0)
        (placeholder,) = _attachments(session)
        removed = await session.remove_attachment("claim-1", "item-2", placeholder.id)
        gateway.gates["upload_attachment"].set()
        await upload
        return removed

    result = asyncio.run(scenario())

    assert isinstance(result, MutationFailure)
    assert isinstance(result.error, TemporaryEntityError)
    assert notifier.errors == ["Attachment is still uploading"]
    assert "delete_attachment" not in gateway.call_names()
    assert [att.filename for att in _attachments(session)] == ["a.jpg"]
