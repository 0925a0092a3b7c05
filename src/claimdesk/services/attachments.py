"""Attachment upload and removal with local previews."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from claimdesk.config.mutations import MAX_UPLOAD_BYTES
from claimdesk.domain import reconcile
from claimdesk.domain.errors import AttachmentTooLargeError
from claimdesk.domain.model import Attachment, Origin, new_temp_id, utcnow

from .base import STILL_CREATING, ClaimsMutation, ensure_confirmed, find_item, map_attachments
from .keys import claim_key

if TYPE_CHECKING:
    from claimdesk.domain.cache import QueryCache
    from claimdesk.domain.model import EntityId
    from claimdesk.domain.mutations import MutationContext, OptimisticScope
    from claimdesk.domain.ports.claims import ClaimsGateway, UploadFile
    from claimdesk.domain.ports.notifications import ResourceReleaser

type PreviewOpener = Callable[[bytes], str]


@dataclass(frozen=True, slots=True)
class AddAttachmentsInput:
    claim_id: EntityId
    item_id: EntityId
    files: tuple[UploadFile, ...]


@dataclass(frozen=True, slots=True)
class RemoveAttachmentInput:
    claim_id: EntityId
    item_id: EntityId
    attachment_id: EntityId


class AddAttachments(ClaimsMutation[AddAttachmentsInput, tuple[Attachment, ...]]):
    """Append one previewable placeholder per file, then upload the files in order.

    Each uploaded attachment replaces only its own placeholder, so uploads
    started back to back on the same item reconcile independently.
    """

    name = "add-attachments"
    failure_message = "Failed to upload attachments"

    def __init__(
        self,
        cache: QueryCache,
        gateway: ClaimsGateway,
        *,
        open_preview: PreviewOpener,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
    ) -> None:
        super().__init__(cache, gateway)
        self.open_preview = open_preview
        self.max_upload_bytes = max_upload_bytes

    def on_mutate(self, variables: AddAttachmentsInput, scope: OptimisticScope) -> None:
        key = claim_key(variables.claim_id)
        ensure_confirmed(find_item(scope.read(key), variables.item_id), STILL_CREATING)
        now = utcnow()
        placeholders: list[Attachment] = []
        for file in variables.files:
            preview = scope.hold(self.open_preview(file.content))
            placeholders.append(
                scope.track(
                    Attachment(
                        id=new_temp_id(),
                        item_id=variables.item_id,
                        filename=file.filename,
                        url=preview,
                        mime_type=file.mime_type,
                        size=file.size,
                        created_at=now,
                        updated_at=now,
                        origin=Origin.OPTIMISTIC,
                        preview=preview,
                    )
                )
            )
        scope.apply(
            key,
            map_attachments(variables.item_id, lambda attachments: (*attachments, *placeholders)),
        )

    async def execute(self, variables: AddAttachmentsInput) -> tuple[Attachment, ...]:
        for file in variables.files:
            if file.size > self.max_upload_bytes:
                raise AttachmentTooLargeError(file.filename, limit_bytes=self.max_upload_bytes)

        uploaded: list[Attachment] = []
        for file in variables.files:
            uploaded.append(
                await self.gateway.upload_attachment(variables.claim_id, variables.item_id, file)
            )
        return tuple(uploaded)

    def on_success(
        self,
        result: tuple[Attachment, ...],
        variables: AddAttachmentsInput,
        context: MutationContext,
    ) -> None:
        pairs = tuple(zip(context.temporary_ids(), result, strict=True))
        self.cache.set(
            claim_key(variables.claim_id),
            map_attachments(
                variables.item_id,
                lambda attachments: reconcile.replace_many(attachments, pairs),
            ),
        )

    def on_error(
        self,
        error: Exception,
        variables: AddAttachmentsInput,
        context: MutationContext,
    ) -> None:
        # earlier files of the batch may already be stored server-side
        self.cache.invalidate(claim_key(variables.claim_id), exact=True)

    def success_message(
        self,
        result: tuple[Attachment, ...],
        variables: AddAttachmentsInput,
    ) -> str | None:
        count = len(result)
        return f"Uploaded {count} file{'s' if count != 1 else ''}"


class RemoveAttachment(ClaimsMutation[RemoveAttachmentInput, None]):
    name = "remove-attachment"
    failure_message = "Failed to delete attachment"

    def __init__(
        self,
        cache: QueryCache,
        gateway: ClaimsGateway,
        *,
        release_preview: ResourceReleaser,
    ) -> None:
        super().__init__(cache, gateway)
        self.release_preview = release_preview

    def on_mutate(self, variables: RemoveAttachmentInput, scope: OptimisticScope) -> None:
        key = claim_key(variables.claim_id)
        removed = _find_attachment(scope.read(key), variables)
        ensure_confirmed(removed, "Attachment is still uploading")
        if removed is not None:
            scope.context.extras["removed"] = removed
        scope.apply(
            key,
            map_attachments(
                variables.item_id,
                lambda attachments: reconcile.remove(attachments, variables.attachment_id),
            ),
        )

    async def execute(self, variables: RemoveAttachmentInput) -> None:
        await self.gateway.delete_attachment(
            variables.claim_id,
            variables.item_id,
            variables.attachment_id,
        )

    def on_success(
        self,
        result: None,
        variables: RemoveAttachmentInput,
        context: MutationContext,
    ) -> None:
        # on failure the rollback brings the attachment back, so its preview stays alive
        removed: Attachment | None = context.extras.get("removed")
        if removed is not None and removed.preview is not None:
            self.release_preview(removed.preview)


def _find_attachment(claim: object, variables: RemoveAttachmentInput) -> Attachment | None:
    item = find_item(claim, variables.item_id)
    if item is None:
        return None
    return next((att for att in item.attachments if att.id == variables.attachment_id), None)
