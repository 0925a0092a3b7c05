"""Translate Claims API payloads into cached domain entities."""

from __future__ import annotations

from claimdesk.domain.model import (
    Attachment,
    ClaimantSummary,
    ClaimDetail,
    ClaimSummary,
    Item,
    Origin,
)

from .schema import (
    AttachmentPayload,
    ClaimantPayload,
    ClaimPayload,
    ItemPayload,
)


def attachment_from_payload(payload: AttachmentPayload) -> Attachment:
    return Attachment(
        id=payload.id,
        item_id=payload.item_id,
        filename=payload.filename,
        url=payload.url,
        thumbnail_url=payload.thumbnail_url,
        mime_type=payload.mime_type,
        size=payload.size,
        width=payload.width,
        height=payload.height,
        public_id=payload.public_id,
        format=payload.format,
        created_at=payload.created_at,
        updated_at=payload.updated_at,
        origin=Origin.CONFIRMED,
    )


def item_from_payload(payload: ItemPayload) -> Item:
    return Item(
        id=payload.id,
        claim_id=payload.claim_id,
        title=payload.title,
        description=payload.description,
        order=payload.order,
        attachments=tuple(attachment_from_payload(att) for att in payload.attachments),
        created_at=payload.created_at,
        updated_at=payload.updated_at,
        origin=Origin.CONFIRMED,
    )


def _claimant(payload: ClaimantPayload | None) -> ClaimantSummary | None:
    if payload is None:
        return None
    return ClaimantSummary(id=payload.id, name=payload.name, email=payload.email)


def claim_summary_from_payload(payload: ClaimPayload) -> ClaimSummary:
    if payload.count is not None:
        item_count = payload.count.items
    else:
        item_count = len(payload.items or ())
    return ClaimSummary(
        id=payload.id,
        title=payload.title,
        claim_number=payload.claim_number,
        status=payload.status,
        description=payload.description,
        amount=payload.amount,
        customer=payload.customer,
        adjustor_name=payload.adjustor_name,
        adjustor_phone=payload.adjustor_phone,
        adjustor_email=payload.adjustor_email,
        claimant_name=payload.claimant_name,
        claimant_phone=payload.claimant_phone,
        claimant_email=payload.claimant_email,
        claimant_address=payload.claimant_address,
        claimant=_claimant(payload.claimant),
        created_at=payload.created_at,
        updated_at=payload.updated_at,
        origin=Origin.CONFIRMED,
        item_count=item_count,
    )


def claim_detail_from_payload(payload: ClaimPayload) -> ClaimDetail:
    items = sorted((item_from_payload(item) for item in payload.items or ()), key=lambda i: i.order)
    return ClaimDetail(
        id=payload.id,
        title=payload.title,
        claim_number=payload.claim_number,
        status=payload.status,
        description=payload.description,
        amount=payload.amount,
        customer=payload.customer,
        adjustor_name=payload.adjustor_name,
        adjustor_phone=payload.adjustor_phone,
        adjustor_email=payload.adjustor_email,
        claimant_name=payload.claimant_name,
        claimant_phone=payload.claimant_phone,
        claimant_email=payload.claimant_email,
        claimant_address=payload.claimant_address,
        claimant=_claimant(payload.claimant),
        created_at=payload.created_at,
        updated_at=payload.updated_at,
        origin=Origin.CONFIRMED,
        items=tuple(items),
    )


def parse_attachment(raw: object) -> Attachment:
    return attachment_from_payload(AttachmentPayload.model_validate(raw))


def parse_item(raw: object) -> Item:
    return item_from_payload(ItemPayload.model_validate(raw))


def parse_items(raw: object) -> tuple[Item, ...]:
    if not isinstance(raw, list):
        raise TypeError("Expected a list of items")
    return tuple(parse_item(entry) for entry in raw)


def parse_claim_summary(raw: object) -> ClaimSummary:
    return claim_summary_from_payload(ClaimPayload.model_validate(raw))


def parse_claim_detail(raw: object) -> ClaimDetail:
    return claim_detail_from_payload(ClaimPayload.model_validate(raw))
