"""Claims API response schemas."""

from __future__ import annotations

import logging
from datetime import datetime  # noqa: TC003
from decimal import Decimal  # noqa: TC003
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from claimdesk.domain.model import ClaimStatus

log = logging.getLogger(__name__)


class ClaimsApiBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "Claims API %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class AttachmentPayload(ClaimsApiBaseModel):
    id: str
    item_id: str = Field(alias="itemId")
    filename: str
    url: str
    thumbnail_url: str | None = Field(default=None, alias="thumbnailUrl")
    mime_type: str = Field(alias="mimeType")
    size: int
    width: int | None = None
    height: int | None = None
    public_id: str = Field(default="", alias="publicId")
    version: int | str | None = None
    format: str | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class ItemPayload(ClaimsApiBaseModel):
    id: str
    claim_id: str = Field(alias="claimId")
    title: str
    description: str = ""
    order: int = 0
    attachments: list[AttachmentPayload] = Field(default_factory=list["AttachmentPayload"])
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class ClaimantPayload(ClaimsApiBaseModel):
    id: str
    name: str | None = None
    email: str


class ClaimCountPayload(ClaimsApiBaseModel):
    items: int = 0


class ClaimPayload(ClaimsApiBaseModel):
    id: str
    title: str
    claim_number: str = Field(alias="claimNumber")
    status: ClaimStatus = ClaimStatus.PENDING
    description: str | None = None
    amount: Decimal | None = None
    customer: str | None = None
    adjustor_name: str | None = Field(default=None, alias="adjustorName")
    adjustor_phone: str | None = Field(default=None, alias="adjustorPhone")
    adjustor_email: str | None = Field(default=None, alias="adjustorEmail")
    claimant_name: str | None = Field(default=None, alias="claimantName")
    claimant_phone: str | None = Field(default=None, alias="claimantPhone")
    claimant_email: str | None = Field(default=None, alias="claimantEmail")
    claimant_address: str | None = Field(default=None, alias="claimantAddress")
    claimant_id: str | None = Field(default=None, alias="claimantId")
    claimant: ClaimantPayload | None = None
    count: ClaimCountPayload | None = Field(default=None, alias="_count")
    items: list[ItemPayload] | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class ErrorPayload(ClaimsApiBaseModel):
    error: str | None = None
