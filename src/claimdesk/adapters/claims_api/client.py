"""HTTP client for the claims API."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx

from claimdesk.adapters.http_resilience import ResilientClient
from claimdesk.config.claims_api import ClaimsApiConfig, get_claims_api_config
from claimdesk.domain.errors import UserFacingError
from claimdesk.domain.ports.claims import ClaimsGateway

from .schema import ErrorPayload
from .translator import (
    parse_attachment,
    parse_claim_detail,
    parse_claim_summary,
    parse_item,
    parse_items,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from claimdesk.config.http_resilience import ResilienceConfig
    from claimdesk.domain.model import Attachment, ClaimDetail, ClaimSummary, EntityId, Item
    from claimdesk.domain.ports.claims import NewClaim, UploadFile

log = getLogger(__name__)

UPLOAD_ERROR_MESSAGES: Final[dict[int, str]] = {
    400: "Invalid file format",
    408: "Upload timed out - please try again",
    413: "File too large (max 100MB)",
    429: "Too many uploads - please wait a moment",
    500: "Server error - please try again",
    502: "Server error - please try again",
    503: "Server error - please try again",
}


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class ClaimsApiError(UserFacingError):
    """Raised when the claims API rejects a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _server_error_message(response: httpx.Response) -> str | None:
    try:
        payload = ErrorPayload.model_validate(response.json())
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
        return None
    return payload.error or None


def _raise_for_status(
    response: httpx.Response,
    fallback: str,
    *,
    status_messages: Mapping[int, str] | None = None,
) -> None:
    if response.is_success:
        return
    message = _server_error_message(response)
    if message is None and status_messages is not None:
        message = status_messages.get(response.status_code)
    if message is None:
        message = fallback
    log.debug("Claims API %s %s -> %s", response.request.method, response.url, response.status_code)
    raise ClaimsApiError(message, status_code=response.status_code)


def _upload_failure_fallback(status_code: int) -> str:
    return f"Upload failed (error {status_code})"


@dataclass(slots=True)
class ClaimsApiClient(ClaimsGateway):
    """Async gateway to the claims REST endpoints.

    Keeps one pooled client for JSON calls and one for uploads until
    :meth:`aclose` is awaited.
    """

    config: ClaimsApiConfig = field(default_factory=get_claims_api_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _client: ResilientClient | None = field(default=None, init=False, repr=False)
    _upload_client: ResilientClient | None = field(default=None, init=False, repr=False)

    async def __aenter__(self) -> ClaimsApiClient:
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        for client in (self._client, self._upload_client):
            if client is not None:
                await client.aclose()
        self._client = None
        self._upload_client = None

    @property
    def client(self) -> ResilientClient:
        if self._client is None:
            self._client = self.client_factory(self.config.resilience)
        return self._client

    @property
    def upload_client(self) -> ResilientClient:
        if self._upload_client is None:
            self._upload_client = self.client_factory(self.config.upload_resilience)
        return self._upload_client

    async def list_claims(self) -> tuple[ClaimSummary, ...]:
        response = await self.client.get("/api/claims")
        _raise_for_status(response, "Failed to fetch claims")
        payload = response.json()
        if not isinstance(payload, list):
            raise ClaimsApiError("Unexpected claims list payload")
        return tuple(parse_claim_summary(entry) for entry in payload)

    async def get_claim(self, claim_id: EntityId) -> ClaimDetail:
        response = await self.client.get(f"/api/claims/{claim_id}")
        _raise_for_status(response, "Failed to fetch claim")
        return parse_claim_detail(response.json())

    async def create_claim(self, claim: NewClaim) -> ClaimSummary:
        body = {
            "title": claim.title,
            "customer": claim.customer,
            "adjustorName": claim.adjustor_name,
            "adjustorPhone": claim.adjustor_phone,
            "adjustorEmail": claim.adjustor_email,
            "claimantName": claim.claimant_name,
            "claimantPhone": claim.claimant_phone,
            "claimantEmail": claim.claimant_email,
            "claimantAddress": claim.claimant_address,
        }
        response = await self.client.post(
            "/api/claims",
            json={key: value for key, value in body.items() if value is not None},
        )
        _raise_for_status(response, "Failed to create claim")
        return parse_claim_summary(response.json())

    async def create_item(
        self,
        claim_id: EntityId,
        *,
        title: str,
        description: str,
        order: int | None = None,
    ) -> Item:
        body: dict[str, object] = {"title": title, "description": description}
        if order is not None:
            body["order"] = order
        response = await self.client.post(f"/api/claims/{claim_id}/items", json=body)
        _raise_for_status(response, "Failed to create item")
        return parse_item(response.json())

    async def update_item(
        self,
        claim_id: EntityId,
        item_id: EntityId,
        *,
        title: str,
        description: str,
    ) -> Item:
        response = await self.client.patch(
            f"/api/claims/{claim_id}/items/{item_id}",
            json={"title": title, "description": description},
        )
        _raise_for_status(response, "Failed to update item")
        return parse_item(response.json())

    async def delete_item(self, claim_id: EntityId, item_id: EntityId) -> None:
        response = await self.client.delete(f"/api/claims/{claim_id}/items/{item_id}")
        _raise_for_status(response, "Failed to delete item")

    async def reorder_items(
        self,
        claim_id: EntityId,
        orders: Mapping[EntityId, int],
    ) -> tuple[Item, ...]:
        response = await self.client.patch(
            f"/api/claims/{claim_id}/items",
            json={"items": [{"id": item_id, "order": order} for item_id, order in orders.items()]},
        )
        _raise_for_status(response, "Failed to reorder items")
        return parse_items(response.json())

    async def upload_attachment(
        self,
        claim_id: EntityId,
        item_id: EntityId,
        file: UploadFile,
    ) -> Attachment:
        try:
            response = await self.upload_client.post(
                f"/api/claims/{claim_id}/items/{item_id}/attachments",
                files={"file": (file.filename, file.content, file.mime_type)},
            )
        except httpx.TimeoutException as exc:
            raise ClaimsApiError(f"Upload timed out for {file.filename}") from exc
        except httpx.TransportError as exc:
            raise ClaimsApiError("Network error - check your connection") from exc
        _raise_for_status(
            response,
            _upload_failure_fallback(response.status_code),
            status_messages=UPLOAD_ERROR_MESSAGES,
        )
        return parse_attachment(response.json())

    async def delete_attachment(
        self,
        claim_id: EntityId,
        item_id: EntityId,
        attachment_id: EntityId,
    ) -> None:
        response = await self.client.delete(
            f"/api/claims/{claim_id}/items/{item_id}/attachments/{attachment_id}"
        )
        _raise_for_status(response, "Failed to delete attachment")
