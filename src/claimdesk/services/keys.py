"""Cache keys for claim data."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from claimdesk.domain.cache import QueryKey
    from claimdesk.domain.model import EntityId

CLAIMS_KEY: Final[tuple[str]] = ("claims",)


def claim_key(claim_id: EntityId) -> QueryKey:
    return (*CLAIMS_KEY, claim_id)
