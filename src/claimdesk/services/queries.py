"""Cached reads of claim data."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .keys import CLAIMS_KEY, claim_key

if TYPE_CHECKING:
    from claimdesk.domain.cache import QueryCache
    from claimdesk.domain.model import ClaimDetail, ClaimSummary, EntityId
    from claimdesk.domain.ports.claims import ClaimsGateway


@dataclass(slots=True)
class ClaimQueries:
    """Serve claim data from the cache, loading it when missing or stale."""

    cache: QueryCache
    gateway: ClaimsGateway

    async def list_claims(self, *, refresh: bool = False) -> tuple[ClaimSummary, ...]:
        if not refresh and not self.cache.is_stale(CLAIMS_KEY):
            return self.cache.get(CLAIMS_KEY)
        claims = await self.cache.fetch(CLAIMS_KEY, self.gateway.list_claims)
        return claims if claims is not None else ()

    async def get_claim(self, claim_id: EntityId, *, refresh: bool = False) -> ClaimDetail | None:
        key = claim_key(claim_id)
        if not refresh and not self.cache.is_stale(key):
            return self.cache.get(key)

        async def load() -> ClaimDetail:
            return await self.gateway.get_claim(claim_id)

        return await self.cache.fetch(key, load)
