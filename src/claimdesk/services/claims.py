"""Claim list mutations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from claimdesk.domain import reconcile
from claimdesk.domain.model import (
    TEMP_CLAIM_NUMBER_PREFIX,
    TEMP_ID_PREFIX,
    ClaimantSummary,
    ClaimStatus,
    ClaimSummary,
    Origin,
    new_temp_id,
    utcnow,
)
from claimdesk.domain.ports.claims import NewClaim

from .base import ClaimsMutation
from .keys import CLAIMS_KEY

if TYPE_CHECKING:
    from claimdesk.domain.mutations import MutationContext, OptimisticScope

PLACEHOLDER_CLAIMANT = ClaimantSummary(id="temp", name="Loading...", email="")


def placeholder_claim(claim: NewClaim) -> ClaimSummary:
    now = utcnow()
    temp_id = new_temp_id()
    suffix = temp_id.removeprefix(TEMP_ID_PREFIX)[:8].upper()
    return ClaimSummary(
        id=temp_id,
        title=claim.title,
        claim_number=f"{TEMP_CLAIM_NUMBER_PREFIX}{suffix}",
        status=ClaimStatus.PENDING,
        customer=claim.customer,
        adjustor_name=claim.adjustor_name,
        adjustor_phone=claim.adjustor_phone,
        adjustor_email=claim.adjustor_email,
        claimant_name=claim.claimant_name,
        claimant_phone=claim.claimant_phone,
        claimant_email=claim.claimant_email,
        claimant_address=claim.claimant_address,
        claimant=PLACEHOLDER_CLAIMANT,
        created_at=now,
        updated_at=now,
        origin=Origin.OPTIMISTIC,
        item_count=0,
    )


class CreateClaim(ClaimsMutation[NewClaim, ClaimSummary]):
    """Prepend a pending claim to the list until the server assigns its number."""

    name = "create-claim"
    failure_message = "Failed to create claim"

    def on_mutate(self, variables: NewClaim, scope: OptimisticScope) -> None:
        placeholder = scope.track(placeholder_claim(variables))
        scope.apply(CLAIMS_KEY, lambda claims: (placeholder, *claims), default=())

    async def execute(self, variables: NewClaim) -> ClaimSummary:
        return await self.gateway.create_claim(variables)

    def on_success(
        self,
        result: ClaimSummary,
        variables: NewClaim,
        context: MutationContext,
    ) -> None:
        (temp_id,) = context.temporary_ids()
        self.cache.set(
            CLAIMS_KEY,
            lambda claims: reconcile.replace(claims, temp_id, result) if claims else (result,),
        )

    def success_message(self, result: ClaimSummary, variables: NewClaim) -> str | None:
        return f"Claim {result.claim_number} created"
