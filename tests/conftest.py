from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from claimdesk.app import ClaimsSession
from claimdesk.config import MutationConfig
from claimdesk.services import claim_key
from tests.helpers.claims import (
    FakeClaimsGateway,
    RecordingNotifier,
    make_attachment,
    make_claim,
    make_item,
)

if TYPE_CHECKING:
    from claimdesk.domain.model import ClaimDetail


@pytest.fixture(autouse=True)
def _claimdesk_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "CLAIMDESK_API_URL",
        "CLAIMDESK_API_TOKEN",
        "CLAIMDESK_TIMEOUT_SECONDS",
        "CLAIMDESK_MUTATION_TIMEOUT_SECONDS",
        "CLAIMDESK_HTTP_CACHE",
        "CLAIMDESK_HTTP_CACHE_TTL_SECONDS",
        "CLAIMDESK_MAX_REQUESTS_PER_SECOND",
        "CLAIMDESK_DATA_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def seeded_claim() -> ClaimDetail:
    return make_claim(
        items=(
            make_item("item-1", order=0, attachments=(make_attachment("att-1"),)),
            make_item("item-2", order=1),
            make_item("item-3", order=2),
        )
    )


@pytest.fixture
def gateway(seeded_claim: ClaimDetail) -> FakeClaimsGateway:
    return FakeClaimsGateway([seeded_claim])


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def session(
    gateway: FakeClaimsGateway,
    notifier: RecordingNotifier,
    seeded_claim: ClaimDetail,
) -> ClaimsSession:
    claims_session = ClaimsSession(
        gateway=gateway,
        notifier=notifier,
        config=MutationConfig(timeout_seconds=5.0, max_upload_bytes=1024 * 1024),
    )
    claims_session.cache.set(claim_key(seeded_claim.id), seeded_claim)
    return claims_session
