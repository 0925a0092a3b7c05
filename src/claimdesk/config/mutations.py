"""Defaults for optimistic mutations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import optional_env_float

# above the upload transport timeout so retries can finish first
DEFAULT_MUTATION_TIMEOUT_SECONDS: Final[float] = 90.0
MAX_UPLOAD_BYTES: Final[int] = 100 * 1024 * 1024


@dataclass(frozen=True, slots=True)
class MutationConfig:
    timeout_seconds: float = DEFAULT_MUTATION_TIMEOUT_SECONDS
    max_upload_bytes: int = MAX_UPLOAD_BYTES


def get_mutation_config() -> MutationConfig:
    timeout = optional_env_float(
        "CLAIMDESK_MUTATION_TIMEOUT_SECONDS", DEFAULT_MUTATION_TIMEOUT_SECONDS
    )
    return MutationConfig(timeout_seconds=timeout or DEFAULT_MUTATION_TIMEOUT_SECONDS)
