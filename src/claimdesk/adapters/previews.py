"""Local previews for files that are still uploading."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import Final
from uuid import uuid4

log = getLogger(__name__)

PREVIEW_SCHEME: Final[str] = "preview://"


def is_preview_url(url: str) -> bool:
    return url.startswith(PREVIEW_SCHEME)


@dataclass(slots=True)
class PreviewRegistry:
    """Holds file contents under opaque handles until they are released."""

    _previews: dict[str, bytes] = field(default_factory=dict)

    def open(self, content: bytes) -> str:
        handle = f"{PREVIEW_SCHEME}{uuid4().hex}"
        self._previews[handle] = content
        return handle

    def read(self, handle: str) -> bytes | None:
        return self._previews.get(handle)

    def release(self, handle: str) -> None:
        """Drop ``handle``; releasing an unknown or already released handle is a no-op."""

        if self._previews.pop(handle, None) is not None:
            log.debug("Released preview %s", handle)

    def __call__(self, resource: str) -> None:
        self.release(resource)

    @property
    def active(self) -> frozenset[str]:
        return frozenset(self._previews)
