from __future__ import annotations

import uuid
from datetime import datetime
from typing import Protocol

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class PhotoStorage(Protocol):
    """Append-only blob store for captured photos."""

    def put(self, data: bytes, *, key: str, content_type: str) -> str:
        """Store ``data`` under a new ``key`` and return a retrievable URL.

        Raises ProviderError when the store cannot be written.
        """

        raise NotImplementedError


def attendance_photo_key(*, project_id: int, worker_id: int, slot: str, content_type: str, now: datetime) -> str:
    """Unique object key for a verification photo; keys are never reused."""
    ext = _EXTENSIONS.get(content_type, "bin")
    stamp = now.strftime("%Y%m%dT%H%M%S")
    return f"attendance/{project_id}/{worker_id}/{stamp}-{slot}-{uuid.uuid4().hex[:12]}.{ext}"


def reference_photo_key(*, worker_id: int, content_type: str) -> str:
    ext = _EXTENSIONS.get(content_type, "bin")
    return f"workers/{worker_id}/reference-{uuid.uuid4().hex[:12]}.{ext}"
