from __future__ import annotations

import logging
from pathlib import Path

from ..core.exceptions import ProviderError
from .base import PhotoStorage

logger = logging.getLogger(__name__)


class LocalPhotoStorage(PhotoStorage):
    """Photos on local disk, served by the app under ``url_prefix``."""

    def __init__(self, upload_dir: str | Path, *, url_prefix: str = "/uploads"):
        # Absolute, so serving does not resolve it against the app package.
        self._root = Path(upload_dir).resolve()
        self._url_prefix = url_prefix.rstrip("/")

    @property
    def root(self) -> Path:
        return self._root

    def put(self, data: bytes, *, key: str, content_type: str) -> str:
        path = self._root / key
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # "xb": append-only, an existing object is never overwritten.
            with open(path, "xb") as f:
                f.write(data)
        except OSError as e:
            logger.error("Writing photo %s failed: %s", path, e)
            raise ProviderError(f"Local photo write failed: {e}", provider="local") from e
        return f"{self._url_prefix}/{key}"
