"""Remove face directory entries that no worker record references."""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from dotenv import load_dotenv

from config import get_settings_module

from site_attendance.container import build_container


def main() -> None:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO)
    settings = importlib.import_module(get_settings_module())

    container = build_container(settings)
    include_live = "--include-live-subjects" in sys.argv[1:]
    purged = container.face_admin_service.purge_orphan_faces(include_live_subjects=include_live)
    print(f"OK: Purged {len(purged)} orphan face(s) from {settings.FACE_COLLECTION_ID}")


if __name__ == "__main__":
    main()
