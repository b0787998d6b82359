from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify, send_from_directory

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .core.exceptions import ProviderError
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .faces.controller import register as register_faces
from .storage.local_storage import LocalPhotoStorage
from .verification.controller import register as register_verification
from .workers.controller import register as register_workers

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[2] / "database"


def create_app(container: Container | None = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    # Multipart overhead on top of the photo itself.
    app.config["MAX_CONTENT_LENGTH"] = int(getattr(settings, "MAX_PHOTO_BYTES")) + 1024 * 1024

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if getattr(settings, "AUTO_SEED_DB", False):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            logger.info("demo seed ready")

        container = build_container(settings)

        if getattr(settings, "ENSURE_FACE_COLLECTION", False):
            try:
                container.faces.ensure_collection()
            except ProviderError as e:
                # Verification reports provider_error until the collection exists.
                logger.warning("Face collection not ready: %s", e)

    app.extensions["site_attendance"] = container

    if isinstance(container.storage, LocalPhotoStorage):
        upload_root = container.storage.root

        @app.route("/uploads/<path:filename>", endpoint="uploaded_photo")
        def uploaded_photo(filename: str):
            return send_from_directory(upload_root, filename)

    @app.route("/health", endpoint="health")
    def health():
        return jsonify({"status": "ok"})

    register_verification(app, container)
    register_workers(app, container)
    register_attendance(app, container)
    register_faces(app, container)

    return app
