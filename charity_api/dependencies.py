"""
Dependency wiring: the record store and the upload gateway live on
`app.extensions` so handlers share one process-wide instance and tests can
inject their own.
"""

from __future__ import annotations

import atexit
import logging

from flask import current_app

from charity_api.models.store import Collection, RecordStore
from charity_api.utils.cloudinary_gateway import CloudinaryGateway

logger = logging.getLogger(__name__)

STORE_KEY = "record_store"
GATEWAY_KEY = "upload_gateway"


def init_services(app, store: RecordStore | None = None, gateway=None) -> None:
    cfg = app.config
    if store is None:
        store = RecordStore(
            cfg["MONGODB_URI"],
            cfg["MONGODB_DB_NAME"],
            redis_url=cfg.get("REDIS_URL"),
        )
        atexit.register(store.close)
    if gateway is None:
        gateway = CloudinaryGateway(
            cfg["CLOUDINARY_CLOUD_NAME"],
            cfg["CLOUDINARY_API_KEY"],
            cfg["CLOUDINARY_API_SECRET"],
            timeout_ms=cfg["CLOUDINARY_UPLOAD_TIMEOUT_MS"],
            retry_count=cfg["CLOUDINARY_UPLOAD_RETRY_COUNT"],
        )
    app.extensions[STORE_KEY] = store
    app.extensions[GATEWAY_KEY] = gateway
    logger.info("[deps] store=%s gateway=%s", type(store).__name__, type(gateway).__name__)


def get_store() -> RecordStore:
    return current_app.extensions[STORE_KEY]


def get_upload_gateway() -> CloudinaryGateway:
    return current_app.extensions[GATEWAY_KEY]


def get_collection(name: str) -> Collection:
    return get_store().collection(name)
