# charity_api/__init__.py
import logging
import sys

from flask import Flask
from flask_cors import CORS

from charity_api.config import check_required, load_config
from charity_api.dependencies import init_services
from charity_api.errors import register_error_handlers
from charity_api.routes import (
    admin_bp,
    content_bp,
    core,
    donations_bp,
    events_bp,
    gallery_bp,
    media_bp,
    newsletter_bp,
    updates_bp,
)

logger = logging.getLogger(__name__)

LOCALHOST_ORIGIN = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        stream=sys.stdout,
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(overrides=None, *, store=None, gateway=None):
    config = load_config()
    if overrides:
        config.update(overrides)
    _configure_logging(config["LOG_LEVEL"])
    check_required(config)

    app = Flask(__name__)
    app.url_map.strict_slashes = False
    app.config.update(config)
    # whole-request ceiling; each file is also checked against MAX_UPLOAD_BYTES
    app.config["MAX_CONTENT_LENGTH"] = config["MAX_UPLOAD_BYTES"] * 10

    CORS(
        app,
        origins=[config["CLIENT_ORIGIN"], config["ADMIN_ORIGIN"], LOCALHOST_ORIGIN],
        allow_headers=["Content-Type", "X-Admin-Key"],
    )

    register_error_handlers(app)

    app.register_blueprint(core)
    app.register_blueprint(admin_bp)
    app.register_blueprint(gallery_bp)
    app.register_blueprint(updates_bp)
    app.register_blueprint(events_bp)
    app.register_blueprint(donations_bp)
    app.register_blueprint(newsletter_bp)
    app.register_blueprint(content_bp)
    app.register_blueprint(media_bp)

    init_services(app, store=store, gateway=gateway)
    logger.info(
        "[app] ready (env=%s, folder=%s, upload concurrency=%d)",
        config["APP_ENV"],
        config["CLOUDINARY_FOLDER"],
        config["UPLOAD_CONCURRENCY"],
    )
    return app
