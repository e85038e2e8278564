"""
Error taxonomy and the single top-level handler that turns errors into JSON.

Route and service code raises these; nothing below the handler builds error
responses by hand.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from flask import jsonify
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def payload(self) -> dict:
        return {"error": self.message}


class ValidationFailed(ApiError):
    status_code = 400

    def __init__(
        self, message: str = "validation failed", fields: Optional[Dict[str, List[str]]] = None
    ):
        super().__init__(message)
        self.fields = fields or {}

    def payload(self) -> dict:
        out = {"error": self.message}
        if self.fields:
            out["fields"] = self.fields
        return out


class Unauthorized(ApiError):
    status_code = 401

    def __init__(self, message: str = "unauthorized"):
        super().__init__(message)


class NotFound(ApiError):
    status_code = 404

    def __init__(self, what: str = "record"):
        super().__init__(f"{what} not found")


class InvalidTransition(ApiError):
    status_code = 400


class UploadTimeout(ApiError):
    status_code = 500


class UploadRejected(ApiError):
    status_code = 500

    def __init__(self, message: str, code: Optional[int] = None):
        if code is not None:
            message = f"{message} (http_code={code})"
        super().__init__(message)
        self.code = code


class DeliveryFailed(ApiError):
    status_code = 500


class ConfigurationMissing(RuntimeError):
    """Raised at startup; never reaches a request."""

    def __init__(self, names: List[str]):
        super().__init__("Missing required configuration: " + ", ".join(names))
        self.names = names


def register_error_handlers(app):
    def _hide_detail() -> bool:
        return app.config.get("APP_ENV") == "production"

    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        if err.status_code >= 500:
            logger.error("[error] %s: %s", type(err).__name__, err.message)
            if _hide_detail():
                return jsonify({"error": "internal server error"}), err.status_code
        return jsonify(err.payload()), err.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(_err):
        return jsonify({"error": "upload too large"}), 400

    @app.errorhandler(HTTPException)
    def handle_http(err: HTTPException):
        return jsonify({"error": (err.description or err.name)}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        logger.exception("[error] unhandled: %s", err)
        message = "internal server error" if _hide_detail() else (str(err) or "internal server error")
        return jsonify({"error": message}), 500
