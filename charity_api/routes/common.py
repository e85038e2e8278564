from flask import current_app, request

from charity_api.dependencies import get_upload_gateway
from charity_api.services.media_service import MediaUploader


def body_data() -> dict:
    """JSON body when one was sent, otherwise the (first value of each) form field."""
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    return request.form.to_dict()


def max_upload_bytes() -> int:
    return current_app.config["MAX_UPLOAD_BYTES"]


def uploader() -> MediaUploader:
    cfg = current_app.config
    return MediaUploader(
        get_upload_gateway(), cfg["CLOUDINARY_FOLDER"], cfg["UPLOAD_CONCURRENCY"]
    )
