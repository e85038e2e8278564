from flask import Blueprint, current_app, jsonify, request

from charity_api.dependencies import get_upload_gateway
from charity_api.errors import ValidationFailed
from charity_api.routes.common import body_data, max_upload_bytes
from charity_api.schemas import UploadForm, parse_body
from charity_api.services.media_service import optional_file
from charity_api.utils.authz import require_admin

media_bp = Blueprint("media", __name__)


# POST /api/uploads  multipart: file, folder?, resourceKind?
@media_bp.post("/api/uploads")
@require_admin
async def upload():
    incoming = optional_file(request.files, "file", max_upload_bytes())
    if incoming is None:
        raise ValidationFailed("no file uploaded", {"file": ["no file uploaded"]})
    form = parse_body(UploadForm, body_data())

    folder = form.folder or current_app.config["CLOUDINARY_FOLDER"]
    result = await get_upload_gateway().upload(
        incoming.data,
        destination_folder=folder,
        resource_kind=form.resourceKind,
        filename=incoming.filename,
    )
    return jsonify(result.to_dict()), 201
