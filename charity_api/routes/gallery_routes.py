from flask import Blueprint, jsonify, request

from charity_api.dependencies import get_collection
from charity_api.models.store import GALLERY_ITEMS
from charity_api.routes.common import body_data, max_upload_bytes, uploader
from charity_api.schemas import GalleryForm, parse_body
from charity_api.services import gallery_service
from charity_api.services.media_service import optional_file, positional_files
from charity_api.utils.authz import require_admin

gallery_bp = Blueprint("gallery", __name__, url_prefix="/api/gallery")


def _uploads():
    limit = max_upload_bytes()
    cover = optional_file(request.files, "cover", limit) or optional_file(
        request.files, "media", limit
    )
    extra_files = positional_files(request.files, "extraMediaFiles", limit)
    extra_types = request.form.getlist("extraMediaFileTypes")
    return cover, extra_files, extra_types


@gallery_bp.get("")
def list_items():
    return jsonify(gallery_service.list_gallery_items(get_collection(GALLERY_ITEMS)))


@gallery_bp.get("/<item_id>")
def get_item(item_id):
    return jsonify(gallery_service.get_gallery_item(get_collection(GALLERY_ITEMS), item_id))


@gallery_bp.post("")
@require_admin
async def create_item():
    form = parse_body(GalleryForm, body_data())
    cover, extra_files, extra_types = _uploads()
    item = await gallery_service.create_gallery_item(
        get_collection(GALLERY_ITEMS), uploader(), form, cover, extra_files, extra_types
    )
    return jsonify(item), 201


@gallery_bp.put("/<item_id>")
@require_admin
async def replace_item(item_id):
    form = parse_body(GalleryForm, body_data())
    cover, extra_files, extra_types = _uploads()
    item = await gallery_service.replace_gallery_item(
        get_collection(GALLERY_ITEMS),
        uploader(),
        item_id,
        form,
        cover,
        extra_files,
        extra_types,
    )
    return jsonify(item), 200


@gallery_bp.delete("/<item_id>")
@require_admin
def delete_item(item_id):
    gallery_service.delete_gallery_item(get_collection(GALLERY_ITEMS), item_id)
    return jsonify({"ok": True}), 200
