from flask import Blueprint, jsonify, request

from charity_api.dependencies import get_collection
from charity_api.models.store import RECENT_UPDATES
from charity_api.routes.common import body_data, max_upload_bytes, uploader
from charity_api.schemas import RecentUpdateForm, parse_body
from charity_api.services import update_service
from charity_api.services.media_service import keyed_files, positional_files
from charity_api.utils.authz import require_admin

updates_bp = Blueprint("recent_updates", __name__, url_prefix="/api/recent-updates")


def _files():
    limit = max_upload_bytes()
    files = positional_files(request.files, "mediaFiles", limit)
    return files, keyed_files(request.files, limit)


@updates_bp.get("")
def list_updates():
    return jsonify(update_service.list_recent_updates(get_collection(RECENT_UPDATES)))


@updates_bp.get("/<update_id>")
def get_update(update_id):
    return jsonify(
        update_service.get_recent_update(get_collection(RECENT_UPDATES), update_id)
    )


@updates_bp.post("")
@require_admin
async def create_update():
    form = parse_body(RecentUpdateForm, body_data())
    files, keyed = _files()
    doc = await update_service.create_recent_update(
        get_collection(RECENT_UPDATES), uploader(), form, files, keyed
    )
    return jsonify(doc), 201


@updates_bp.put("/<update_id>")
@require_admin
async def replace_update(update_id):
    form = parse_body(RecentUpdateForm, body_data())
    files, keyed = _files()
    doc = await update_service.replace_recent_update(
        get_collection(RECENT_UPDATES), uploader(), update_id, form, files, keyed
    )
    return jsonify(doc), 200


@updates_bp.delete("/<update_id>")
@require_admin
def delete_update(update_id):
    update_service.delete_recent_update(get_collection(RECENT_UPDATES), update_id)
    return jsonify({"ok": True}), 200
