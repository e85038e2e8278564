from flask import Blueprint, jsonify, request

from charity_api.dependencies import get_collection
from charity_api.models.store import UPCOMING_EVENTS
from charity_api.routes.common import body_data, max_upload_bytes, uploader
from charity_api.schemas import UpcomingEventForm, parse_body
from charity_api.services import event_service
from charity_api.services.media_service import optional_file
from charity_api.utils.authz import require_admin

events_bp = Blueprint("upcoming_events", __name__, url_prefix="/api/upcoming-events")


@events_bp.get("")
def list_events():
    return jsonify(event_service.list_upcoming_events(get_collection(UPCOMING_EVENTS)))


@events_bp.get("/<event_id>")
def get_event(event_id):
    return jsonify(
        event_service.get_upcoming_event(get_collection(UPCOMING_EVENTS), event_id)
    )


@events_bp.post("")
@require_admin
async def create_event():
    form = parse_body(UpcomingEventForm, body_data())
    image = optional_file(request.files, "image", max_upload_bytes())
    doc = await event_service.create_upcoming_event(
        get_collection(UPCOMING_EVENTS), uploader(), form, image
    )
    return jsonify(doc), 201


@events_bp.put("/<event_id>")
@require_admin
async def replace_event(event_id):
    form = parse_body(UpcomingEventForm, body_data())
    image = optional_file(request.files, "image", max_upload_bytes())
    doc = await event_service.replace_upcoming_event(
        get_collection(UPCOMING_EVENTS), uploader(), event_id, form, image
    )
    return jsonify(doc), 200


@events_bp.delete("/<event_id>")
@require_admin
def delete_event(event_id):
    event_service.delete_upcoming_event(get_collection(UPCOMING_EVENTS), event_id)
    return jsonify({"ok": True}), 200
