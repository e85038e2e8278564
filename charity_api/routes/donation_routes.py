from flask import Blueprint, jsonify, request

from charity_api.dependencies import get_collection
from charity_api.models.store import DONATION_TRANSACTIONS
from charity_api.routes.common import body_data, max_upload_bytes, uploader
from charity_api.schemas import DonationForm, DonationStatusUpdate, parse_body
from charity_api.services import donation_service
from charity_api.services.media_service import optional_file
from charity_api.utils.authz import require_admin
from charity_api.utils.rate_limit import rate_limited

donations_bp = Blueprint("donations", __name__, url_prefix="/api/donations")


@donations_bp.post("")
@rate_limited("donations")
async def create_donation():
    form = parse_body(DonationForm, body_data())
    proof = optional_file(request.files, "proofImage", max_upload_bytes())
    doc = await donation_service.create_donation(
        get_collection(DONATION_TRANSACTIONS), uploader(), form, proof
    )
    return jsonify(doc), 201


@donations_bp.get("")
@require_admin
def list_donations():
    return jsonify(donation_service.list_donations(get_collection(DONATION_TRANSACTIONS)))


# PATCH /api/donations/<id>/status  body: {status}
@donations_bp.patch("/<donation_id>/status")
@require_admin
def update_status(donation_id):
    update = parse_body(DonationStatusUpdate, body_data())
    doc = donation_service.update_donation_status(
        get_collection(DONATION_TRANSACTIONS), donation_id, update.status
    )
    return jsonify(doc), 200
