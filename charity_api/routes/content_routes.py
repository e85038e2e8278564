"""Donation cases, donation page content and the contact form."""

from flask import Blueprint, jsonify

from charity_api.dependencies import get_collection
from charity_api.models.store import CONTACT_MESSAGES, DONATION_CASES, DONATION_CONTENT
from charity_api.routes.common import body_data
from charity_api.schemas import (
    ContactForm,
    DonationCaseForm,
    DonationContentForm,
    parse_body,
)
from charity_api.services import content_service
from charity_api.utils.authz import require_admin
from charity_api.utils.rate_limit import rate_limited

content_bp = Blueprint("content", __name__, url_prefix="/api")


@content_bp.get("/cases")
def list_cases():
    return jsonify(content_service.list_cases(get_collection(DONATION_CASES)))


@content_bp.post("/cases")
@require_admin
def create_case():
    form = parse_body(DonationCaseForm, body_data())
    return jsonify(content_service.create_case(get_collection(DONATION_CASES), form)), 201


@content_bp.get("/donation-content")
def donation_content():
    return jsonify(content_service.get_donation_content(get_collection(DONATION_CONTENT)))


@content_bp.put("/donation-content")
@require_admin
def put_donation_content():
    form = parse_body(DonationContentForm, body_data())
    content = content_service.put_donation_content(get_collection(DONATION_CONTENT), form)
    return jsonify(content), 200


@content_bp.post("/contact")
@rate_limited("contact")
def submit_contact():
    form = parse_body(ContactForm, body_data())
    content_service.record_contact_message(get_collection(CONTACT_MESSAGES), form)
    return jsonify({"ok": True}), 201


@content_bp.get("/contact")
@require_admin
def contact_messages():
    return jsonify(content_service.list_contact_messages(get_collection(CONTACT_MESSAGES)))
