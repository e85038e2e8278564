import logging
from typing import Optional

from charity_api.errors import InvalidTransition, NotFound, ValidationFailed
from charity_api.models.donation import (
    OPERATOR_STATUSES,
    initial_status,
    normalize_donation,
)
from charity_api.schemas import DonationForm
from charity_api.services.media_service import IncomingFile, MediaUploader
from charity_api.utils.dates import utc_now_iso
from charity_api.utils.media_validators import validate_content_type
from charity_api.utils.slug import create_id, normalize_email

logger = logging.getLogger(__name__)

PROOF_FOLDER = "donation-proofs"


def list_donations(col):
    return [normalize_donation(doc) for doc in col.list()]


async def create_donation(
    col, uploader: MediaUploader, form: DonationForm, proof: Optional[IncomingFile] = None
) -> dict:
    proof_url = None
    if form.paymentMethod == "direct-transfer":
        if proof is None:
            raise ValidationFailed(
                "payment confirmation screenshot is required",
                {"proofImage": ["required for direct transfers"]},
            )
        ok, err = validate_content_type(proof.content_type, "photo")
        if not ok:
            raise ValidationFailed("invalid upload", {"proofImage": [f"{proof.filename}: {err}"]})
        proof_url = (await uploader.upload(proof, PROOF_FOLDER, "image")).url

    now = utc_now_iso()
    doc = {
        "id": create_id("donation"),
        "targetGalleryItemId": form.targetGalleryItemId,
        "donationTitle": form.donationTitle,
        "donorInfo": {
            "firstName": form.firstName,
            "lastName": form.lastName,
            "email": normalize_email(form.email),
            "country": form.country,
            "phoneCountryCode": form.phoneCountryCode,
            "mobile": form.mobile,
        },
        "paymentMethod": form.paymentMethod,
        "status": initial_status(form.paymentMethod),
        "createdAt": now,
        "updatedAt": now,
    }
    if proof_url:
        doc["proofUrl"] = proof_url
    if form.gatewayReference:
        doc["gatewayReference"] = form.gatewayReference
    if form.amount is not None:
        doc["amount"] = form.amount

    col.create(doc)
    logger.info(
        "[donation] recorded %s via %s (status=%s)", doc["id"], doc["paymentMethod"], doc["status"]
    )
    return normalize_donation(doc)


def check_transition(record: dict, target: str) -> None:
    if record.get("paymentMethod") != "direct-transfer":
        raise InvalidTransition("Only direct transfer transactions can be updated manually.")
    if target not in OPERATOR_STATUSES:
        raise InvalidTransition(
            f"Status must be one of: {', '.join(OPERATOR_STATUSES)}."
        )


def update_donation_status(col, donation_id: str, target: str) -> dict:
    existing = col.get_by_id(donation_id)
    if existing is None:
        raise NotFound("donation transaction")
    record = normalize_donation(existing)
    check_transition(record, target)

    updated = col.update_fields(
        donation_id,
        {"status": target, "updatedAt": utc_now_iso()},
    )
    if updated is None:
        raise NotFound("donation transaction")
    logger.info("[donation] %s: %s -> %s", donation_id, record["status"], target)
    return normalize_donation(updated)
