from flask import Blueprint, current_app, jsonify

from charity_api.dependencies import get_collection
from charity_api.models.store import NEWSLETTER_CAMPAIGNS, NEWSLETTER_SUBSCRIBERS
from charity_api.routes.common import body_data
from charity_api.schemas import (
    NewsletterSend,
    NewsletterSubscribe,
    NewsletterUnsubscribe,
    parse_body,
)
from charity_api.services import newsletter_service
from charity_api.utils.authz import require_admin
from charity_api.utils.rate_limit import rate_limited

newsletter_bp = Blueprint("newsletter", __name__, url_prefix="/api/newsletter")


@newsletter_bp.post("/subscribe")
@rate_limited("newsletter")
def subscribe():
    form = parse_body(NewsletterSubscribe, body_data())
    _, already = newsletter_service.subscribe(get_collection(NEWSLETTER_SUBSCRIBERS), form)
    return jsonify({"ok": True, "alreadySubscribed": already}), (200 if already else 201)


@newsletter_bp.post("/unsubscribe")
@rate_limited("newsletter")
def unsubscribe():
    form = parse_body(NewsletterUnsubscribe, body_data())
    newsletter_service.unsubscribe(get_collection(NEWSLETTER_SUBSCRIBERS), form.email)
    return jsonify({"ok": True}), 200


@newsletter_bp.get("/subscribers")
@require_admin
def subscribers():
    return jsonify(get_collection(NEWSLETTER_SUBSCRIBERS).list())


@newsletter_bp.get("/campaigns")
@require_admin
def campaigns():
    return jsonify(get_collection(NEWSLETTER_CAMPAIGNS).list())


@newsletter_bp.post("/send")
@require_admin
async def send():
    form = parse_body(NewsletterSend, body_data())
    campaign = await newsletter_service.send_campaign(
        get_collection(NEWSLETTER_SUBSCRIBERS),
        get_collection(NEWSLETTER_CAMPAIGNS),
        form,
        current_app.config.get("NEWSLETTER_WEBHOOK_URL"),
    )
    return (
        jsonify(
            {"ok": True, "campaign": campaign, "recipientCount": campaign["recipientCount"]}
        ),
        201,
    )
