"""
Newsletter subscribers and campaigns.

Subscribers are never removed: unsubscribing clears `isActive`, subscribing
again turns it back on. A campaign goes out as one JSON POST to the configured
delivery webhook and is recorded only once the webhook accepted it.
"""

import logging
from typing import List, Optional, Tuple

import httpx

from charity_api.errors import DeliveryFailed, NotFound, ValidationFailed
from charity_api.schemas import NewsletterSend, NewsletterSubscribe
from charity_api.utils.dates import utc_now_iso
from charity_api.utils.metrics import NEWSLETTER_SENDS
from charity_api.utils.slug import create_id, normalize_email

logger = logging.getLogger(__name__)

WEBHOOK_TIMEOUT_SECONDS = 30.0


def subscribe(col, form: NewsletterSubscribe) -> Tuple[dict, bool]:
    """Returns (subscriber, already_subscribed)."""
    email = normalize_email(form.email)
    existing = col.find_one({"email": email})
    if existing is None:
        subscriber = {
            "id": create_id("newsletter-subscriber"),
            "firstName": form.firstName,
            "email": email,
            "consentGiven": True,
            "isActive": True,
            "createdAt": utc_now_iso(),
            "source": form.source,
        }
        if col.create_unless_duplicate(subscriber):
            logger.info("[newsletter] added new subscriber: %s", email)
            return subscriber, False
        # another request inserted this email between the lookup and the insert
        existing = col.find_one({"email": email})

    fields = {
        "firstName": form.firstName,
        "email": email,
        "consentGiven": True,
        "isActive": True,
        "source": form.source,
        "unsubscribedAt": None,
    }
    updated = col.update_fields(existing["id"], fields)
    logger.info("[newsletter] re-activated existing subscriber: %s", email)
    return updated, True


def unsubscribe(col, email: str) -> dict:
    email = normalize_email(email)
    existing = col.find_one({"email": email})
    if existing is None:
        raise NotFound("subscriber")
    updated = col.update_fields(
        existing["id"], {"isActive": False, "unsubscribedAt": utc_now_iso()}
    )
    logger.info("[newsletter] unsubscribed: %s", email)
    return updated


def active_recipients(col) -> List[dict]:
    return col.list({"isActive": True, "consentGiven": True})


async def deliver(webhook_url: Optional[str], payload: dict) -> bool:
    """POST the batch to the webhook. Returns False when no webhook is configured."""
    count = len(payload.get("recipients") or [])
    if not webhook_url:
        logger.info(
            "[newsletter] NEWSLETTER_WEBHOOK_URL not set; skipping external delivery for %d recipient(s)",
            count,
        )
        return False
    try:
        async with httpx.AsyncClient(timeout=WEBHOOK_TIMEOUT_SECONDS) as client:
            resp = await client.post(webhook_url, json=payload)
    except httpx.HTTPError as e:
        logger.error("[newsletter] delivery request failed: %s", e)
        raise DeliveryFailed("Newsletter delivery provider could not be reached.")
    if not resp.is_success:
        logger.error("[newsletter] delivery provider returned %s", resp.status_code)
        raise DeliveryFailed("Newsletter delivery provider returned an error.")
    return True


async def send_campaign(
    subscribers_col, campaigns_col, form: NewsletterSend, webhook_url: Optional[str]
) -> dict:
    recipients = active_recipients(subscribers_col)
    if not recipients:
        raise ValidationFailed("No active newsletter subscribers found.")

    delivered = await deliver(
        webhook_url,
        {
            "subject": form.subject,
            "body": form.body,
            "recipients": [
                {"firstName": r.get("firstName"), "email": r.get("email")}
                for r in recipients
            ],
        },
    )
    NEWSLETTER_SENDS.labels("true" if delivered else "false").inc()

    campaign = {
        "id": create_id("newsletter-campaign"),
        "subject": form.subject,
        "body": form.body,
        "recipientCount": len(recipients),
        "sentAt": utc_now_iso(),
    }
    campaigns_col.create(campaign)
    logger.info(
        "[newsletter] campaign sent: %s, recipients=%d, subject=%r",
        campaign["id"],
        campaign["recipientCount"],
        campaign["subject"],
    )
    return campaign
