import json
import unittest
from unittest import mock

import httpx

from charity_api.errors import InvalidTransition, UploadRejected, UploadTimeout
from charity_api.models.store import (
    DONATION_TRANSACTIONS,
    GALLERY_ITEMS,
    NEWSLETTER_SUBSCRIBERS,
)
from charity_api.schemas import NewsletterSubscribe
from charity_api.services import donation_service, newsletter_service

from tests.helpers import (
    ADMIN,
    FakeGateway,
    future_date,
    future_datetime,
    image,
    make_app,
    make_store,
    mock_httpx,
    past_date,
)


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.store = make_store()
        self.gateway = FakeGateway()
        self.app = make_app(store=self.store, gateway=self.gateway)
        self.client = self.app.test_client()


class CoreTests(ApiTestCase):
    def test_health(self):
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json(), {"ok": True})

    def test_admin_endpoints_require_the_key(self):
        for method, path in (
            ("get", "/api/donations"),
            ("post", "/api/gallery"),
            ("delete", "/api/recent-updates/x"),
            ("get", "/api/newsletter/subscribers"),
            ("get", "/admin/metrics"),
        ):
            resp = getattr(self.client, method)(path)
            self.assertEqual(resp.status_code, 401, path)
            self.assertEqual(resp.get_json(), {"error": "unauthorized"})

    def test_wrong_key_is_refused(self):
        resp = self.client.get("/api/donations", headers={"X-Admin-Key": "nope"})
        self.assertEqual(resp.status_code, 401)

    def test_metrics_with_key(self):
        resp = self.client.get("/admin/metrics", headers=ADMIN)
        self.assertEqual(resp.status_code, 200)
        self.assertIn(b"media_upload_attempts_total", resp.data)

    def test_missing_record_is_404(self):
        resp = self.client.get("/api/gallery/nope")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.get_json(), {"error": "gallery item not found"})


def gallery_form(**overrides):
    data = {
        "kind": "photo",
        "title": "Community Outreach",
        "location": "Ikeja, Lagos",
        "address": "Lagos, Nigeria",
        "date": future_date(),
    }
    data.update(overrides)
    return data


class GalleryTests(ApiTestCase):
    def post_item(self, **overrides):
        data = gallery_form(**overrides)
        if "coverUrl" not in data and "cover" not in data:
            data["cover"] = image("cover.png")
        return self.client.post(
            "/api/gallery", data=data, headers=ADMIN, content_type="multipart/form-data"
        )

    def test_create_uploads_cover(self):
        resp = self.post_item()
        self.assertEqual(resp.status_code, 201)
        item = resp.get_json()
        self.assertTrue(item["id"].startswith("gallery-"))
        self.assertEqual(
            item["coverUrl"], "https://res.cloudinary.test/femifunmi-foundation/gallery/cover.png"
        )
        self.assertEqual(self.gateway.calls[0]["resource_kind"], "image")

    def test_create_without_cover_fails_before_upload(self):
        resp = self.client.post(
            "/api/gallery", data=gallery_form(), headers=ADMIN, content_type="multipart/form-data"
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("cover", resp.get_json()["fields"])
        self.assertEqual(self.gateway.calls, [])

    def test_past_date_is_rejected(self):
        resp = self.post_item(date=past_date())
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["fields"]["date"], ["date cannot be in the past"])
        self.assertEqual(self.gateway.calls, [])

    def test_only_one_priority_item(self):
        first = self.post_item(isPriority="true").get_json()
        second = self.post_item(isPriority="on").get_json()
        self.post_item(isPriority="false")

        items = self.client.get("/api/gallery").get_json()
        flagged = [i["id"] for i in items if i["isPriority"]]
        self.assertEqual(flagged, [second["id"]])

        # moving the flag back with an edit
        resp = self.client.put(
            f"/api/gallery/{first['id']}",
            data=gallery_form(isPriority="1"),
            headers=ADMIN,
            content_type="multipart/form-data",
        )
        self.assertEqual(resp.status_code, 200)
        items = self.client.get("/api/gallery").get_json()
        self.assertEqual([i["id"] for i in items if i["isPriority"]], [first["id"]])

    def test_extra_media_from_json_and_files(self):
        extra = [{"source": "url", "id": "keep-me", "kind": "photo", "url": "https://example.org/a.jpg"}]
        resp = self.post_item(
            extraMediaJson=json.dumps(extra),
            extraMediaFiles=[image("clip.mp4", "video/mp4")],
            extraMediaFileTypes="video",
        )
        self.assertEqual(resp.status_code, 201)
        media = resp.get_json()["extraMedia"]
        self.assertEqual(media[0]["id"], "keep-me")
        self.assertEqual(media[1]["kind"], "video")
        self.assertTrue(media[1]["url"].endswith("/gallery/clip.mp4"))

    def test_edit_keeps_cover_and_extras_unless_told(self):
        extra = [{"kind": "photo", "url": "https://example.org/a.jpg"}]
        created = self.post_item(extraMediaJson=json.dumps(extra)).get_json()

        resp = self.client.put(
            f"/api/gallery/{created['id']}",
            data=gallery_form(title="Renamed"),
            headers=ADMIN,
            content_type="multipart/form-data",
        )
        updated = resp.get_json()
        self.assertEqual(updated["title"], "Renamed")
        self.assertEqual(updated["coverUrl"], created["coverUrl"])
        self.assertEqual(updated["extraMedia"], created["extraMedia"])

        resp = self.client.put(
            f"/api/gallery/{created['id']}",
            data=gallery_form(extraMediaJson=""),
            headers=ADMIN,
            content_type="multipart/form-data",
        )
        self.assertEqual(resp.get_json()["extraMedia"], [])

    def test_legacy_documents_are_normalized(self):
        self.store.collection(GALLERY_ITEMS).create(
            {"id": "gallery-old", "type": "video", "title": "Old", "location": "L",
             "address": "A", "date": "January 2026", "mediaUrl": "https://example.org/v.mp4",
             "priorityplacement": True}
        )
        item = self.client.get("/api/gallery/gallery-old").get_json()
        self.assertEqual(item["kind"], "video")
        self.assertEqual(item["coverUrl"], "https://example.org/v.mp4")
        self.assertTrue(item["isPriority"])
        self.assertEqual(item["extraMedia"], [])

    def test_delete(self):
        created = self.post_item().get_json()
        resp = self.client.delete(f"/api/gallery/{created['id']}", headers=ADMIN)
        self.assertEqual(resp.get_json(), {"ok": True})
        resp = self.client.delete(f"/api/gallery/{created['id']}", headers=ADMIN)
        self.assertEqual(resp.status_code, 404)


class RecentUpdateTests(ApiTestCase):
    def post_update(self, descriptors, files=None, **overrides):
        data = {
            "title": "School outreach",
            "description": "Education kits delivered to pupils.",
            "date": future_date(),
            "location": "Ikeja, Lagos",
            "mediaDescriptorsJson": json.dumps(descriptors),
        }
        data.update(overrides)
        if files:
            data["mediaFiles"] = files
        return self.client.post(
            "/api/recent-updates", data=data, headers=ADMIN, content_type="multipart/form-data"
        )

    def test_main_media_is_clamped_and_valid(self):
        descriptors = [
            {"source": "url", "kind": "photo", "url": "https://example.org/a.jpg"},
            {"source": "file", "kind": "photo", "fileIndex": 0},
        ]
        resp = self.post_update(descriptors, [image("one.png")], mainMediaIndex="9")
        self.assertEqual(resp.status_code, 201)
        update = resp.get_json()
        self.assertEqual(update["mainMediaId"], update["media"][-1]["id"])
        self.assertEqual(update["media"][0]["url"], "https://example.org/a.jpg")

        fetched = self.client.get(f"/api/recent-updates/{update['id']}").get_json()
        self.assertIn(fetched["mainMediaId"], [m["id"] for m in fetched["media"]])

    def test_keyed_file_parts(self):
        descriptors = [{"source": "file", "kind": "photo", "fileKey": "hero"}]
        data = {
            "title": "School outreach",
            "description": "Education kits delivered to pupils.",
            "date": future_date(),
            "location": "Ikeja, Lagos",
            "mediaDescriptorsJson": json.dumps(descriptors),
            "mediaFile.hero": image("hero.png"),
        }
        resp = self.client.post(
            "/api/recent-updates", data=data, headers=ADMIN, content_type="multipart/form-data"
        )
        self.assertEqual(resp.status_code, 201)
        self.assertTrue(resp.get_json()["media"][0]["url"].endswith("hero.png"))

    def test_legacy_update_gets_valid_main_media(self):
        self.store.collection("recentUpdates").create(
            {
                "id": "update-old",
                "title": "Old update",
                "fullDescription": "Written before descriptions were renamed.",
                "date": "February 2026",
                "location": "Ikeja",
                "mainMediaId": "gone",
                "media": [{"id": "m1", "type": "photo", "mediaUrl": "https://example.org/a.jpg"}],
            }
        )
        update = self.client.get("/api/recent-updates/update-old").get_json()
        self.assertEqual(update["description"], "Written before descriptions were renamed.")
        self.assertEqual(update["mainMediaId"], "m1")
        self.assertEqual(update["media"][0]["url"], "https://example.org/a.jpg")

    def test_at_least_one_media_item(self):
        resp = self.post_update([])
        self.assertEqual(resp.status_code, 400)

    def test_dangling_file_index(self):
        resp = self.post_update([{"source": "file", "kind": "photo", "fileIndex": 2}], [image()])
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.gateway.calls, [])

    def test_replace_missing_update(self):
        resp = self.client.put(
            "/api/recent-updates/missing",
            data={
                "title": "School outreach",
                "description": "Education kits delivered to pupils.",
                "date": future_date(),
                "location": "Ikeja, Lagos",
                "mediaDescriptorsJson": json.dumps(
                    [{"kind": "photo", "url": "https://example.org/a.jpg"}]
                ),
            },
            headers=ADMIN,
            content_type="multipart/form-data",
        )
        self.assertEqual(resp.status_code, 404)


class UpcomingEventTests(ApiTestCase):
    def event_form(self, **overrides):
        data = {
            "title": "Food drive",
            "description": "A community food drive for families in need.",
            "dateIso": future_datetime(),
            "location": "Lagos",
        }
        data.update(overrides)
        return data

    def test_image_required_on_create(self):
        resp = self.client.post(
            "/api/upcoming-events", data=self.event_form(), headers=ADMIN,
            content_type="multipart/form-data",
        )
        self.assertEqual(resp.status_code, 400)

    def test_create_and_edit_keep_single_priority(self):
        first = self.client.post(
            "/api/upcoming-events",
            data=self.event_form(isPriority="true", image=image("a.png")),
            headers=ADMIN,
            content_type="multipart/form-data",
        ).get_json()
        self.assertTrue(first["imageUrl"].endswith("/upcoming-events/a.png"))
        second = self.client.post(
            "/api/upcoming-events",
            data=self.event_form(isPriority="true", image=image("b.png")),
            headers=ADMIN,
            content_type="multipart/form-data",
        ).get_json()

        events = self.client.get("/api/upcoming-events").get_json()
        self.assertEqual([e["id"] for e in events if e["isPriority"]], [second["id"]])

        resp = self.client.put(
            f"/api/upcoming-events/{first['id']}",
            data=self.event_form(isPriority="true"),
            headers=ADMIN,
            content_type="multipart/form-data",
        )
        self.assertEqual(resp.get_json()["imageUrl"], first["imageUrl"])
        events = self.client.get("/api/upcoming-events").get_json()
        self.assertEqual([e["id"] for e in events if e["isPriority"]], [first["id"]])


def donation_form(**overrides):
    data = {
        "targetGalleryItemId": "gallery-1",
        "donationTitle": "School kits",
        "firstName": "Ada",
        "lastName": "Obi",
        "email": " Ada@Example.com ",
        "country": "Nigeria",
        "phoneCountryCode": "+234",
        "mobile": "8012345678",
        "paymentMethod": "direct-transfer",
    }
    data.update(overrides)
    return data


class DonationTests(ApiTestCase):
    def post_donation(self, **overrides):
        return self.client.post(
            "/api/donations", data=donation_form(**overrides), content_type="multipart/form-data"
        )

    def test_direct_transfer_requires_proof(self):
        resp = self.post_donation()
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.store.collection(DONATION_TRANSACTIONS).count(), 0)

    def test_direct_transfer_with_proof(self):
        resp = self.post_donation(proofImage=image("receipt.png"))
        self.assertEqual(resp.status_code, 201)
        donation = resp.get_json()
        self.assertEqual(donation["status"], "pending-review")
        self.assertEqual(donation["donorInfo"]["email"], "ada@example.com")
        self.assertTrue(donation["proofUrl"].endswith("/donation-proofs/receipt.png"))
        self.assertEqual(self.gateway.calls[0]["resource_kind"], "image")

    def test_gateway_donation_starts_pending_and_cannot_be_moved(self):
        donation = self.post_donation(paymentMethod="gateway", gatewayReference="ref-1").get_json()
        self.assertEqual(donation["status"], "pending")
        self.assertNotIn("proofUrl", donation)

        resp = self.client.patch(
            f"/api/donations/{donation['id']}/status", json={"status": "approved"}, headers=ADMIN
        )
        self.assertEqual(resp.status_code, 400)

    def test_operator_status_changes(self):
        donation = self.post_donation(proofImage=image()).get_json()
        url = f"/api/donations/{donation['id']}/status"

        resp = self.client.patch(url, json={"status": "approved"}, headers=ADMIN)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()["status"], "approved")

        resp = self.client.patch(url, json={"status": "pending"}, headers=ADMIN)
        self.assertEqual(resp.status_code, 400)
        self.assertIn("status", resp.get_json()["fields"])

        resp = self.client.patch(
            "/api/donations/missing/status", json={"status": "rejected"}, headers=ADMIN
        )
        self.assertEqual(resp.status_code, 404)

    def test_status_outside_operator_states_is_refused(self):
        donation = self.post_donation(proofImage=image()).get_json()
        col = self.store.collection(DONATION_TRANSACTIONS)
        with self.assertRaises(InvalidTransition):
            donation_service.update_donation_status(col, donation["id"], "pending")
        self.assertEqual(col.get_by_id(donation["id"])["status"], "pending-review")

    def test_admin_list(self):
        self.post_donation(paymentMethod="gateway")
        resp = self.client.get("/api/donations", headers=ADMIN)
        self.assertEqual(len(resp.get_json()), 1)


class NewsletterTests(ApiTestCase):
    def subscribe(self, **overrides):
        body = {"firstName": "Ada", "email": "Ada@Example.com", "consentGiven": True}
        body.update(overrides)
        return self.client.post("/api/newsletter/subscribe", json=body)

    def test_resubscribe_reactivates(self):
        resp = self.subscribe(source="footer")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.get_json(), {"ok": True, "alreadySubscribed": False})

        resp = self.client.post("/api/newsletter/unsubscribe", json={"email": "ada@example.com"})
        self.assertEqual(resp.status_code, 200)

        resp = self.subscribe(firstName="Adaeze", source="popup")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json(), {"ok": True, "alreadySubscribed": True})

        subscribers = self.client.get("/api/newsletter/subscribers", headers=ADMIN).get_json()
        self.assertEqual(len(subscribers), 1)
        sub = subscribers[0]
        self.assertEqual(sub["email"], "ada@example.com")
        self.assertTrue(sub["isActive"])
        self.assertEqual(sub["firstName"], "Adaeze")
        self.assertEqual(sub["source"], "popup")
        self.assertIsNone(sub["unsubscribedAt"])

    def test_subscribe_losing_insert_race_reactivates(self):
        col = self.store.collection(NEWSLETTER_SUBSCRIBERS)
        col.create(
            {
                "id": "newsletter-subscriber-1",
                "firstName": "Ada",
                "email": "ada@example.com",
                "consentGiven": True,
                "isActive": False,
                "createdAt": "2026-01-01T00:00:00Z",
            }
        )
        stored = col.find_one({"email": "ada@example.com"})
        form = NewsletterSubscribe(firstName="Adaeze", email="Ada@Example.com", consentGiven=True)

        # the first lookup misses, as if the other insert had not landed yet
        with mock.patch.object(col, "find_one", side_effect=[None, stored]):
            subscriber, already = newsletter_service.subscribe(col, form)

        self.assertTrue(already)
        self.assertTrue(subscriber["isActive"])
        self.assertEqual(subscriber["firstName"], "Adaeze")
        self.assertEqual(col.count(), 1)

    def use_webhook(self, status):
        """Rebuild the app with a delivery webhook; returns the list of payloads it receives."""
        received = []

        def handler(request):
            received.append({"url": str(request.url), "json": json.loads(request.content)})
            return httpx.Response(status, json={})

        self.app = make_app(
            store=self.store,
            gateway=self.gateway,
            NEWSLETTER_WEBHOOK_URL="https://hooks.example.test/newsletter",
        )
        self.client = self.app.test_client()
        return received, mock_httpx(handler)

    def send(self):
        return self.client.post(
            "/api/newsletter/send", json={"subject": "Hello", "body": "Monthly update text"}, headers=ADMIN
        )

    def test_send_posts_batch_to_webhook(self):
        received, webhook = self.use_webhook(202)
        self.subscribe()
        with webhook:
            resp = self.send()
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(
            received,
            [
                {
                    "url": "https://hooks.example.test/newsletter",
                    "json": {
                        "subject": "Hello",
                        "body": "Monthly update text",
                        "recipients": [{"firstName": "Ada", "email": "ada@example.com"}],
                    },
                }
            ],
        )
        campaigns = self.client.get("/api/newsletter/campaigns", headers=ADMIN).get_json()
        self.assertEqual(len(campaigns), 1)

    def test_webhook_error_records_no_campaign(self):
        received, webhook = self.use_webhook(502)
        self.subscribe()
        with webhook:
            resp = self.send()
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(
            resp.get_json(), {"error": "Newsletter delivery provider returned an error."}
        )
        self.assertEqual(len(received), 1)
        self.assertEqual(self.client.get("/api/newsletter/campaigns", headers=ADMIN).get_json(), [])

    def test_unsubscribe_unknown_email(self):
        resp = self.client.post("/api/newsletter/unsubscribe", json={"email": "nobody@example.com"})
        self.assertEqual(resp.status_code, 404)

    def test_send_without_recipients(self):
        resp = self.client.post(
            "/api/newsletter/send", json={"subject": "Hello", "body": "Monthly update text"}, headers=ADMIN
        )
        self.assertEqual(resp.status_code, 400)

    def test_send_without_webhook_records_campaign(self):
        self.subscribe()
        self.subscribe(email="bola@example.com", firstName="Bola")
        self.client.post("/api/newsletter/unsubscribe", json={"email": "bola@example.com"})

        resp = self.client.post(
            "/api/newsletter/send", json={"subject": "Hello", "body": "Monthly update text"}, headers=ADMIN
        )
        self.assertEqual(resp.status_code, 201)
        body = resp.get_json()
        self.assertEqual(body["recipientCount"], 1)
        self.assertEqual(body["campaign"]["subject"], "Hello")

        campaigns = self.client.get("/api/newsletter/campaigns", headers=ADMIN).get_json()
        self.assertEqual(len(campaigns), 1)


class ContentTests(ApiTestCase):
    def test_default_donation_content(self):
        content = self.client.get("/api/donation-content").get_json()
        self.assertEqual(content["paymentHeading"], "Make Payment Here")

    def test_replace_donation_content(self):
        body = {
            "introText": "Help us help others today.",
            "missionText": "Every gift changes a life.",
            "paymentHeading": "Give now",
            "paymentDescription": "Transfer or pay online below.",
            "onlinePlatformLabel": "Pay online",
            "onlinePlatformUrl": "https://pay.example.org",
            "bankTransferDetails": ["Bank A - 0000000001"],
        }
        resp = self.client.put("/api/donation-content", json=body, headers=ADMIN)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.client.get("/api/donation-content").get_json(), body)

    def test_cases(self):
        resp = self.client.post(
            "/api/cases",
            json={
                "title": "Clean water",
                "beneficiary": "Village school",
                "description": "A borehole for the village school.",
                "status": "open",
            },
            headers=ADMIN,
        )
        self.assertEqual(resp.status_code, 201)
        cases = self.client.get("/api/cases").get_json()
        self.assertEqual(cases[0]["title"], "Clean water")

    def test_contact_message(self):
        resp = self.client.post(
            "/api/contact",
            json={
                "fullName": "Ada Obi",
                "email": "ada@example.com",
                "phoneNumber": "08012345678",
                "message": "I would like to volunteer.",
            },
        )
        self.assertEqual(resp.status_code, 201)
        messages = self.client.get("/api/contact", headers=ADMIN).get_json()
        self.assertEqual(messages[0]["fullName"], "Ada Obi")


class UploadRouteTests(ApiTestCase):
    def test_upload_returns_result(self):
        resp = self.client.post(
            "/api/uploads",
            data={"file": image("x.png"), "resourceKind": "image", "folder": "misc"},
            headers=ADMIN,
            content_type="multipart/form-data",
        )
        self.assertEqual(resp.status_code, 201)
        body = resp.get_json()
        self.assertEqual(body["url"], "https://res.cloudinary.test/misc/x.png")
        self.assertEqual(body["resourceKind"], "image")

    def test_upload_without_file(self):
        resp = self.client.post("/api/uploads", data={}, headers=ADMIN, content_type="multipart/form-data")
        self.assertEqual(resp.status_code, 400)


class FailingGateway:
    def __init__(self, error):
        self.error = error
        self.calls = 0

    async def upload(self, data, *, destination_folder, resource_kind="auto", filename=None):
        self.calls += 1
        raise self.error


class UploadFailureTests(unittest.TestCase):
    def post_upload(self, error, app_env):
        gateway = FailingGateway(error)
        client = make_app(gateway=gateway, APP_ENV=app_env).test_client()
        resp = client.post(
            "/api/uploads",
            data={"file": image("x.png"), "resourceKind": "image"},
            headers=ADMIN,
            content_type="multipart/form-data",
        )
        self.assertEqual(gateway.calls, 1)
        return resp

    def test_production_hides_upload_failure_detail(self):
        for error in (
            UploadTimeout("Cloudinary upload timed out after 20ms. cloud=demo"),
            UploadRejected("Invalid api_key key", code=401),
        ):
            resp = self.post_upload(error, "production")
            self.assertEqual(resp.status_code, 500)
            self.assertEqual(resp.get_json(), {"error": "internal server error"})

    def test_development_shows_upload_failure_detail(self):
        resp = self.post_upload(
            UploadTimeout("Cloudinary upload timed out after 20ms. cloud=demo"), "development"
        )
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(
            resp.get_json(), {"error": "Cloudinary upload timed out after 20ms. cloud=demo"}
        )

        resp = self.post_upload(UploadRejected("Invalid api_key key", code=401), "development")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.get_json(), {"error": "Invalid api_key key (http_code=401)"})


class RateLimitTests(unittest.TestCase):
    def test_public_writes_are_limited_per_client(self):
        from charity_api.utils import rate_limit

        rate_limit.reset()
        app = make_app(RATE_LIMIT_ENABLED=True, RATE_LIMIT_PER_MINUTE=2)
        client = app.test_client()
        codes = [
            client.post("/api/newsletter/unsubscribe", json={"email": "x@example.com"}).status_code
            for _ in range(3)
        ]
        rate_limit.reset()
        self.assertEqual(codes, [404, 404, 429])


class ConfigTests(unittest.TestCase):
    def test_missing_required_settings(self):
        from charity_api.errors import ConfigurationMissing

        with self.assertRaises(ConfigurationMissing):
            make_app(CLOUDINARY_API_SECRET="", MONGODB_URI="")


if __name__ == "__main__":
    unittest.main()
