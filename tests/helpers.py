import asyncio
import io
from datetime import date, datetime, timedelta, timezone
from unittest import mock

import httpx
import mongomock

from charity_api import create_app
from charity_api.models.store import RecordStore
from charity_api.utils.cloudinary_gateway import UploadResult

ADMIN_KEY = "test-admin-key"
ADMIN = {"X-Admin-Key": ADMIN_KEY}

_AsyncClient = httpx.AsyncClient

TEST_CONFIG = {
    "CLOUDINARY_CLOUD_NAME": "demo",
    "CLOUDINARY_API_KEY": "key",
    "CLOUDINARY_API_SECRET": "secret",
    "MONGODB_URI": "mongodb://unused",
    "ADMIN_KEY": ADMIN_KEY,
    "APP_ENV": "test",
    "RATE_LIMIT_ENABLED": False,
    "NEWSLETTER_WEBHOOK_URL": None,
    "REDIS_URL": None,
    "TESTING": True,
}


def make_store() -> RecordStore:
    return RecordStore(db_name="charity_test", client=mongomock.MongoClient())


class FakeGateway:
    """Records uploads. `delays` maps a filename to seconds to wait before answering."""

    def __init__(self, delays=None):
        self.delays = delays or {}
        self.calls = []
        self.completed = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def upload(self, data, *, destination_folder, resource_kind="auto", filename=None):
        self.calls.append(
            {"filename": filename, "folder": destination_folder, "resource_kind": resource_kind}
        )
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(filename, 0))
        finally:
            self.in_flight -= 1
        self.completed.append(filename)
        return UploadResult(
            url=f"https://res.cloudinary.test/{destination_folder}/{filename}",
            asset_id=f"{destination_folder}/{filename}",
            resource_kind=resource_kind,
            format="png",
            byte_size=len(data),
        )


def make_app(store=None, gateway=None, **overrides):
    config = dict(TEST_CONFIG)
    config.update(overrides)
    return create_app(
        config, store=store or make_store(), gateway=gateway or FakeGateway()
    )


def image(name="photo.png", content_type="image/png", data=b"\x89PNG fake image"):
    return (io.BytesIO(data), name, content_type)


def future_date(days=30) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


def past_date(days=30) -> str:
    return (date.today() - timedelta(days=days)).isoformat()


def future_datetime(days=3) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def mock_httpx(handler):
    """Route every httpx.AsyncClient opened inside the block through `handler`."""

    def client(**kwargs):
        return _AsyncClient(transport=httpx.MockTransport(handler), **kwargs)

    return mock.patch.object(httpx, "AsyncClient", client)
