"""
Cloudinary upload gateway.

Turns a byte buffer into a public URL. Attempts that time out are retried
with capped exponential backoff; anything the media host rejects fails at
once.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

import cloudinary
import cloudinary.utils
import httpx

from charity_api.errors import (
    ConfigurationMissing,
    UploadRejected,
    UploadTimeout,
    ValidationFailed,
)
from charity_api.utils.metrics import (
    UPLOAD_ATTEMPTS,
    UPLOAD_REJECTIONS,
    UPLOAD_SUCCESSES,
    UPLOAD_TIMEOUTS,
)

logger = logging.getLogger(__name__)

RESOURCE_KINDS = ("image", "video", "auto")
DEFAULT_TIMEOUT_MS = 120000
DEFAULT_RETRY_COUNT = 1
MAX_BACKOFF_SECONDS = 5.0


@dataclass
class UploadResult:
    url: str
    asset_id: str
    resource_kind: str
    format: str
    byte_size: int

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "assetId": self.asset_id,
            "resourceKind": self.resource_kind,
            "format": self.format,
            "byteSize": self.byte_size,
        }


class _AttemptTimedOut(Exception):
    pass


class CloudinaryGateway:
    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        retry_count: int = DEFAULT_RETRY_COUNT,
        backoff_base: float = 1.0,
    ):
        missing = [
            name
            for name, value in (
                ("CLOUDINARY_CLOUD_NAME", cloud_name),
                ("CLOUDINARY_API_KEY", api_key),
                ("CLOUDINARY_API_SECRET", api_secret),
            )
            if not value
        ]
        if missing:
            raise ConfigurationMissing(missing)

        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout_s = max(timeout_ms, 1) / 1000.0
        self.retry_count = max(retry_count, 0)
        self.backoff_base = backoff_base
        cloudinary.config(
            cloud_name=cloud_name, api_key=api_key, api_secret=api_secret, secure=True
        )

    def backoff_for(self, attempt: int) -> float:
        return min(self.backoff_base * (2**attempt), MAX_BACKOFF_SECONDS)

    async def upload(
        self,
        data: bytes,
        *,
        destination_folder: str,
        resource_kind: str = "auto",
        filename: Optional[str] = None,
    ) -> UploadResult:
        if resource_kind not in RESOURCE_KINDS:
            raise ValidationFailed(
                "invalid resource kind",
                {"resourceKind": [f"must be one of {', '.join(RESOURCE_KINDS)}"]},
            )

        for attempt in range(self.retry_count + 1):
            UPLOAD_ATTEMPTS.labels(resource_kind).inc()
            try:
                result = await self._attempt(
                    data, destination_folder, resource_kind, filename
                )
            except _AttemptTimedOut:
                UPLOAD_TIMEOUTS.labels(resource_kind).inc()
                if attempt >= self.retry_count:
                    raise UploadTimeout(
                        f"Cloudinary upload timed out after {int(self.timeout_s * 1000)}ms. "
                        "Check Cloudinary credentials/network."
                    )
                delay = self.backoff_for(attempt)
                logger.warning(
                    "[upload] attempt %d timed out (folder=%s), retrying in %.1fs",
                    attempt + 1,
                    destination_folder,
                    delay,
                )
                await asyncio.sleep(delay)
                continue
            except UploadRejected as e:
                UPLOAD_REJECTIONS.labels(resource_kind).inc()
                logger.error("[upload] rejected (folder=%s): %s", destination_folder, e)
                raise

            UPLOAD_SUCCESSES.labels(resource_kind).inc()
            logger.info(
                "[upload] stored %s (%d bytes) in %s",
                result.asset_id,
                result.byte_size,
                destination_folder,
            )
            return result

        # retry_count >= 0 means the loop always returns or raises
        raise UploadTimeout("Cloudinary upload timed out.")

    async def _attempt(
        self, data: bytes, folder: str, resource_kind: str, filename: Optional[str]
    ) -> UploadResult:
        # wait_for cancels the in-flight request when the deadline passes
        try:
            return await asyncio.wait_for(
                self._send(data, folder, resource_kind, filename),
                timeout=self.timeout_s,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise _AttemptTimedOut() from e

    async def _send(
        self, data: bytes, folder: str, resource_kind: str, filename: Optional[str]
    ) -> UploadResult:
        params = cloudinary.utils.sign_request(
            {"folder": folder, "timestamp": int(time.time())},
            {"api_key": self.api_key, "api_secret": self.api_secret},
        )
        url = cloudinary.utils.cloudinary_api_url(
            "upload", resource_type=resource_kind, cloud_name=self.cloud_name
        )
        form = {k: str(v) for k, v in params.items()}

        async with httpx.AsyncClient(timeout=self.timeout_s) as client:
            try:
                resp = await client.post(
                    url, data=form, files={"file": (filename or "upload", data)}
                )
            except httpx.TimeoutException:
                raise
            except httpx.HTTPError as e:
                raise UploadRejected(f"Cloudinary upload failed: {e}")

        try:
            body = resp.json()
        except ValueError:
            body = {}

        if resp.status_code >= 400:
            err = body.get("error") if isinstance(body, dict) else None
            message = (err or {}).get("message") if isinstance(err, dict) else None
            raise UploadRejected(
                message or "Cloudinary upload failed.", code=resp.status_code
            )
        return result_from_response(body)


def result_from_response(body: dict) -> UploadResult:
    if not isinstance(body, dict) or not body.get("secure_url"):
        raise UploadRejected("Cloudinary returned an unexpected response.")
    return UploadResult(
        url=body["secure_url"],
        asset_id=body.get("public_id", ""),
        resource_kind=body.get("resource_type", ""),
        format=body.get("format") or "",
        byte_size=int(body.get("bytes") or 0),
    )
