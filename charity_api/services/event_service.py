import logging
from typing import Optional

from charity_api.errors import NotFound, ValidationFailed
from charity_api.models.upcoming_event import normalize_upcoming_event
from charity_api.schemas import UpcomingEventForm
from charity_api.services.media_service import IncomingFile, MediaUploader
from charity_api.utils.media_validators import validate_content_type
from charity_api.utils.slug import create_id

logger = logging.getLogger(__name__)

FOLDER = "upcoming-events"


def list_upcoming_events(col):
    return [normalize_upcoming_event(doc) for doc in col.list()]


def get_upcoming_event(col, event_id: str):
    doc = col.get_by_id(event_id)
    if doc is None:
        raise NotFound("upcoming event")
    return normalize_upcoming_event(doc)


async def _upload_image(uploader: MediaUploader, image: IncomingFile) -> str:
    ok, err = validate_content_type(image.content_type, "photo")
    if not ok:
        raise ValidationFailed("invalid upload", {"image": [f"{image.filename}: {err}"]})
    result = await uploader.upload(image, FOLDER, "image")
    return result.url


def _document(event_id: str, form: UpcomingEventForm, image_url: str) -> dict:
    return {
        "id": event_id,
        "title": form.title,
        "description": form.description,
        "dateIso": form.dateIso,
        "location": form.location,
        "imageUrl": image_url,
        "isPriority": form.isPriority,
    }


async def create_upcoming_event(
    col, uploader: MediaUploader, form: UpcomingEventForm, image: Optional[IncomingFile]
) -> dict:
    if image is None:
        raise ValidationFailed(
            "event image file is required", {"image": ["event image file is required"]}
        )
    doc = _document(create_id("event"), form, await _upload_image(uploader, image))
    col.create_with_priority(doc)
    logger.info("[event] created %s (priority=%s)", doc["id"], doc["isPriority"])
    return doc


async def replace_upcoming_event(
    col,
    uploader: MediaUploader,
    event_id: str,
    form: UpcomingEventForm,
    image: Optional[IncomingFile] = None,
) -> dict:
    existing = col.get_by_id(event_id)
    if existing is None:
        raise NotFound("upcoming event")
    if image is not None:
        image_url = await _upload_image(uploader, image)
    else:
        image_url = normalize_upcoming_event(existing)["imageUrl"]

    doc = _document(event_id, form, image_url)
    if not col.replace_with_priority(event_id, doc):
        raise NotFound("upcoming event")
    logger.info("[event] replaced %s (priority=%s)", event_id, doc["isPriority"])
    return doc


def delete_upcoming_event(col, event_id: str) -> None:
    if not col.delete(event_id):
        raise NotFound("upcoming event")
    logger.info("[event] deleted %s", event_id)
