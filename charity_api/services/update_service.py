import logging
from typing import Dict, List, Optional

from charity_api.errors import NotFound, ValidationFailed
from charity_api.models.recent_update import normalize_recent_update
from charity_api.schemas import RecentUpdateForm
from charity_api.services.media_service import (
    IncomingFile,
    MediaUploader,
    parse_descriptors,
    reconcile_media,
)
from charity_api.utils.slug import create_id

logger = logging.getLogger(__name__)

FOLDER = "recent-updates"
DESCRIPTOR_FIELD = "mediaDescriptorsJson"


def list_recent_updates(col):
    return [normalize_recent_update(doc) for doc in col.list()]


def get_recent_update(col, update_id: str):
    doc = col.get_by_id(update_id)
    if doc is None:
        raise NotFound("recent update")
    return normalize_recent_update(doc)


def main_media_id(media: List[dict], requested: Optional[int]) -> str:
    index = min(max(requested or 0, 0), len(media) - 1)
    return media[index]["id"]


async def _build(
    update_id: str,
    form: RecentUpdateForm,
    uploader: MediaUploader,
    files: List[IncomingFile],
    keyed: Dict[str, IncomingFile],
) -> dict:
    descriptors = parse_descriptors(form.mediaDescriptorsJson, DESCRIPTOR_FIELD)
    if not descriptors:
        raise ValidationFailed(
            "at least one media item is required",
            {DESCRIPTOR_FIELD: ["at least one media item is required"]},
        )
    media = await reconcile_media(
        descriptors,
        files,
        keyed,
        uploader,
        folder=FOLDER,
        id_prefix="update-media",
        field=DESCRIPTOR_FIELD,
    )
    return {
        "id": update_id,
        "title": form.title,
        "description": form.description,
        "date": form.date,
        "location": form.location,
        "mainMediaId": main_media_id(media, form.mainMediaIndex),
        "media": media,
    }


async def create_recent_update(
    col,
    uploader: MediaUploader,
    form: RecentUpdateForm,
    files: Optional[List[IncomingFile]] = None,
    keyed: Optional[Dict[str, IncomingFile]] = None,
) -> dict:
    doc = await _build(create_id("update"), form, uploader, files or [], keyed or {})
    col.create(doc)
    logger.info("[update] created %s with %d media item(s)", doc["id"], len(doc["media"]))
    return doc


async def replace_recent_update(
    col,
    uploader: MediaUploader,
    update_id: str,
    form: RecentUpdateForm,
    files: Optional[List[IncomingFile]] = None,
    keyed: Optional[Dict[str, IncomingFile]] = None,
) -> dict:
    if col.get_by_id(update_id) is None:
        raise NotFound("recent update")
    doc = await _build(update_id, form, uploader, files or [], keyed or {})
    if not col.replace(update_id, doc):
        raise NotFound("recent update")
    logger.info("[update] replaced %s", update_id)
    return doc


def delete_recent_update(col, update_id: str) -> None:
    if not col.delete(update_id):
        raise NotFound("recent update")
    logger.info("[update] deleted %s", update_id)
