import asyncio
import logging
from typing import List, Optional

from charity_api.errors import NotFound, ValidationFailed
from charity_api.models.gallery import normalize_gallery_item
from charity_api.models.media import normalize_media_list
from charity_api.schemas import GalleryForm
from charity_api.services.media_service import (
    IncomingFile,
    MediaUploader,
    check_references,
    parse_descriptors,
    reconcile_media,
    unreferenced_descriptors,
)
from charity_api.utils.media_validators import resource_kind_for, validate_content_type
from charity_api.utils.slug import create_id

logger = logging.getLogger(__name__)

FOLDER = "gallery"
EXTRA_FIELD = "extraMediaJson"


def list_gallery_items(col):
    return [normalize_gallery_item(doc) for doc in col.list()]


def get_gallery_item(col, item_id: str):
    doc = col.get_by_id(item_id)
    if doc is None:
        raise NotFound("gallery item")
    return normalize_gallery_item(doc)


def _check_cover(form: GalleryForm, cover: Optional[IncomingFile]) -> None:
    if cover is None:
        return
    ok, err = validate_content_type(cover.content_type, form.kind)
    if not ok:
        raise ValidationFailed("invalid upload", {"cover": [f"{cover.filename}: {err}"]})


async def _upload_cover(uploader: MediaUploader, form: GalleryForm, cover: Optional[IncomingFile]):
    if cover is None:
        return None
    result = await uploader.upload(
        cover, FOLDER, resource_kind_for(form.kind, cover.content_type)
    )
    return result.url


async def _build_media(
    uploader: MediaUploader,
    form: GalleryForm,
    cover: Optional[IncomingFile],
    extra_files: List[IncomingFile],
    extra_types: List[str],
    descriptors,
):
    """Upload the cover and the extra media side by side; nothing is sent until every reference checks out."""
    _check_cover(form, cover)
    descriptors = list(descriptors) + unreferenced_descriptors(
        descriptors, extra_files, extra_types
    )
    check_references(descriptors, extra_files, {}, EXTRA_FIELD)
    cover_url, extras = await asyncio.gather(
        _upload_cover(uploader, form, cover),
        reconcile_media(
            descriptors,
            extra_files,
            {},
            uploader,
            folder=FOLDER,
            id_prefix="gallery-media",
            field=EXTRA_FIELD,
            keep_url_ids=True,
        ),
    )
    return cover_url, extras


def _document(item_id: str, form: GalleryForm, cover_url: str, extra_media) -> dict:
    return {
        "id": item_id,
        "kind": form.kind,
        "donateeName": form.donateeName,
        "title": form.title,
        "description": form.description,
        "location": form.location,
        "address": form.address,
        "date": form.date,
        "coverUrl": cover_url,
        "isPriority": form.isPriority,
        "extraMedia": extra_media,
    }


async def create_gallery_item(
    col,
    uploader: MediaUploader,
    form: GalleryForm,
    cover: Optional[IncomingFile] = None,
    extra_files: Optional[List[IncomingFile]] = None,
    extra_types: Optional[List[str]] = None,
) -> dict:
    if cover is None and not form.coverUrl:
        raise ValidationFailed(
            "gallery media file is required",
            {"cover": ["upload a cover file or supply coverUrl"]},
        )
    descriptors = parse_descriptors(form.extraMediaJson, EXTRA_FIELD)
    uploaded_cover, extras = await _build_media(
        uploader, form, cover, extra_files or [], extra_types or [], descriptors
    )

    doc = _document(create_id("gallery"), form, uploaded_cover or form.coverUrl, extras)
    col.create_with_priority(doc)
    logger.info("[gallery] created %s (priority=%s)", doc["id"], doc["isPriority"])
    return normalize_gallery_item(doc)


async def replace_gallery_item(
    col,
    uploader: MediaUploader,
    item_id: str,
    form: GalleryForm,
    cover: Optional[IncomingFile] = None,
    extra_files: Optional[List[IncomingFile]] = None,
    extra_types: Optional[List[str]] = None,
) -> dict:
    existing = col.get_by_id(item_id)
    if existing is None:
        raise NotFound("gallery item")
    current = normalize_gallery_item(existing)

    # absent keeps the stored list, an empty string clears it
    if form.extraMediaJson is None:
        kept = normalize_media_list(current["extraMedia"])
        descriptors = []
    else:
        kept = []
        descriptors = parse_descriptors(form.extraMediaJson, EXTRA_FIELD)

    uploaded_cover, extras = await _build_media(
        uploader, form, cover, extra_files or [], extra_types or [], descriptors
    )
    cover_url = uploaded_cover or form.coverUrl or current["coverUrl"]

    doc = _document(item_id, form, cover_url, kept + extras)
    if not col.replace_with_priority(item_id, doc):
        raise NotFound("gallery item")
    logger.info("[gallery] replaced %s (priority=%s)", item_id, doc["isPriority"])
    return normalize_gallery_item(doc)


def delete_gallery_item(col, item_id: str) -> None:
    if not col.delete(item_id):
        raise NotFound("gallery item")
    logger.info("[gallery] deleted %s", item_id)
