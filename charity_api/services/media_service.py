"""
Media handling shared by every write path.

Files arrive either positionally (a repeated multipart field such as
`mediaFiles`) or under a correlation key (`mediaFile.<key>`). A descriptor list
says, in display order, which media items the parent record should end up
with. `reconcile_media` checks every reference before anything is uploaded,
uploads each referenced file once with bounded concurrency, and returns assets
in descriptor order whatever order the uploads finish in.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from charity_api.errors import ApiError, ValidationFailed
from charity_api.models.media import media_asset
from charity_api.schemas import MediaDescriptor, parse_list
from charity_api.utils.cloudinary_gateway import UploadResult
from charity_api.utils.media_validators import (
    MEDIA_KINDS,
    infer_kind,
    resource_kind_for,
    validate_content_type,
    validate_size,
)

logger = logging.getLogger(__name__)

KEYED_FILE_PREFIX = "mediaFile."


@dataclass
class IncomingFile:
    filename: str
    content_type: str
    data: bytes


def read_file(storage, field: str, max_bytes: int) -> IncomingFile:
    """Read a werkzeug FileStorage into memory, enforcing the per-file cap."""
    data = storage.read()
    ok, err = validate_size(len(data), max_bytes)
    filename = storage.filename or field
    if not ok:
        raise ValidationFailed("invalid upload", {field: [f"{filename}: {err}"]})
    return IncomingFile(
        filename=filename,
        content_type=storage.mimetype or storage.content_type or "",
        data=data,
    )


def optional_file(files, field: str, max_bytes: int) -> Optional[IncomingFile]:
    storage = files.get(field)
    if storage is None or not storage.filename:
        return None
    return read_file(storage, field, max_bytes)


def positional_files(files, field: str, max_bytes: int) -> List[IncomingFile]:
    return [
        read_file(storage, field, max_bytes)
        for storage in files.getlist(field)
        if storage.filename
    ]


def keyed_files(files, max_bytes: int) -> Dict[str, IncomingFile]:
    out: Dict[str, IncomingFile] = {}
    for field in files.keys():
        if not field.startswith(KEYED_FILE_PREFIX):
            continue
        key = field[len(KEYED_FILE_PREFIX):]
        storage = files.get(field)
        if key and storage is not None and storage.filename:
            out[key] = read_file(storage, field, max_bytes)
    return out


def parse_descriptors(raw: Optional[str], field: str) -> List[MediaDescriptor]:
    if raw is None or not raw.strip():
        return []
    try:
        data = json.loads(raw)
    except ValueError:
        raise ValidationFailed("validation failed", {field: ["must be valid JSON"]})
    return parse_list(MediaDescriptor, data, field)


class MediaUploader:
    """Upload files through the gateway with at most `concurrency` in flight."""

    def __init__(self, gateway, root_folder: str, concurrency: int = 4):
        self.gateway = gateway
        self.root_folder = root_folder.rstrip("/")
        self.concurrency = max(concurrency, 1)
        self._semaphore: Optional[asyncio.Semaphore] = None

    def folder(self, name: str) -> str:
        return f"{self.root_folder}/{name}"

    async def upload(
        self, incoming: IncomingFile, folder: str, resource_kind: str
    ) -> UploadResult:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.concurrency)
        async with self._semaphore:
            try:
                return await self.gateway.upload(
                    incoming.data,
                    destination_folder=self.folder(folder),
                    resource_kind=resource_kind,
                    filename=incoming.filename,
                )
            except ApiError as err:
                err.message = f"{incoming.filename}: {err.message}"
                err.args = (err.message,)
                raise


FileRef = Tuple[str, Any]


def _file_ref(d: MediaDescriptor) -> FileRef:
    if d.fileKey:
        return ("key", d.fileKey)
    return ("index", d.fileIndex)


def _resolve(
    ref: FileRef,
    by_index: List[IncomingFile],
    by_key: Dict[str, IncomingFile],
) -> Optional[IncomingFile]:
    kind, value = ref
    if kind == "key":
        return by_key.get(value)
    if value is not None and 0 <= value < len(by_index):
        return by_index[value]
    return None


def check_references(
    descriptors: Iterable[MediaDescriptor],
    by_index: List[IncomingFile],
    by_key: Dict[str, IncomingFile],
    field: str,
) -> None:
    """Every file-sourced descriptor must point at a received file of a matching type."""
    errors: Dict[str, List[str]] = {}
    for i, d in enumerate(descriptors):
        if d.source != "file":
            continue
        incoming = _resolve(_file_ref(d), by_index, by_key)
        if incoming is None:
            what = f"fileKey {d.fileKey!r}" if d.fileKey else f"fileIndex {d.fileIndex}"
            errors.setdefault(f"{field}.{i}", []).append(f"{what} does not match an uploaded file")
            continue
        ok, err = validate_content_type(incoming.content_type, d.kind)
        if not ok:
            errors.setdefault(f"{field}.{i}", []).append(f"{incoming.filename}: {err}")
    if errors:
        raise ValidationFailed("invalid media descriptors", errors)


async def reconcile_media(
    descriptors: List[MediaDescriptor],
    by_index: List[IncomingFile],
    by_key: Dict[str, IncomingFile],
    uploader: MediaUploader,
    *,
    folder: str,
    id_prefix: str,
    field: str,
    keep_url_ids: bool = False,
) -> List[Dict[str, Any]]:
    check_references(descriptors, by_index, by_key, field)

    # each file is uploaded once, as the kind its first descriptor declares
    first_kind: Dict[FileRef, str] = {}
    for d in descriptors:
        if d.source == "file":
            first_kind.setdefault(_file_ref(d), d.kind)
    refs = list(first_kind)

    async def _one(ref: FileRef) -> UploadResult:
        incoming = _resolve(ref, by_index, by_key)
        return await uploader.upload(
            incoming, folder, resource_kind_for(first_kind[ref], incoming.content_type)
        )

    results = await asyncio.gather(*(_one(ref) for ref in refs))
    uploaded = dict(zip(refs, results))
    if refs:
        logger.info("[upload] %d file(s) stored in %s", len(refs), folder)

    assets: List[Dict[str, Any]] = []
    for d in descriptors:
        if d.source == "file":
            url = uploaded[_file_ref(d)].url
            asset_id = None
        else:
            url = d.url
            asset_id = d.id if keep_url_ids else None
        assets.append(
            media_asset(d.kind, url, d.caption, asset_id=asset_id, prefix=id_prefix)
        )
    return assets


def unreferenced_descriptors(
    descriptors: List[MediaDescriptor],
    by_index: List[IncomingFile],
    declared_kinds: List[str],
) -> List[MediaDescriptor]:
    """Positional files no descriptor points at, in upload order."""
    used = {d.fileIndex for d in descriptors if d.source == "file" and not d.fileKey}
    extra: List[MediaDescriptor] = []
    for i, incoming in enumerate(by_index):
        if i in used:
            continue
        kind = declared_kinds[i] if i < len(declared_kinds) else ""
        if kind not in MEDIA_KINDS:
            kind = infer_kind(incoming.content_type, incoming.filename)
        extra.append(MediaDescriptor(source="file", kind=kind, fileIndex=i))
    return extra
