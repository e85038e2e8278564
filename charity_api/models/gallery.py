from typing import Any, Dict

from charity_api.models.media import normalize_media_list
from charity_api.models.store import LEGACY_PRIORITY_FIELD, PRIORITY_FIELD


def read_priority(record: Dict[str, Any]) -> bool:
    if PRIORITY_FIELD in record:
        return bool(record[PRIORITY_FIELD])
    return bool(record.get(LEGACY_PRIORITY_FIELD))


def normalize_gallery_item(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(record.get("id") or ""),
        "kind": record.get("kind") or record.get("type") or "photo",
        "donateeName": record.get("donateeName"),
        "title": record.get("title") or "",
        "description": record.get("description"),
        "location": record.get("location") or "",
        "address": record.get("address") or "",
        "date": record.get("date") or "",
        "coverUrl": record.get("coverUrl") or record.get("mediaUrl") or "",
        "isPriority": read_priority(record),
        "extraMedia": normalize_media_list(record.get("extraMedia")),
    }
