from typing import Any, Dict

from charity_api.models.media import normalize_media_list


def description_of(record: Dict[str, Any]) -> str:
    for key in ("description", "fullDescription", "shortDescription"):
        value = record.get(key)
        if isinstance(value, str):
            return value
    return ""


def normalize_recent_update(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shape a stored update for output. Older documents may carry the text under
    fullDescription/shortDescription and may lack a main media id; a main id
    that no longer matches any media item falls back to the first item.
    """
    media = normalize_media_list(record.get("media"))
    ids = {m["id"] for m in media}
    main_id = str(record.get("mainMediaId") or "")
    if main_id not in ids:
        main_id = media[0]["id"] if media else ""
    return {
        "id": str(record.get("id") or ""),
        "title": str(record.get("title") or ""),
        "description": description_of(record),
        "date": str(record.get("date") or ""),
        "location": str(record.get("location") or ""),
        "mainMediaId": main_id,
        "media": media,
    }

