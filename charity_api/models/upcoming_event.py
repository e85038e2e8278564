from typing import Any, Dict

from charity_api.models.gallery import read_priority
from charity_api.models.recent_update import description_of


def normalize_upcoming_event(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(record.get("id") or ""),
        "title": str(record.get("title") or ""),
        "description": description_of(record),
        "dateIso": str(record.get("dateIso") or ""),
        "location": str(record.get("location") or ""),
        "imageUrl": str(record.get("imageUrl") or ""),
        "isPriority": read_priority(record),
    }
