from typing import Any, Dict, List, Optional

from charity_api.utils.slug import create_id


def media_asset(
    kind: str, url: str, caption: Optional[str] = None, *, asset_id: Optional[str] = None, prefix: str = "media"
) -> Dict[str, Any]:
    asset: Dict[str, Any] = {
        "id": asset_id or create_id(prefix),
        "kind": kind,
        "url": url,
    }
    if caption:
        asset["caption"] = caption
    return asset


def normalize_media_list(items: Any) -> List[Dict[str, Any]]:
    """Read media lists stored under either the current or the legacy field names."""
    out: List[Dict[str, Any]] = []
    for item in items or []:
        if not isinstance(item, dict):
            continue
        url = item.get("url") or item.get("mediaUrl")
        if not url:
            continue
        asset = {
            "id": str(item.get("id") or ""),
            "kind": item.get("kind") or item.get("type") or "photo",
            "url": url,
        }
        if item.get("caption"):
            asset["caption"] = item["caption"]
        out.append(asset)
    return out
