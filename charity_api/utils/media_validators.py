"""
Media validation: allowed content types, per-file size cap, and how an
uploaded file maps onto a media kind and a Cloudinary resource kind.
"""

from typing import Tuple

ALLOWED_IMAGE_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/heic",
        "image/avif",
    }
)
ALLOWED_VIDEO_TYPES = frozenset(
    {
        "video/mp4",
        "video/webm",
        "video/quicktime",  # .mov
    }
)

MEDIA_KINDS = ("photo", "video")

EXT_BY_KIND = {
    "photo": {".jpg", ".jpeg", ".png", ".gif", ".webp", ".heic", ".avif"},
    "video": {".mp4", ".webm", ".mov"},
}


def _base_type(content_type: str | None) -> str:
    return (content_type or "").strip().lower().split(";")[0].strip()


def validate_content_type(content_type: str | None, kind: str) -> Tuple[bool, str | None]:
    """
    Validate content_type against the declared media kind. Returns (valid, error_message).
    A missing or generic content type is accepted; the media host detects it.
    """
    ct = _base_type(content_type)
    if not ct or ct == "application/octet-stream":
        return True, None
    allowed = ALLOWED_VIDEO_TYPES if kind == "video" else ALLOWED_IMAGE_TYPES
    if ct not in allowed:
        return False, f"content_type '{content_type}' not allowed for kind '{kind}'"
    return True, None


def validate_size(size_bytes: int | None, max_bytes: int) -> Tuple[bool, str | None]:
    if size_bytes is None:
        return True, None
    if size_bytes <= 0:
        return False, "file is empty"
    if size_bytes > max_bytes:
        return False, f"file too large (max {max_bytes // (1024 * 1024)}MB)"
    return True, None


def infer_kind(content_type: str | None, filename: str | None = None) -> str:
    """photo or video, from the content type first and the extension second."""
    ct = _base_type(content_type)
    if ct.startswith("video/"):
        return "video"
    if ct.startswith("image/"):
        return "photo"
    if filename and "." in filename:
        ext = "." + filename.rsplit(".", 1)[-1].lower()
        if ext in EXT_BY_KIND["video"]:
            return "video"
    return "photo"


def resource_kind_for(kind: str | None, content_type: str | None = None) -> str:
    """Cloudinary resource_type for a media kind."""
    if kind == "video" or _base_type(content_type).startswith("video/"):
        return "video"
    return "image"
