import re
import uuid

_slug_re = re.compile(r"[^a-z0-9]+")


def slugify(text: str, fallback: str = "item") -> str:
    s = text.strip().lower()
    s = _slug_re.sub("-", s).strip("-")
    return s or fallback


def create_id(prefix: str) -> str:
    """Record ids look like `gallery-<uuid4>`."""
    return f"{slugify(prefix)}-{uuid.uuid4()}"


def normalize_email(value: str) -> str:
    return value.strip().lower()
