import re
from datetime import date, datetime, timezone

from dateutil import parser as dtparse

_DATE_ONLY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def parse_date_input(value: str) -> date | None:
    """
    Calendar date of a gallery/update date field. Accepts YYYY-MM-DD or any
    free-form date ("28 March 2026"); returns None when it cannot be read.
    """
    text = (value or "").strip()
    if not text:
        return None
    if _DATE_ONLY_RE.match(text):
        try:
            return date.fromisoformat(text)
        except ValueError:
            return None
    try:
        return dtparse.parse(text, default=datetime(date.today().year, 1, 1)).date()
    except (ValueError, OverflowError):
        return None


def is_today_or_future(value: str, today: date | None = None) -> bool:
    selected = parse_date_input(value)
    if selected is None:
        return False
    return selected >= (today or date.today())


def parse_iso_datetime(value: str) -> datetime | None:
    """ISO-8601 datetime that carries an explicit offset (or Z)."""
    text = (value or "").strip()
    if not text or "T" not in text:
        return None
    try:
        parsed = dtparse.isoparse(text)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def is_not_before_now(value: str, now: datetime | None = None) -> bool:
    parsed = parse_iso_datetime(value)
    if parsed is None:
        return False
    return parsed >= (now or datetime.now(timezone.utc))


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
