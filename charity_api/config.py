import os
from dotenv import load_dotenv

from charity_api.errors import ConfigurationMissing

load_dotenv(dotenv_path=".env")

REQUIRED_SETTINGS = (
    "CLOUDINARY_CLOUD_NAME",
    "CLOUDINARY_API_KEY",
    "CLOUDINARY_API_SECRET",
    "MONGODB_URI",
)


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    """Non-numeric or out-of-range values fall back to the default."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(float(raw))
    except ValueError:
        return default
    return value if value >= minimum else default


def load_config() -> dict:
    """Read every recognized option from the environment."""
    return {
        "APP_ENV": os.getenv("APP_ENV", "development").strip().lower(),
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO").upper(),
        "ADMIN_KEY": os.getenv("ADMIN_KEY", "change-this-admin-key"),
        "CLIENT_ORIGIN": os.getenv("CLIENT_ORIGIN", "http://localhost:5173"),
        "ADMIN_ORIGIN": os.getenv("ADMIN_ORIGIN", "http://localhost:5174"),
        # Media host
        "CLOUDINARY_CLOUD_NAME": os.getenv("CLOUDINARY_CLOUD_NAME", "").strip(),
        "CLOUDINARY_API_KEY": os.getenv("CLOUDINARY_API_KEY", "").strip(),
        "CLOUDINARY_API_SECRET": os.getenv("CLOUDINARY_API_SECRET", "").strip(),
        "CLOUDINARY_FOLDER": os.getenv("CLOUDINARY_FOLDER", "femifunmi-foundation"),
        "CLOUDINARY_UPLOAD_TIMEOUT_MS": _int_env(
            "CLOUDINARY_UPLOAD_TIMEOUT_MS", 120000
        ),
        "CLOUDINARY_UPLOAD_RETRY_COUNT": _int_env("CLOUDINARY_UPLOAD_RETRY_COUNT", 1),
        "UPLOAD_CONCURRENCY": _int_env("UPLOAD_CONCURRENCY", 4, minimum=1),
        "MAX_UPLOAD_BYTES": _int_env("MAX_UPLOAD_BYTES", 25 * 1024 * 1024, minimum=1),
        # Document store
        "MONGODB_URI": os.getenv("MONGODB_URI", "").strip(),
        "MONGODB_DB_NAME": os.getenv("MONGODB_DB_NAME") or "femifunmi_foundation",
        # Optional collaborators
        "NEWSLETTER_WEBHOOK_URL": os.getenv("NEWSLETTER_WEBHOOK_URL", "").strip()
        or None,
        "REDIS_URL": os.getenv("REDIS_URL", "").strip() or None,
        "RATE_LIMIT_ENABLED": os.getenv("RATE_LIMIT_ENABLED", "1") == "1",
        "RATE_LIMIT_PER_MINUTE": _int_env("RATE_LIMIT_PER_MINUTE", 30),
    }


def check_required(config: dict) -> None:
    missing = [name for name in REQUIRED_SETTINGS if not config.get(name)]
    if missing:
        raise ConfigurationMissing(missing)
