from .core_routes import core
from .admin_routes import admin_bp
from .gallery_routes import gallery_bp
from .recent_update_routes import updates_bp
from .event_routes import events_bp
from .donation_routes import donations_bp
from .newsletter_routes import newsletter_bp
from .content_routes import content_bp
from .media_routes import media_bp

__all__ = [
    "core",
    "admin_bp",
    "gallery_bp",
    "updates_bp",
    "events_bp",
    "donations_bp",
    "newsletter_bp",
    "content_bp",
    "media_bp",
]
