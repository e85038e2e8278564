from flask import Blueprint, jsonify

core = Blueprint("core", __name__)


@core.get("/")
def root():
    return jsonify({"service": "charity-api", "ok": True})


@core.get("/__ping")
def ping():
    return jsonify({"ok": True})


@core.get("/api/health")
def health():
    return jsonify({"ok": True})


@core.get("/api")
def api_index():
    return jsonify(
        {
            "endpoints": {
                "gallery": ["/api/gallery", "/api/gallery/<id>"],
                "recentUpdates": ["/api/recent-updates", "/api/recent-updates/<id>"],
                "upcomingEvents": ["/api/upcoming-events", "/api/upcoming-events/<id>"],
                "donations": ["/api/donations (POST)"],
                "newsletter": [
                    "/api/newsletter/subscribe (POST)",
                    "/api/newsletter/unsubscribe (POST)",
                ],
                "content": ["/api/cases", "/api/donation-content", "/api/contact (POST)"],
            }
        }
    )
