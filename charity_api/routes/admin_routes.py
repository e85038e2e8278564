from flask import Blueprint, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from charity_api.utils.authz import require_admin

admin_bp = Blueprint("admin", __name__)


@admin_bp.get("/admin/metrics")
@require_admin
def metrics():
    """Prometheus metrics endpoint. Requires the operator key."""
    return Response(
        generate_latest(REGISTRY),
        mimetype=CONTENT_TYPE_LATEST,
    )
