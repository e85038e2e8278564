import hmac
import inspect
from functools import wraps

from flask import current_app, request

from charity_api.errors import Unauthorized

ADMIN_HEADER = "X-Admin-Key"


def is_admin_request() -> bool:
    supplied = request.headers.get(ADMIN_HEADER) or ""
    expected = current_app.config.get("ADMIN_KEY") or ""
    if not supplied or not expected:
        return False
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def require_admin(fn):
    """Reject the request with 401 unless it carries the operator key."""
    if inspect.iscoroutinefunction(fn):

        @wraps(fn)
        async def async_wrapper(*args, **kwargs):
            if not is_admin_request():
                raise Unauthorized()
            return await fn(*args, **kwargs)

        return async_wrapper

    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not is_admin_request():
            raise Unauthorized()
        return fn(*args, **kwargs)

    return wrapper
