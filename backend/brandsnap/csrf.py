"""
Anti-forgery tokens (double-submit cookie).

GET /api/csrf-token sets the token cookie; browser clients echo it back in the
header on state-changing requests. Bearer-authenticated and cookieless
clients are not checked.
"""

import logging
import secrets
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from brandsnap.config import get_settings

logger = logging.getLogger(__name__)

SAFE_METHODS = {"GET", "HEAD", "OPTIONS", "TRACE"}
CSRF_PARAMETER_NAME = "_csrf"


def generate_csrf_token() -> str:
    return secrets.token_urlsafe(32)


class CSRFMiddleware(BaseHTTPMiddleware):
    """Reject unsafe cookie-carrying requests whose header doesn't match the cookie."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method not in SAFE_METHODS:
            settings = get_settings()
            cookie = request.cookies.get(settings.csrf_cookie_name)
            has_bearer = request.headers.get("authorization", "").lower().startswith("bearer ")
            if cookie and not has_bearer:
                header = request.headers.get(settings.csrf_header_name, "")
                if not secrets.compare_digest(header.encode(), cookie.encode()):
                    logger.warning(f"CSRF check failed: {request.method} {request.url.path}")
                    return JSONResponse(status_code=403, content={"message": "Invalid CSRF token"})
        return await call_next(request)
