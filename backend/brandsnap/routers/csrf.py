"""
CSRF Router — hands the browser an anti-forgery token on initial load.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from brandsnap.config import get_settings
from brandsnap.csrf import CSRF_PARAMETER_NAME, generate_csrf_token

router = APIRouter(tags=["CSRF"])


@router.get("/csrf-token")
async def csrf_token():
    """Issue a token and set it as a cookie readable by the frontend."""
    settings = get_settings()
    token = generate_csrf_token()
    response = JSONResponse(
        content={
            "token": token,
            "headerName": settings.csrf_header_name,
            "parameterName": CSRF_PARAMETER_NAME,
        }
    )
    response.set_cookie(
        settings.csrf_cookie_name,
        token,
        httponly=False,  # the SPA reads it to echo it back in the header
        samesite="lax",
        secure=settings.is_production,
        path="/",
    )
    return response
