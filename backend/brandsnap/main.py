"""
BrandSnap — FastAPI Backend
Users own projects, projects group campaigns, campaigns collect generated image assets.
Images are produced by the Gemini image model and stored inline as data URLs.
"""

import logging
from contextlib import asynccontextmanager
import httpx
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse
from brandsnap.config import get_settings
from brandsnap.csrf import CSRFMiddleware
from brandsnap.database import init_db, check_db_connection
from brandsnap.exceptions import BrandsnapError
from brandsnap.routers import assets, auth, campaigns, csrf, projects
from brandsnap.synthesizer import ImageSynthesizer

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting BrandSnap...")
    if not settings.nano_banana_api_key:
        logger.warning("NANO_BANANA_API_KEY is not set — every generation will return the placeholder image.")

    # One pooled client per process, shared by all requests
    http_client = httpx.AsyncClient(timeout=settings.synthesizer_timeout_seconds)
    app.state.synthesizer = ImageSynthesizer.from_settings(settings, http_client)

    try:
        await init_db()
        logger.info("Database initialized — all tables ready.")
    except Exception as e:
        logger.error(f"Startup failed (DB/init): {e}", exc_info=True)
        # Still yield so app can serve /api/health (degraded) and logs are visible
    yield
    logger.info("Shutting down...")
    await http_client.aclose()


app = FastAPI(
    title="BrandSnap",
    description="Branded asset generation: projects, campaigns and AI-generated images",
    version="1.0.0",
    lifespan=lifespan,
)


# ── Error rendering: every error body is {"message": ...} ──────────────

@app.exception_handler(BrandsnapError)
async def brandsnap_error_handler(request: Request, exc: BrandsnapError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())[1:]) or "request"
        problems.append(f"{field}: {err.get('msg')}")
    return JSONResponse(status_code=400, content={"message": "; ".join(problems) or "Invalid request"})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# CSRFMiddleware first (runs second); CORSMiddleware last (runs first so preflights never hit CSRF)
app.add_middleware(CSRFMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Public ─────────────────────────────────────────────────────────────
app.include_router(auth.router, prefix="/api")
app.include_router(csrf.router, prefix="/api")

# ── Authenticated (each endpoint resolves the current user) ───────────
app.include_router(projects.router, prefix="/api/projects", tags=["Projects"])
app.include_router(campaigns.router, prefix="/api/campaigns", tags=["Campaigns"])
app.include_router(assets.router, prefix="/api/assets", tags=["Assets"])


@app.get("/api/health")
async def health_check():
    db_ok = await check_db_connection()
    return {
        "status": "healthy" if db_ok else "degraded",
        "service": "BrandSnap",
        "database": "connected" if db_ok else "disconnected",
    }
