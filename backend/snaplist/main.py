import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from snaplist.api.v1.listings import router as listings_router
from snaplist.core.config import get_settings
from snaplist.services.listing.errors import ListingError

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Snaplist API",
    version="0.1.0",
    docs_url="/docs" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.docs_enabled else None,
)

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=settings.cors_allow_headers,
    )

app.include_router(listings_router, prefix="/api/v1", tags=["listings"])


@app.get("/health", tags=["health"])
async def health():
    # Presence only, never the credential values.
    current = get_settings()
    return {
        "status": "ok",
        "vision_configured": bool(current.google_cloud_api_key),
        "llm_configured": bool(current.listing_llm_api_key),
        "llm_provider": current.listing_llm_provider,
    }


@app.exception_handler(ListingError)
async def _listing_error_handler(request: Request, exc: ListingError):
    if exc.status_code >= 500:
        logger.error("Listing request failed at %s: %s", exc.stage, exc)
    else:
        logger.info("Listing request rejected: %s", exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info("Invalid request body: %s", exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(StarletteHTTPException)
async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Hide internal details for 5xx unless explicitly enabled.
    if exc.status_code >= 500 and not settings.expose_error_details:
        return JSONResponse(status_code=exc.status_code, content={"error": "Internal server error"})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    message = str(exc) if settings.expose_error_details else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={
            "error": message,
            "errorType": type(exc).__name__,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        },
    )
