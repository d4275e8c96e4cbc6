"""
Toneshift Backend - Main FastAPI Application.

Entitlement decision service for the Toneshift rewriter: resolves
subscription limits, gates tier features and tone controls, and pre-checks
token and export quotas.

Run with:
    uvicorn toneshift.main:app --reload
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from toneshift.api.v1.entitlements import router as entitlements_router
from toneshift.config import get_settings
from toneshift.constants import API_TITLE, API_VERSION
from toneshift.errors import (
    AccessDeniedError,
    EntitlementError,
    QuotaExceededError,
    RateLimitExceededError,
    ToneRangeError,
)
from toneshift.logging_config import setup_logging
from toneshift.middleware import RequestContextMiddleware
from toneshift.services.audit_log import StructlogAuditLogger
from toneshift.services.rate_limiter import InMemoryRateLimiter

# Get settings before logging setup so we know the debug flag
settings = get_settings()

# Configure logging
setup_logging(settings.debug)

logger = structlog.get_logger(__name__)

ERROR_STATUS_CODES: list[tuple[type[EntitlementError], int]] = [
    (AccessDeniedError, 403),
    (ToneRangeError, 403),
    (QuotaExceededError, 429),
    (RateLimitExceededError, 429),
]


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan event handler for startup and shutdown."""
    logger.info("api_startup", cors_origins=settings.cors_origins)

    _app.state.audit_logger = StructlogAuditLogger()
    if settings.rate_limit.enabled:
        _app.state.rate_limiter = InMemoryRateLimiter(settings.rate_limit)
        logger.info(
            "rate_limiter_enabled",
            max_attempts=settings.rate_limit.max_attempts,
            window_seconds=settings.rate_limit.window_seconds,
        )
    else:
        _app.state.rate_limiter = None
        logger.warning("rate_limiter_disabled")

    logger.info(
        "tone_validation_configured",
        free_tier_tolerance=settings.tone_validation.free_tier_tolerance,
        gated_dimension_tolerance=settings.tone_validation.gated_dimension_tolerance,
    )

    yield

    logger.info("api_shutdown")


# Create FastAPI app
app = FastAPI(
    title=API_TITLE,
    description=(
        "Subscription entitlement decisions for the Toneshift rewriter: "
        "tier limits, feature access, tone control filtering and quota checks."
    ),
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Request context middleware must come before CORS so every response gets
# the X-Request-ID header (including preflight OPTIONS responses).
app.add_middleware(RequestContextMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EntitlementError)
async def entitlement_error_handler(_request: Request, exc: EntitlementError) -> JSONResponse:
    """Render entitlement failures as {"error": code, "detail": message, ...context}."""
    status_code = next(
        (code for error_type, code in ERROR_STATUS_CODES if isinstance(exc, error_type)),
        400,
    )
    if exc.severity in ("high", "critical"):
        # Unknown actions/presets mean the caller sent something it should not have
        logger.error("entitlement_caller_error", code=exc.code, detail=exc.message)

    headers = {}
    if isinstance(exc, RateLimitExceededError):
        headers["Retry-After"] = str(exc.retry_after_seconds)

    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "detail": exc.message, **exc.context()},
        headers=headers,
    )


# Include routers
app.include_router(entitlements_router, prefix="/api/v1")


@app.get("/")
async def root() -> dict:
    """Root endpoint with API info."""
    return {
        "name": API_TITLE,
        "version": API_VERSION,
        "description": "Subscription entitlement decisions for the Toneshift rewriter",
        "docs": "/docs",
    }


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}
