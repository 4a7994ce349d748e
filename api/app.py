"""
FastAPI Application.

Mentor booking API with:
- Modular router structure
- Correlation IDs on every request
- Typed domain errors rendered as JSON
- CORS support
"""

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.lifespan import lifespan
from api.routers import (
    health_router,
    auth_router,
    availability_router,
    appointments_router,
    chats_router,
)
from api.routers.health import API_VERSION
from utils.errors import BaseApplicationError, InternalError, error_payload, is_expected
from utils.monitoring import get_logger, set_correlation_id, clear_correlation_id
from config import settings

logger = get_logger(__name__)


# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title="Clarity Call Booking API",
    description="""
    **Mentor booking with conflict prevention**

    ## Features

    - Client and mentor accounts with session tokens
    - Email-based password recovery
    - Weekly mentor availability
    - Appointment booking with overlap protection and a status lifecycle
    - Client/mentor conversations
    """,
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    redirect_slashes=False,
)


# ============================================================================
# Middleware Stack
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Correlation-ID"],
    expose_headers=["X-Correlation-ID"],
    max_age=600,
)


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    """Propagate or assign ``X-Correlation-ID`` and log each request."""
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
    set_correlation_id(correlation_id)
    started = time.perf_counter()
    try:
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        logger.request(
            request.method,
            request.url.path,
            response.status_code,
            int((time.perf_counter() - started) * 1000),
        )
        return response
    finally:
        clear_correlation_id()


# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(BaseApplicationError)
async def application_error_handler(request: Request, exc: BaseApplicationError):
    """Render application errors; internal ones get a generic body."""
    if not is_expected(exc) and not isinstance(exc, InternalError):
        logger.warning(
            f"{exc.error_code}: {exc.message}",
            path=request.url.path,
            method=request.method,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(exc),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    logger.error(
        f"Unhandled error: {type(exc).__name__}",
        error=exc,
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(
        status_code=500,
        content=error_payload(InternalError()),
    )


# ============================================================================
# Routers
# ============================================================================

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(availability_router)
app.include_router(appointments_router)
app.include_router(chats_router)


# ============================================================================
# Application Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )
