"""streamguard - FastAPI Application Entry Point.

Wires the security layer into the request lifecycle:
- Rate limiting before handling
- Request body validation before handlers
- Error sanitization for anything that escapes
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from streamguard.config import DEBUG, RATE_LIMIT_EXEMPT_PATHS, logger
from streamguard.core.security import RateLimiter, get_rate_limiter
from streamguard.middleware import (
    ErrorSanitizationMiddleware,
    InputValidationMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
)
from streamguard.routers import media
from streamguard.schemas import HealthResponse
from streamguard.version import __version__


# -----------------------------------------------------------------------------
# Application Lifespan
# -----------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("Starting streamguard v%s", __version__)
    yield
    logger.info("Shutting down streamguard")


# -----------------------------------------------------------------------------
# Application Factory
# -----------------------------------------------------------------------------

def create_app(limiter: Optional[RateLimiter] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    limiter = limiter or get_rate_limiter()

    app = FastAPI(
        title="streamguard",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if DEBUG else None,
        redoc_url="/redoc" if DEBUG else None,
        openapi_url="/openapi.json" if DEBUG else None,
    )
    app.state.rate_limiter = limiter

    # -------------------------------------------------------------------------
    # Middleware Stack (order matters - first added = last executed)
    # -------------------------------------------------------------------------

    # 1. Input validation (innermost - only admitted requests are parsed)
    app.add_middleware(InputValidationMiddleware)

    # 2. Rate limiting
    app.add_middleware(
        RateLimitMiddleware,
        limiter=limiter,
        exclude_paths=RATE_LIMIT_EXEMPT_PATHS,
    )

    # 3. Request ID tagging and request logging
    app.add_middleware(RequestLoggingMiddleware, exclude_paths=RATE_LIMIT_EXEMPT_PATHS)

    # 4. Error sanitization (outermost - catches all errors)
    app.add_middleware(ErrorSanitizationMiddleware)

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Report schema errors without echoing the offending input."""
        clean_errors = [
            {"field": ".".join(str(loc) for loc in err.get("loc", [])), "message": err.get("msg", "Invalid value")}
            for err in exc.errors()[:5]
        ]
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": clean_errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions with consistent format."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    # -------------------------------------------------------------------------
    # Health Check Endpoints
    # -------------------------------------------------------------------------

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    @app.get("/healthz", response_model=HealthResponse, include_in_schema=False)
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers and orchestrators."""
        return HealthResponse(
            status="healthy",
            version=__version__,
            timestamp=datetime.now(timezone.utc),
            tracked_clients=len(limiter.tracked_keys()),
        )

    app.include_router(media.router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "streamguard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=DEBUG,
        limit_concurrency=100,
    )
