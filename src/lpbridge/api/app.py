"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lpbridge.config import get_settings
from lpbridge.errors import (
    AuthorizationError,
    BridgeError,
    CollaboratorError,
    ReentrantCall,
    ResourceError,
    TrustError,
    ValidationError,
)
from lpbridge.factory import BridgeDomain, build_domain
from lpbridge.ledger.database import close_db, init_db
from lpbridge.utils.locks import LockTimeoutError

logger = logging.getLogger(__name__)

ERROR_STATUS: list[tuple[type, int]] = [
    (ValidationError, 400),
    (AuthorizationError, 403),
    (TrustError, 409),
    (ReentrantCall, 409),
    (ResourceError, 422),
    (CollaboratorError, 502),
]


def status_for(error: BridgeError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code
    return 500


async def bridge_error_handler(request: Request, exc: BridgeError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


async def lock_timeout_handler(request: Request, exc: LockTimeoutError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} timed out waiting for the domain lock")
    return JSONResponse(status_code=503, content={"error": "LockTimeout", "detail": str(exc)})


def create_app(domain: Optional[BridgeDomain] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Without ``domain`` the app initializes the configured database and
    wires a domain from settings on startup.
    """
    settings = domain.settings if domain else get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        # Startup
        if domain is None:
            await init_db()
            app.state.domain = build_domain(settings)
        yield
        # Shutdown
        if domain is None:
            await close_db()

    app = FastAPI(
        title="lpbridge API",
        description="Liquidity-pool bridge ledger API",
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.domain = domain

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BridgeError, bridge_error_handler)
    app.add_exception_handler(LockTimeoutError, lock_timeout_handler)

    # Register routes
    from lpbridge.api.routers import admin
    from lpbridge.api.routes import bridge, health

    app.include_router(health.router, tags=["Health"])
    app.include_router(bridge.router, prefix="/api/v1", tags=["Bridge"])
    app.include_router(admin.router, tags=["Admin"])

    return app
