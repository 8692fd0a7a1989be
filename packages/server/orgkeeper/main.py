"""
orgkeeper API Server

Entry point for the FastAPI application.
"""

from http import HTTPStatus

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from orgkeeper import __version__
from orgkeeper.core.config import get_settings
from orgkeeper.core.errors import (
    FORBIDDEN_MESSAGE,
    DecryptionError,
    ForbiddenError,
    NotFoundError,
    OrgKeeperError,
)
from orgkeeper.core.logging import configure_logging
from orgkeeper.core.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from orgkeeper.api.v1 import router as api_v1_router

settings = get_settings()
log = structlog.get_logger()


def _error_response(
    status: int, code: str, message: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"error": {"code": code, "message": message, "status": status}},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors onto the JSON error envelope."""

    @app.exception_handler(ForbiddenError)
    @app.exception_handler(NotFoundError)
    async def forbidden_handler(request: Request, exc: OrgKeeperError):
        # Missing and forbidden look the same from outside.
        log.info(
            "request.forbidden",
            error=exc.code,
            reason=getattr(exc, "reason", None) or exc.message,
        )
        return _error_response(403, ForbiddenError.code, FORBIDDEN_MESSAGE)

    @app.exception_handler(DecryptionError)
    async def decryption_handler(request: Request, exc: DecryptionError):
        # The cause stays in the log; the body is the same for every failure.
        log.error("request.decryption_failed", error=exc.message)
        return _error_response(500, exc.code, DecryptionError().default_message())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(
            exc.status_code,
            HTTPStatus(exc.status_code).name,
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(
        settings.log_level,
        settings.log_format,
        service=settings.service_name,
        environment=settings.environment,
    )

    app = FastAPI(
        title="orgkeeper",
        description="Organizations, team membership and per-page access control.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Middleware (order matters: last added is outermost)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Org-Id"],
    )
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check endpoint for startup probes."""
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        log.info("orgkeeper starting", billing_enabled=settings.billing_enabled)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("orgkeeper shutting down")

    return app


app = create_app()


def run() -> None:
    """Serve the app with uvicorn using the configured host and port."""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)


if __name__ == "__main__":
    run()
