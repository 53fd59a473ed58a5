"""
Trackhub API Server

Entry point for the FastAPI application.
"""

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1 import router as api_v1_router
from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import InvalidArgumentError, StoreError, TrackhubError
from app.core.logging import configure_logging
from app.core.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from trackhub_shared.schemas.common import APIResponse, ErrorBody

settings = get_settings()
log = structlog.get_logger()

HTTP_ERROR_CODES = {
    401: "UNAUTHENTICATED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _error_response(error: TrackhubError) -> JSONResponse:
    body = error.to_body(include_details=settings.debug)
    return JSONResponse(status_code=error.status_code, content=jsonable_encoder(body))


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error through the standard response envelope."""

    @app.exception_handler(TrackhubError)
    async def trackhub_error_handler(request: Request, exc: TrackhubError):
        log.info("request.rejected", code=exc.code, message=exc.message)
        return _error_response(exc)

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        log.exception("store.error", error_type=type(exc).__name__)
        return _error_response(StoreError("Storage is unavailable", error=str(exc)))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        error = InvalidArgumentError("Request validation failed", errors=exc.errors())
        body = error.to_body(include_details=True)
        body["error"]["status"] = 422
        return JSONResponse(status_code=422, content=jsonable_encoder(body))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        body = APIResponse(
            success=False,
            message=message,
            error=ErrorBody(
                code=HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
                message=message,
                status=exc.status_code,
            ),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=body.model_dump(mode="json", exclude_none=True),
            headers=getattr(exc, "headers", None),
        )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Trackhub",
        description="Project billing ledger and team lead assignment service.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Middleware (last added is outermost)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    register_exception_handlers(app)

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness checks."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check(session: AsyncSession = Depends(get_session)):
        """Readiness check endpoint: the database must answer."""
        await session.execute(text("SELECT 1"))
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        log.info(
            "Trackhub starting",
            max_concurrent_projects=settings.max_concurrent_projects,
            debug=settings.debug,
        )

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("Trackhub shutting down")

    return app


app = create_app()
