"""FastAPI app entry point."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from app.core.config import Settings, settings
from app.core.logging_config import configure_logging
from app.routers import newsletters, site, subscriptions
from app.services.email_client import close_email_sender, configure_email_sender

logger = logging.getLogger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Rejected malformed request", extra={"path": request.url.path})
        fields = [".".join(str(part) for part in error.get("loc", ())) for error in exc.errors()]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Malformed request", "fields": fields},
        )


def create_app(config: Settings = settings) -> FastAPI:
    """Build FastAPI application."""

    configure_logging(config.log_level)

    app = FastAPI(title="Newsletter", version="0.1.0")
    app.state.email_sender = configure_email_sender(config)

    _register_error_handlers(app)
    app.include_router(subscriptions.router)
    app.include_router(newsletters.router)
    app.include_router(site.router)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await close_email_sender(app.state.email_sender)

    @app.get("/health_check", tags=["health"])
    async def health_check() -> Response:
        return Response(status_code=status.HTTP_200_OK)

    @app.get("/healthz", tags=["health"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
