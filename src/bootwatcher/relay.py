from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .db import FirebaseStore, NotificationStore
from .errors import MissingOrInvalidRecipients, StoreError, ValidationError
from .logger import get_logger
from .middleware import add_cors, add_request_logging
from .pipeline import dispatch
from .sms import validate
from .twilio_client import Messenger, TwilioMessenger

logger = get_logger("relay")

WELCOME_MESSAGE = "Welcome to the BootWatcher SMS Backend API!"


# --- Dependencies ---


def get_messenger(request: Request) -> Messenger:
    return request.app.state.messenger


def get_store(request: Request) -> NotificationStore:
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


# --- Error handlers ---


def _register_error_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        logger.warning(
            "Invalid request",
            extra={"path": request.url.path, "error": exc.message, "field": exc.field},
        )
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def malformed_body_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Only reachable when the body is not JSON at all.
        logger.warning("Malformed request body", extra={"path": request.url.path})
        error = MissingOrInvalidRecipients("Invalid request: body must be valid JSON")
        return JSONResponse(status_code=400, content=error.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            content = {
                "error": "Route not found",
                "path": request.url.path,
                "method": request.method,
            }
        else:
            content = {"error": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled error",
            exc_info=exc,
            extra={"path": request.url.path, "method": request.method},
        )
        content: dict[str, Any] = {"error": "Something went wrong!"}
        if not settings.is_production:
            content["details"] = str(exc)
        return JSONResponse(status_code=500, content=content)


# --- App factory ---


def create_relay_app(
    settings: Settings | None = None,
    messenger: Messenger | None = None,
    store: NotificationStore | None = None,
) -> FastAPI:
    """
    Build the notification relay.

    Collaborators that are not passed in are created once in the lifespan
    from settings (and the Firebase app is released again on shutdown).
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned_store: FirebaseStore | None = None
        if app.state.messenger is None:
            app.state.messenger = TwilioMessenger.from_settings(settings)
        if app.state.store is None:
            owned_store = FirebaseStore.from_settings(settings)
            app.state.store = owned_store

        logger.info(
            "Relay started",
            extra={"environment": settings.environment, "allowed_origins": settings.allowed_origins},
        )
        yield

        if owned_store is not None:
            owned_store.close()

    app = FastAPI(
        title="bootwatcher-relay",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
        openapi_url=None if settings.is_production else "/openapi.json",
    )
    app.state.settings = settings
    app.state.messenger = messenger
    app.state.store = store

    add_cors(app, settings.allowed_origins)
    add_request_logging(app, settings.allowed_origins)
    _register_error_handlers(app, settings)

    # --- Routes ---

    @app.get("/")
    def index() -> dict[str, str]:
        return {"message": WELCOME_MESSAGE}

    @app.get("/health")
    def health(app_settings: Settings = Depends(get_app_settings)) -> dict[str, str]:
        return {
            "status": "ok",
            "timestamp": datetime.now(UTC).isoformat(),
            "environment": app_settings.environment,
        }

    @app.get("/users")
    def users(
        store: NotificationStore = Depends(get_store),
        app_settings: Settings = Depends(get_app_settings),
    ) -> JSONResponse:
        """Dump everything under users/ in the realtime database."""
        try:
            data = store.fetch_users()
        except StoreError as e:
            logger.error("Error fetching users", extra={"error": str(e)})
            content: dict[str, Any] = {"error": "Failed to fetch users"}
            if not app_settings.is_production:
                content["details"] = str(e)
            return JSONResponse(status_code=500, content=content)
        return JSONResponse(data)

    @app.post("/send-sms")
    def send_sms(
        payload: Any = Body(default=None),
        messenger: Messenger = Depends(get_messenger),
        store: NotificationStore = Depends(get_store),
    ) -> JSONResponse:
        """
        Send one SMS per phone number.

        Accepts JSON:

          { "phoneNumbers": ["+15551234567"], "message": "Lot A is full", "parkingLot": "A" }

        Responds 200 when at least one SMS went out, 500 when every one failed,
        and 400 (via the ValidationError handler) for a malformed request.
        """
        request = validate(payload)
        logger.info(
            "Received /send-sms request",
            extra={"recipients": len(request.recipients), "parkingLot": request.origin_label},
        )

        report = dispatch(request, messenger, store)
        status_code = 200 if report.overall_success else 500
        return JSONResponse(status_code=status_code, content=report.to_response())

    return app
