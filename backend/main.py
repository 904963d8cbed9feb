"""
RegFree Bridge - Backend Entrypoint

FastAPI application factory and server configuration.
Run with: uvicorn main:app --reload --port 8780
"""

from contextlib import asynccontextmanager
from typing import Optional
from uuid import uuid4
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.api import health, routes
from app.api.schemas import ErrorResponse, StatusResponse
from app.config import Settings, get_settings
from app.core.device_store import create_device_store
from app.core.dispatch import NotificationDispatcher
from app.core.exceptions import BridgeError, ValidationError
from app.core.logging import LogContext, setup_structured_logging
from app.core.registration import RegistrationService
from app.core.types import PushOptions
from app.services.push import PushProvider, create_push_provider
from app.telephony import router as telephony
from app.telephony.client import TelephonyClient, create_telephony_client

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    push_provider: Optional[PushProvider] = None,
    telephony_client: Optional[TelephonyClient] = None,
) -> FastAPI:
    """
    Application factory.

    Collaborators are built in the lifespan from settings unless passed in,
    which lets tests inject a dummy push provider or a mocked HTTP transport.
    """
    settings = settings or get_settings()

    setup_structured_logging(
        level=settings.app_log_level,
        json_format=settings.log_json_format,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        Startup:
            - Create the empty device store
            - Configure push provider and telephony client
            - Wire registration and dispatch services into app.state

        Shutdown:
            - Close the telephony HTTP client
            - Drop all registrations
        """
        # === Startup ===
        logger.info("RegFree Bridge starting in %s mode", settings.app_env)

        store = create_device_store()
        push = push_provider or create_push_provider(settings)
        telephony_api = telephony_client or create_telephony_client(settings)

        app.state.settings = settings
        app.state.store = store
        app.state.push_provider = push
        app.state.telephony = telephony_api
        app.state.registration = RegistrationService(store, telephony_api)
        app.state.dispatcher = NotificationDispatcher(
            store,
            push,
            PushOptions(
                priority=settings.push_priority,
                time_to_live=settings.push_ttl_seconds,
            ),
        )

        logger.info(
            "Bridge ready: push=%s, ttl=%ds, telephony=%s",
            push.name,
            settings.push_ttl_seconds,
            settings.telephony_api_host,
        )

        yield

        # === Shutdown ===
        logger.info("RegFree Bridge shutting down")
        await telephony_api.aclose()
        await store.clear()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="RegFree Bridge",
        description="Routes telephony call events to mobile push notifications",
        version=__version__,
        docs_url="/docs" if settings.app_debug else None,
        redoc_url="/redoc" if settings.app_debug else None,
        lifespan=lifespan,
    )

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Request Context ---
    @app.middleware("http")
    async def correlation_context(request: Request, call_next):
        correlation_id = request.headers.get("x-request-id") or uuid4().hex[:12]
        with LogContext(correlation_id=correlation_id):
            response = await call_next(request)
        response.headers["X-Request-ID"] = correlation_id
        return response

    # --- Error Handling ---
    @app.exception_handler(BridgeError)
    async def handle_bridge_error(request: Request, exc: BridgeError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "%s %s failed: %s",
                request.method,
                request.url.path,
                exc.message,
                extra={"data": exc.details},
            )
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)

        body = ErrorResponse(message=exc.message, code=exc.code, details=exc.details or None)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        body = ErrorResponse(message="Malformed request body", code=ValidationError.code)
        return JSONResponse(status_code=ValidationError.status_code, content=body.model_dump(exclude_none=True))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("%s %s crashed", request.method, request.url.path)
        body = ErrorResponse(message="Internal server error", code=BridgeError.code)
        return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))

    # --- Routes ---
    @app.get("/", response_model=StatusResponse)
    async def root() -> StatusResponse:
        """Root health check."""
        return StatusResponse(status=True)

    app.include_router(routes.router)
    app.include_router(telephony.router)
    app.include_router(health.router)

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(app, host=_settings.backend_host, port=_settings.backend_port)
