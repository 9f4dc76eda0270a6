from __future__ import annotations

from contextlib import asynccontextmanager

import orjson
import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from . import __version__
from .config import Settings
from .errors import (
    BODY_TOO_LARGE,
    INVALID_MESSAGES,
    classify_upstream_error,
    error_payload,
)
from .llm_service import ChatCompletionService
from .logging_conf import setup_logging
from .middlewares import handle_errors, limit_body_size, log_requests
from .schemas import ChatRequest, ErrorResponse, HealthResponse
from .utils import MISSING, json_type_name, utc_timestamp

logger = structlog.get_logger()

CHAT_PATH = "/api/chat"


def create_app(
    settings: Settings | None = None,
    chat_service: ChatCompletionService | None = None,
) -> FastAPI:
    """Build the proxy app; settings are read once here and shared by every route."""
    settings = settings or Settings()
    chat_service = chat_service or ChatCompletionService(settings)
    setup_logging(settings.LOG_LEVEL, settings.json_logs)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        logger.info(
            "proxy.started",
            port=settings.PORT,
            health=f"http://localhost:{settings.PORT}/health",
            chat=f"http://localhost:{settings.PORT}{CHAT_PATH}",
            env=settings.APP_ENV,
        )
        if not settings.UPSTREAM_API_KEY:
            logger.warning(
                "proxy.missing_api_key",
                hint="Set UPSTREAM_API_KEY in the environment or the .env file",
            )
        try:
            yield
        finally:
            logger.info("proxy.shutdown")
            await chat_service.aclose()

    app = FastAPI(
        title=settings.APP_NAME,
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.chat_service = chat_service

    # ---------------------------------------------------
    # Middleware (last added runs first)
    # ---------------------------------------------------
    app.middleware("http")(limit_body_size(settings.MAX_BODY_BYTES))
    app.middleware("http")(handle_errors(settings.debug))
    app.middleware("http")(log_requests)
    origins = settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------------------------------------------
    # Routes
    # ---------------------------------------------------
    @app.get("/")
    async def root():
        """Root metadata endpoint."""
        return {
            "service": settings.APP_NAME,
            "version": __version__,
            "status": "running",
            "endpoints": {
                "chat": f"{CHAT_PATH} (POST)",
                "health": "/health (GET)",
            },
        }

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(timestamp=utc_timestamp())

    @app.post(
        CHAT_PATH,
        responses={
            400: {"model": ErrorResponse},
            401: {"model": ErrorResponse},
            413: {"model": ErrorResponse},
            429: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
        },
    )
    async def chat(request: Request):
        """
        Forward a chat completion to the upstream provider:
        - only checks that ``messages`` is an array
        - generation parameters are fixed server-side
        - upstream failures are classified into 400/401/429/500
        """
        raw = await request.body()
        if len(raw) > settings.MAX_BODY_BYTES:
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={"error": BODY_TOO_LARGE},
            )

        body = None
        if raw:
            try:
                body = orjson.loads(raw)
            except orjson.JSONDecodeError as e:
                logger.warning("chat.malformed_json", error=str(e))

        try:
            payload = ChatRequest.model_validate(body)
        except ValidationError:
            messages = body.get("messages", MISSING) if isinstance(body, dict) else MISSING
            received = json_type_name(messages)
            logger.warning("chat.invalid_messages", received=received)
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content=error_payload(
                    INVALID_MESSAGES,
                    debug=settings.debug,
                    received=received,
                    request_body=body,
                ),
            )

        model = payload.model or chat_service.default_model
        first = payload.messages[0] if payload.messages else None
        logger.info(
            "chat.request",
            model=model,
            message_count=len(payload.messages),
            first_role=first.get("role") if isinstance(first, dict) else None,
        )

        try:
            completion = await chat_service.complete(payload.messages, model)
        except Exception as e:
            code, text = classify_upstream_error(e)
            logger.error(
                "chat.upstream_error",
                status_code=code,
                error_type=type(e).__name__,
                error=str(e),
            )
            return JSONResponse(
                status_code=code,
                content=error_payload(
                    text,
                    debug=settings.debug,
                    details=str(e) or None,
                    request_body=body,
                ),
            )

        return JSONResponse(content=completion)

    return app

