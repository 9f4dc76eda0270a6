import time
import uuid

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

from .errors import BODY_TOO_LARGE, INTERNAL_ERROR, error_payload

logger = structlog.get_logger()


async def log_requests(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)

    started = time.perf_counter()
    logger.info("request.start", method=request.method, path=request.url.path)
    try:
        response = await call_next(request)
    except Exception as e:
        logger.exception("request.error", error=str(e))
        raise
    logger.info(
        "request.end",
        status_code=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 1),
    )
    response.headers["X-Request-ID"] = request_id
    return response


def handle_errors(debug: bool):
    """Turn uncaught exceptions into a 500 body while still inside the CORS layer."""

    async def middleware(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception("unhandled_error", path=request.url.path, error=str(e))
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=error_payload(INTERNAL_ERROR, debug=debug, details=str(e)),
            )

    return middleware


def limit_body_size(max_bytes: int):
    """Reject requests that declare a body larger than ``max_bytes``."""

    async def middleware(request: Request, call_next):
        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > max_bytes:
            logger.warning("request.too_large", content_length=int(declared), limit=max_bytes)
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={"error": BODY_TOO_LARGE},
            )
        return await call_next(request)

    return middleware
