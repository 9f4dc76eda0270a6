from typing import Any, Tuple

from fastapi import status
from openai import AuthenticationError, RateLimitError

from .schemas import ErrorResponse
from .utils import MISSING, includes_any

INVALID_MESSAGES = "Missing or invalid messages array."
RATE_LIMITED = "Rate limit exceeded. Please try again in a moment."
AUTH_FAILED = "Authentication failed. Please check API key."
INVALID_MODEL = "Invalid model specified."
UNKNOWN_ERROR = "Unknown error occurred"
INTERNAL_ERROR = "Internal server error"
BODY_TOO_LARGE = "Request body too large."

# Matched in order against the lower-cased upstream message.
# Upstream client upgrades can reword these messages; keep tests pinned to them.
_MESSAGE_RULES = (
    (("rate limit",), status.HTTP_429_TOO_MANY_REQUESTS, RATE_LIMITED),
    (("authentication",), status.HTTP_401_UNAUTHORIZED, AUTH_FAILED),
    (("model",), status.HTTP_400_BAD_REQUEST, INVALID_MODEL),
)


def classify_upstream_error(exc: BaseException) -> Tuple[int, str]:
    """Map an upstream failure to ``(http_status, error_text)``."""
    if isinstance(exc, RateLimitError):
        return status.HTTP_429_TOO_MANY_REQUESTS, RATE_LIMITED
    if isinstance(exc, AuthenticationError):
        return status.HTTP_401_UNAUTHORIZED, AUTH_FAILED

    message = str(exc)
    if not message:
        return status.HTTP_500_INTERNAL_SERVER_ERROR, UNKNOWN_ERROR

    for patterns, code, text in _MESSAGE_RULES:
        if includes_any(message, patterns):
            return code, text
    return status.HTTP_500_INTERNAL_SERVER_ERROR, message


def error_payload(
    error: str,
    *,
    debug: bool,
    details: str | None = None,
    received: str | None = None,
    request_body: Any = MISSING,
) -> dict:
    """Build an ErrorResponse body; diagnostics are only attached in debug mode."""
    body = ErrorResponse(error=error, received=received).model_dump(exclude_none=True)
    if debug:
        if details:
            body["details"] = details
        if request_body is not MISSING:
            body["requestBody"] = request_body
    return body
