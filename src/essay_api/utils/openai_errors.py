"""
OpenAI SDK exception mapping utilities.

Maps OpenAI SDK and transport exceptions to the service error hierarchy so the
HTTP layer and the stream relay deal with one error taxonomy.
"""

import httpx
from openai import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    AuthenticationError,
    BadRequestError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    UnprocessableEntityError,
)

from essay_api.utils.errors import (
    AuthError,
    EssayServiceError,
    InvalidRequestError,
    TransportError,
    UpstreamError,
)
from essay_api.utils.logging import get_logger

logger = get_logger(__name__)


def map_openai_exception(exc: Exception) -> EssayServiceError:
    """
    Map an OpenAI SDK exception to the service error hierarchy.

    Exceptions that are already service errors are returned unchanged. Anything
    not recognised becomes an UpstreamError, so callers always get an error with
    a status code and error code.

    Args:
        exc: Exception raised while talking to the completion service

    Returns:
        Mapped service exception
    """
    if isinstance(exc, EssayServiceError):
        return exc

    # Credential rejected (401/403)
    if isinstance(exc, (AuthenticationError, PermissionDeniedError)):
        logger.debug(
            "Mapping credential rejection to AuthError",
            extra={"original_error": str(exc), "status_code": exc.status_code},
        )
        return AuthError(message=str(exc))

    # Parameters rejected (400/404/409/422)
    if isinstance(exc, (BadRequestError, NotFoundError, ConflictError, UnprocessableEntityError)):
        logger.debug(
            "Mapping parameter rejection to InvalidRequestError",
            extra={"original_error": str(exc), "status_code": exc.status_code},
        )
        return InvalidRequestError(message=str(exc), upstream_status=exc.status_code)

    # APITimeoutError is a subclass of APIConnectionError, check it first
    if isinstance(exc, APITimeoutError):
        logger.debug(
            "Mapping APITimeoutError to TransportError",
            extra={"original_error": str(exc)},
        )
        return TransportError(message=str(exc), timed_out=True)

    if isinstance(exc, APIConnectionError):
        logger.debug(
            "Mapping APIConnectionError to TransportError",
            extra={"original_error": str(exc)},
        )
        return TransportError(message=str(exc))

    # Rate limits, server errors and any other status error
    if isinstance(exc, APIStatusError):
        logger.debug(
            "Mapping APIStatusError to UpstreamError",
            extra={"original_error": str(exc), "status_code": exc.status_code},
        )
        return UpstreamError(message=str(exc), upstream_status=exc.status_code)

    # Error events sent inside an open stream
    if isinstance(exc, APIError):
        logger.debug(
            "Mapping APIError to UpstreamError",
            extra={"original_error": str(exc)},
        )
        return UpstreamError(message=str(exc))

    if isinstance(exc, httpx.TimeoutException):
        return TransportError(message=str(exc) or "Read timed out", timed_out=True)

    if isinstance(exc, (httpx.HTTPError, OSError)):
        logger.debug(
            f"Mapping {type(exc).__name__} to TransportError",
            extra={"original_error": str(exc)},
        )
        return TransportError(message=str(exc) or type(exc).__name__)

    logger.debug(
        f"No mapping for exception type {type(exc).__name__}, wrapping as UpstreamError",
        extra={"error_type": type(exc).__name__, "error": str(exc)},
    )
    return UpstreamError(message=str(exc) or type(exc).__name__)
