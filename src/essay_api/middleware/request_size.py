"""
Request size validation middleware.

Validates incoming request body size before processing.
"""

from fastapi import Request
from fastapi.responses import JSONResponse

from essay_api.pipeline.shaper import error_payload
from essay_api.utils.errors import RequestSizeError, ValidationError
from essay_api.utils.logging import get_logger

logger = get_logger(__name__)


async def request_size_validator(request: Request, call_next):  # type: ignore
    """Middleware to validate request body size.

    Checks the Content-Length header of POST requests. Returns 413 Payload Too
    Large when it exceeds the configured maximum and 400 Bad Request when the
    body is empty. Skips other methods and health endpoints.

    Args:
        request: FastAPI Request object
        call_next: Next middleware/route handler

    Returns:
        Response from next middleware/route handler or an error response
    """
    if request.method != "POST":
        return await call_next(request)

    if request.url.path.startswith("/health/"):
        return await call_next(request)

    settings = request.app.state.settings

    content_length_header = request.headers.get("content-length")

    # No Content-Length (chunked upload): body parsing handles it
    if content_length_header is None:
        return await call_next(request)

    try:
        content_length = int(content_length_header)
    except ValueError:
        return await call_next(request)

    if content_length == 0:
        logger.warning(
            "Empty request body",
            extra={"path": request.url.path, "method": request.method},
        )
        error = ValidationError("Request body is required", error_code="EMPTY_BODY")
        return JSONResponse(status_code=error.status_code, content=error_payload(error))

    if content_length > settings.max_request_body_size:
        logger.warning(
            "Request body too large",
            extra={
                "actual_size": content_length,
                "max_size": settings.max_request_body_size,
                "path": request.url.path,
                "method": request.method,
            },
        )
        error = RequestSizeError(
            actual_size=content_length, max_size=settings.max_request_body_size
        )
        content = error_payload(error)
        content["error"]["actual_size_bytes"] = content_length
        content["error"]["max_size_bytes"] = settings.max_request_body_size
        return JSONResponse(status_code=error.status_code, content=content)

    logger.debug(
        "Request size validation passed",
        extra={
            "content_length": content_length,
            "max_size": settings.max_request_body_size,
            "path": request.url.path,
            "method": request.method,
        },
    )

    return await call_next(request)
