"""
Security headers middleware.

Adds security headers to every response, streamed essay answers included.
"""

from fastapi import Request

from essay_api.utils.logging import get_logger

logger = get_logger(__name__)

BASE_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}

HSTS_HEADER = ("Strict-Transport-Security", "max-age=31536000; includeSubDomains")


def is_https_request(request: Request) -> bool:
    """True for direct HTTPS requests and requests forwarded by an HTTPS proxy."""
    return (
        request.url.scheme == "https"
        or request.headers.get("X-Forwarded-Proto", "").lower() == "https"
    )


def security_headers_for(request: Request) -> dict[str, str]:
    """Headers to add to the response of a request. HSTS is only sent over HTTPS."""
    headers = dict(BASE_SECURITY_HEADERS)
    if is_https_request(request):
        name, value = HSTS_HEADER
        headers[name] = value
    return headers


async def security_headers_middleware(request: Request, call_next):  # type: ignore
    """Middleware to add security headers to all responses.

    Args:
        request: FastAPI Request object
        call_next: Next middleware/route handler

    Returns:
        Response with security headers added
    """
    response = await call_next(request)

    headers = security_headers_for(request)
    response.headers.update(headers)

    logger.debug(
        "Security headers applied",
        extra={
            "path": str(request.url.path),
            "hsts": HSTS_HEADER[0] in headers,
        },
    )
    return response
