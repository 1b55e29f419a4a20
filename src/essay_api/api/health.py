"""Health check endpoints for the Essay Question API."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from essay_api.api.dependencies import get_template_store
from essay_api.utils.logging import get_logger
from essay_api.utils.prompts import TemplateStore

logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/")
async def health_check() -> dict[str, str]:
    """
    Health check endpoint.

    Returns:
        Status response indicating API is healthy
    """
    logger.debug("Health check (liveness) request received")
    return {"status": "healthy"}


@router.get("/ready")
async def readiness_check(
    request: Request,
    store: TemplateStore = Depends(get_template_store),
) -> JSONResponse:
    """
    Readiness check endpoint.

    The API is ready when every template referenced by the essay routes exists.

    Returns:
        200 when ready, 503 with the missing template names otherwise
    """
    logger.debug("Readiness check request received")

    required = set()
    for route in request.app.state.essay_routes:
        required.add(route.template)
        if route.under_length_template:
            required.add(route.under_length_template)

    missing = sorted(required - set(store.names()))
    if missing:
        logger.warning("Readiness check failed: templates missing", extra={"missing": missing})
        return JSONResponse(status_code=503, content={"status": "not_ready", "missing": missing})
    return JSONResponse(content={"status": "ready"})
