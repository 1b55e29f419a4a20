"""
Main FastAPI application for the Essay Question API.

Sets up the application with all routes, middleware, and startup/shutdown logic.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from essay_api.api.health import router as health_router
from essay_api.api.v1.essay import create_essay_router
from essay_api.config import Settings
from essay_api.gateway.openai import OpenAIGateway
from essay_api.middleware.request_size import request_size_validator
from essay_api.middleware.security_headers import security_headers_middleware
from essay_api.pipeline.selection import build_essay_routes
from essay_api.pipeline.shaper import error_payload
from essay_api.utils.errors import EssayServiceError, ExternalServiceError
from essay_api.utils.logging import get_logger, setup_logging
from essay_api.utils.prompts import TemplateStore
from essay_api.utils.request_context import set_request_id

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore
    """
    Manage application lifecycle.

    Checks at startup that every template used by the essay routes is present.
    Missing templates are logged, not fatal: the affected routes answer with an
    error until the file appears.

    Args:
        app: FastAPI application instance

    Yields:
        Control during application runtime
    """
    logger.info("Application starting up")

    store: TemplateStore = app.state.template_store
    available = set(store.names())
    for route in app.state.essay_routes:
        for template in (route.template, route.under_length_template):
            if template and template not in available:
                logger.error(
                    "Prompt template missing for route",
                    extra={"route": route.path, "template": template},
                )

    logger.info(
        "Essay routes registered",
        extra={
            "route_count": len(app.state.essay_routes),
            "prompts_dir": str(store.prompts_dir),
            "gateway": app.state.gateway.name,
        },
    )

    yield

    logger.info("Application shutting down")


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment when omitted

    Returns:
        Configured FastAPI application instance
    """
    if settings is None:
        try:
            settings = Settings()
        except Exception as exc:
            # Cannot use logger yet - settings failed to load
            import sys

            print(f"CRITICAL: Failed to load settings: {exc}", file=sys.stderr)
            raise

    setup_logging(settings)

    logger.info(
        "Creating FastAPI application",
        extra={
            "environment": settings.environment,
            "api_title": settings.api_title,
        },
    )

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="Essay feedback endpoints backed by an OpenAI-compatible chat completion service",
        lifespan=lifespan,
    )

    essay_routes = build_essay_routes(settings)

    app.state.settings = settings
    app.state.essay_routes = essay_routes
    app.state.template_store = TemplateStore(settings.prompts_dir)
    app.state.gateway = OpenAIGateway(settings)

    # Add request ID and timing middleware (added first, executes last)
    @app.middleware("http")
    async def add_request_tracking(request: Request, call_next):  # type: ignore
        """Add request tracking with streaming-aware timing."""
        request_id = request.headers.get("X-Request-ID", "").strip()
        if not request_id:
            request_id = f"req_{int(time.time() * 1000)}"

        set_request_id(request_id)

        start_time = time.time()

        response = await call_next(request)

        # For streaming, this measures "time to first byte"
        first_byte_time = time.time() - start_time

        response.headers["X-Request-ID"] = request_id

        # call_next wraps every response, so detect streams by content type
        is_streaming = response.headers.get("content-type", "").startswith("text/event-stream")
        if is_streaming:
            response.headers["X-First-Byte-Time"] = str(first_byte_time)
            logger.info(
                "Streaming response initiated",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "first_byte_time": first_byte_time,
                },
            )
        else:
            response.headers["X-Response-Time"] = str(first_byte_time)
            logger.info(
                "Response completed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "response_time": first_byte_time,
                },
            )

        return response

    # CORS preflights are answered by CORSMiddleware before reaching this
    @app.middleware("http")
    async def answer_options(request: Request, call_next):  # type: ignore
        """Answer any other OPTIONS request with 204 and the CORS allow headers."""
        if request.method != "OPTIONS":
            return await call_next(request)

        return Response(
            status_code=204,
            headers={
                "Access-Control-Allow-Origin": ", ".join(settings.cors_origins),
                "Access-Control-Allow-Methods": ", ".join(settings.cors_allow_methods),
                "Access-Control-Allow-Headers": ", ".join(settings.cors_allow_headers),
            },
        )

    app.middleware("http")(request_size_validator)

    if settings.enable_security_headers:
        app.middleware("http")(security_headers_middleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    @app.exception_handler(EssayServiceError)
    async def essay_error_handler(request: Request, exc: EssayServiceError) -> JSONResponse:  # type: ignore
        """Handle service exceptions raised before any response was written."""
        log_fn = logger.error if exc.status_code >= 500 else logger.warning
        extra = {
            "error_code": exc.error_code,
            "status_code": exc.status_code,
            "path": request.url.path,
        }
        if isinstance(exc, ExternalServiceError):
            extra["service"] = exc.service_name
        log_fn(f"Request failed: {exc.message}", extra=extra)

        return JSONResponse(status_code=exc.status_code, content=error_payload(exc))

    app.include_router(health_router)
    app.include_router(create_essay_router(essay_routes))

    logger.info("FastAPI application created successfully")

    return app


# Create the application instance for running with uvicorn / FastAPI CLI
app = create_app()
