"""Essay endpoints.

Every route renders the caller's question/essay pairs through its prompt
template and forwards them to the completion service, answering either with a
single JSON envelope or with a server-sent event stream.
"""

import asyncio
import time
from collections.abc import AsyncGenerator, AsyncIterator
from typing import Any

import anyio
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from starlette.types import Receive, Scope, Send

from essay_api.api.dependencies import get_caller_token, get_gateway, get_template_store
from essay_api.gateway.base import CompletionGateway
from essay_api.models.completions import CompletionRequest
from essay_api.pipeline.relay import RelayFailure, RelayItem, StreamRelay
from essay_api.pipeline.renderer import render_prompts
from essay_api.pipeline.selection import EssayRoute, select_template
from essay_api.pipeline.shaper import format_error_event, format_event, shape_chunk, shape_result
from essay_api.utils.logging import get_logger
from essay_api.utils.prompts import TemplateStore

logger = get_logger(__name__)

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


class RelayStreamingResponse(StreamingResponse):
    """
    Streaming response that owns the relay feeding it.

    Starlette cancels the response task when the client disconnects, possibly
    while a frame is being written, without closing the body generator. The
    relay is closed here, once, whichever way the response ends. The close is
    shielded from that cancellation and bounded by ``shutdown_timeout``.
    """

    def __init__(
        self,
        content: AsyncGenerator[str, None],
        relay_items: AsyncGenerator[RelayItem, None],
        shutdown_timeout: float,
        **kwargs: Any,
    ) -> None:
        super().__init__(content, **kwargs)
        self.relay_items = relay_items
        self.shutdown_timeout = shutdown_timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self.close_relay()

    async def close_relay(self) -> None:
        """Close the body generator, then the relay, releasing the upstream stream."""
        with anyio.move_on_after(self.shutdown_timeout, shield=True) as cleanup:
            await self.body_iterator.aclose()  # type: ignore[attr-defined]
            await self.relay_items.aclose()
        if cleanup.cancelled_caught:
            logger.warning(
                "Relay did not close in time",
                extra={"shutdown_timeout": self.shutdown_timeout},
            )


async def relay_events(
    first: RelayItem | None,
    items: AsyncIterator[RelayItem],
    route: EssayRoute,
    started_at: float,
) -> AsyncIterator[str]:
    """
    Turn relayed items into SSE frames.

    Each yielded frame is written to the client before the next item is
    requested from the relay. A failure after the first chunk is reported as
    one in-band error frame, after which the stream ends. The relay itself is
    closed by RelayStreamingResponse, not here.

    Args:
        first: Item already taken from the relay before the response started
        items: The relay iterator
        route: Route serving the request, for logging
        started_at: Request start time

    Yields:
        ``data: ...`` frames
    """
    chunk_count = 0
    try:
        item = first
        while item is not None:
            if isinstance(item, RelayFailure):
                logger.error(
                    f"Completion stream failed after {chunk_count} chunk(s): {item.error.message}",
                    extra={"route": route.path, "error_code": item.error.error_code},
                )
                yield format_error_event(item.error)
                break

            yield format_event(shape_chunk(item.chunk))
            chunk_count += 1
            item = await anext(items, None)
        else:
            logger.info(
                "Streaming response completed",
                extra={
                    "route": route.path,
                    "chunk_count": chunk_count,
                    "elapsed_seconds": time.time() - started_at,
                },
            )
    except asyncio.CancelledError:
        logger.info("Client disconnected", extra={"route": route.path, "chunk_count": chunk_count})
        raise


async def stream_completion(
    relay: StreamRelay,
    route: EssayRoute,
    started_at: float,
    shutdown_timeout: float,
) -> Response:
    """
    Start relaying and build the streaming response.

    The first relay item is awaited before the response is committed, so a
    failure before any chunk is raised here and becomes a regular error response.
    """
    items = relay.stream()
    first = await anext(items, None)

    if isinstance(first, RelayFailure):
        await items.aclose()
        raise first.error

    return RelayStreamingResponse(
        relay_events(first, items, route, started_at),
        relay_items=items,
        shutdown_timeout=shutdown_timeout,
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )


def make_essay_endpoint(route: EssayRoute):  # type: ignore
    """
    Build the request handler for one essay route.

    Args:
        route: Route definition (path and templates)

    Returns:
        Async endpoint function bound to the route
    """

    async def essay_endpoint(
        request: Request,
        request_data: CompletionRequest,
        token: str = Depends(get_caller_token),
        gateway: CompletionGateway = Depends(get_gateway),
        store: TemplateStore = Depends(get_template_store),
    ) -> Response:
        started_at = time.time()

        logger.info(
            "Essay request",
            extra={
                "route": route.path,
                "model": request_data.model,
                "stream": request_data.stream,
            },
        )
        logger.debug(
            "Essay request details",
            extra={
                "route": route.path,
                "message_count": len(request_data.turns),
                **request_data.sampling_parameters(),
            },
        )

        template_name = select_template(route, request_data.turns)
        template = store.load(template_name)
        prompts = render_prompts(template, request_data.turns)

        if request_data.stream:
            settings = request.app.state.settings
            relay = StreamRelay(
                gateway,
                request_data,
                prompts,
                token,
                shutdown_timeout=settings.relay_shutdown_timeout,
            )
            return await stream_completion(
                relay, route, started_at, settings.relay_shutdown_timeout
            )

        result = await gateway.complete(request_data, prompts, token)
        logger.info(
            "Completion returned",
            extra={
                "route": route.path,
                "completion_id": result.id,
                "elapsed_seconds": time.time() - started_at,
            },
        )
        return JSONResponse(content=shape_result(result).model_dump(mode="json"))

    essay_endpoint.__name__ = f"essay_{route.template.replace('-', '_')}"
    return essay_endpoint


def create_essay_router(routes: list[EssayRoute]) -> APIRouter:
    """
    Create the router exposing every essay route.

    Args:
        routes: Route table, see build_essay_routes()

    Returns:
        Router with one POST endpoint per route
    """
    router = APIRouter(tags=["essay"])
    for route in routes:
        router.add_api_route(
            route.path,
            make_essay_endpoint(route),
            methods=["POST"],
            summary=route.summary,
            name=route.template,
            response_model=None,
        )
    return router
