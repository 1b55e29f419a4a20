"""
Stream relay between a streaming completion and the HTTP response.

A producer task reads the upstream completion stream and hands each chunk to
the consumer (the response body generator) through a rendezvous channel. The
producer only reads the next upstream chunk after the consumer has written the
previous one, so a slow client throttles how fast the upstream stream is
drained and nothing is buffered in between.

Termination:
- end of upstream stream: upstream handle closed, channel closed
- upstream failure: exactly one RelayFailure, always the last item
- consumer exits early: producer task cancelled, which closes the upstream handle
"""

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Generic, TypeVar

from essay_api.gateway.base import CompletionGateway
from essay_api.models.completions import CompletionChunk, CompletionRequest
from essay_api.utils.errors import EssayServiceError
from essay_api.utils.logging import get_logger
from essay_api.utils.openai_errors import map_openai_exception

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RelayChunk:
    """A chunk received from the upstream stream."""

    chunk: CompletionChunk


@dataclass(frozen=True)
class RelayFailure:
    """The error that ended the upstream stream."""

    error: EssayServiceError


RelayItem = RelayChunk | RelayFailure

_CLOSED = object()


class ChannelClosedError(RuntimeError):
    """Raised when sending on a closed channel."""


class RendezvousChannel(Generic[T]):
    """
    Unbuffered handoff between one sender and one receiver.

    ``send`` returns only once the receiver has taken the item and acknowledged
    it. Items arrive in the order they were sent.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._closed = False
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, item: T) -> None:
        """Hand an item to the receiver and wait for its acknowledgement."""
        if self._closed:
            raise ChannelClosedError("send on closed channel")
        await self._queue.put(item)
        await self._queue.join()

    async def close(self) -> None:
        """Signal the receiver that no more items follow."""
        if self._closed:
            return
        self._closed = True
        await self._queue.put(_CLOSED)

    async def receive(self) -> T | None:
        """
        Wait for the next item.

        Returns:
            The next item, or None once the channel is closed. Every item
            returned must be acknowledged with ``acknowledge``.
        """
        if self._drained:
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            self._queue.task_done()
            self._drained = True
            return None
        return item

    def acknowledge(self) -> None:
        """Mark the last received item as handled, releasing the sender."""
        self._queue.task_done()


def log_producer_exit(task: asyncio.Task) -> None:
    """Done callback retrieving and logging an exception that escaped a producer task."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "Stream producer failed",
            exc_info=(type(exc), exc, exc.__traceback__),
            extra={"task": task.get_name()},
        )


class StreamRelay:
    """
    Relays one streaming completion to one consumer.

    Usage::

        relay = StreamRelay(gateway, request, prompts, credential)
        async for item in relay.stream():
            ...

    The producer task is started when iteration starts and never outlives the
    iteration by more than ``shutdown_timeout`` seconds.
    """

    def __init__(
        self,
        gateway: CompletionGateway,
        request: CompletionRequest,
        prompts: list[str],
        credential: str,
        shutdown_timeout: float = 5.0,
    ) -> None:
        self._gateway = gateway
        self._request = request
        self._prompts = prompts
        self._credential = credential
        self._shutdown_timeout = shutdown_timeout
        self._channel: RendezvousChannel[RelayItem] = RendezvousChannel()

    async def _produce(self) -> None:
        """Read the upstream stream and send every chunk, or one failure, to the channel."""
        try:
            upstream = await self._gateway.complete_stream(
                self._request, self._prompts, self._credential
            )
        except Exception as exc:
            error = map_openai_exception(exc)
            logger.warning(
                "Completion stream could not be established",
                extra={"error_code": error.error_code, "error": error.message},
            )
            await self._channel.send(RelayFailure(error))
            return

        chunk_count = 0
        try:
            async for chunk in upstream:
                await self._channel.send(RelayChunk(chunk))
                chunk_count += 1
        except Exception as exc:
            error = map_openai_exception(exc)
            logger.warning(
                "Completion stream failed",
                extra={
                    "error_code": error.error_code,
                    "error": error.message,
                    "chunks_relayed": chunk_count,
                },
            )
            await self._channel.send(RelayFailure(error))
            return
        finally:
            try:
                await upstream.aclose()
            except Exception:
                logger.warning("Failed to close upstream completion stream", exc_info=True)

        logger.debug("Completion stream finished", extra={"chunks_relayed": chunk_count})
        await self._channel.close()

    async def _stop_producer(self, producer: asyncio.Task, cancel: bool) -> None:
        if cancel and not producer.done():
            logger.info("Consumer stopped early, cancelling stream producer")
            producer.cancel()

        done, _ = await asyncio.wait({producer}, timeout=self._shutdown_timeout)
        if not done:
            producer.cancel()
            logger.warning(
                "Stream producer did not stop in time",
                extra={"shutdown_timeout": self._shutdown_timeout},
            )

    async def stream(self) -> AsyncIterator[RelayItem]:
        """
        Start the producer and yield relayed items in upstream order.

        Iteration ends when the upstream stream ends or after the single
        RelayFailure. Closing the iterator early stops the producer.

        Yields:
            RelayChunk items, possibly followed by one RelayFailure
        """
        producer = asyncio.create_task(self._produce(), name="stream-relay-producer")
        producer.add_done_callback(log_producer_exit)
        finished = False
        try:
            while True:
                item = await self._channel.receive()
                if item is None:
                    finished = True
                    return

                finished = isinstance(item, RelayFailure)
                try:
                    yield item
                finally:
                    # The consumer resumed (or closed us): the item has been handled
                    self._channel.acknowledge()
                if finished:
                    return
        finally:
            await self._stop_producer(producer, cancel=not finished)
