"""Deterministic completion gateway doubles for tests."""

import asyncio
from typing import Any

from essay_api.gateway.base import CompletionGateway, CompletionStream
from essay_api.models.completions import CompletionChunk, CompletionRequest, CompletionResult


def make_chunk(index: int, content: str, model: str = "gpt-test") -> CompletionChunk:
    """Build a streamed chunk carrying one content delta."""
    return CompletionChunk(
        id="chatcmpl-stream-1",
        object="chat.completion.chunk",
        created=1700000000 + index,
        model=model,
        choices=[{"index": 0, "delta": {"content": content}, "finish_reason": None}],
    )


def make_result(content: str = "Band 7.0", model: str = "gpt-test") -> CompletionResult:
    """Build a synchronous completion result."""
    return CompletionResult(
        id="chatcmpl-sync-1",
        object="chat.completion",
        created=1700000000,
        model=model,
        choices=[
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        usage={"prompt_tokens": 10, "completion_tokens": 3, "total_tokens": 13},
    )


class FakeStream(CompletionStream):
    """
    Upstream stream replaying fixed chunks, optionally ending with an error.

    With ``hang=True`` the stream blocks forever after the last chunk instead of ending.
    """

    def __init__(
        self,
        chunks: list[CompletionChunk],
        error: Exception | None = None,
        hang: bool = False,
        events: list[tuple[str, str]] | None = None,
    ) -> None:
        self._chunks = list(chunks)
        self._error = error
        self._hang = hang
        self.events = events if events is not None else []
        self.closed = False
        self.close_count = 0

    async def __anext__(self) -> CompletionChunk:
        if self._chunks:
            chunk = self._chunks.pop(0)
            self.events.append(("upstream", chunk.choices[0]["delta"]["content"]))
            return chunk
        if self._error is not None:
            error, self._error = self._error, None
            raise error
        if self._hang:
            await asyncio.Event().wait()
        raise StopAsyncIteration

    async def aclose(self) -> None:
        self.closed = True
        self.close_count += 1


class FakeGateway(CompletionGateway):
    """Gateway returning canned answers and recording every call."""

    name = "fake"

    def __init__(
        self,
        result: CompletionResult | None = None,
        chunks: list[CompletionChunk] | None = None,
        error: Exception | None = None,
        stream_error: Exception | None = None,
        hang: bool = False,
    ) -> None:
        self.result = result
        self.chunks = chunks or []
        self.error = error
        self.stream_error = stream_error
        self.hang = hang
        self.calls: list[dict[str, Any]] = []
        self.streams: list[FakeStream] = []
        self.events: list[tuple[str, str]] = []

    async def complete(
        self, request: CompletionRequest, prompts: list[str], credential: str
    ) -> CompletionResult:
        self.calls.append(
            {"request": request, "prompts": prompts, "credential": credential, "stream": False}
        )
        if self.error is not None:
            raise self.error
        assert self.result is not None
        return self.result

    async def complete_stream(
        self, request: CompletionRequest, prompts: list[str], credential: str
    ) -> CompletionStream:
        self.calls.append(
            {"request": request, "prompts": prompts, "credential": credential, "stream": True}
        )
        if self.error is not None:
            raise self.error
        stream = FakeStream(self.chunks, self.stream_error, self.hang, self.events)
        self.streams.append(stream)
        return stream
