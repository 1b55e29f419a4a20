"""
Completion gateway backed by the OpenAI SDK.

A fresh AsyncOpenAI client is built for every call from the caller's credential
and closed when the call (or the stream it opened) ends. SDK retries are
disabled: a failed call fails the request.
"""

from typing import Any

import httpx
from openai import APIError, AsyncOpenAI, AsyncStream
from openai.types.chat import ChatCompletion
from openai.types.chat import ChatCompletionChunk as OpenAIChatCompletionChunk

from essay_api.config import Settings
from essay_api.gateway.base import CompletionGateway, CompletionStream
from essay_api.models.completions import CompletionChunk, CompletionRequest, CompletionResult
from essay_api.utils.logging import get_logger
from essay_api.utils.openai_errors import map_openai_exception
from essay_api.utils.request_context import get_request_id

logger = get_logger(__name__)


def build_completion_params(request: CompletionRequest, prompts: list[str]) -> dict[str, Any]:
    """
    Build keyword arguments for ``chat.completions.create``.

    Each rendered prompt becomes one user message. Sampling parameters the
    caller did not set are left out.

    Args:
        request: Validated completion request
        prompts: Rendered prompts in turn order

    Returns:
        Keyword arguments for the SDK call (without ``stream``)
    """
    return {
        "model": request.model,
        "messages": [{"role": "user", "content": prompt} for prompt in prompts],
        **request.sampling_parameters(),
    }


def _dump_choices(choices: list[Any]) -> list[dict[str, Any]]:
    """Serialize SDK choice objects exactly as the completion service sent them."""
    return [choice.model_dump(mode="json", exclude_unset=True) for choice in choices]


def to_completion_result(response: ChatCompletion) -> CompletionResult:
    """Convert an SDK chat completion into a CompletionResult."""
    return CompletionResult(
        id=response.id,
        object=response.object,
        created=response.created,
        model=response.model,
        choices=_dump_choices(response.choices),
        usage=response.usage.model_dump(mode="json") if response.usage else None,
    )


def to_completion_chunk(chunk: OpenAIChatCompletionChunk) -> CompletionChunk:
    """Convert an SDK stream chunk into a CompletionChunk."""
    return CompletionChunk(
        id=chunk.id,
        object=chunk.object,
        created=chunk.created,
        model=chunk.model,
        choices=_dump_choices(chunk.choices),
    )


class OpenAICompletionStream(CompletionStream):
    """Stream handle owning an SDK stream and the client that opened it."""

    def __init__(
        self, stream: AsyncStream[OpenAIChatCompletionChunk], client: AsyncOpenAI
    ) -> None:
        self._stream = stream
        self._iterator = stream.__aiter__()
        self._client = client
        self._closed = False

    async def __anext__(self) -> CompletionChunk:
        try:
            chunk = await self._iterator.__anext__()
        except (APIError, httpx.HTTPError) as exc:
            raise map_openai_exception(exc) from exc
        return to_completion_chunk(chunk)

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._stream.close()
        finally:
            await self._client.close()
        logger.debug("Upstream completion stream closed")


class OpenAIGateway(CompletionGateway):
    """
    Gateway to an OpenAI-compatible chat completions endpoint.

    Holds only connection settings; the credential arrives with every call.
    """

    name = "openai"

    def __init__(self, settings: Settings) -> None:
        """
        Initialize the gateway.

        Args:
            settings: Application settings (base URL and per-request deadline)
        """
        self.base_url = settings.get_openai_base_url()
        self.timeout = settings.completion_timeout

    def _create_client(self, credential: str) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=credential,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
        )

    def _extra_headers(self) -> dict[str, str]:
        request_id = get_request_id()
        if request_id:
            return {"X-Request-ID": request_id}
        return {}

    async def complete(
        self,
        request: CompletionRequest,
        prompts: list[str],
        credential: str,
    ) -> CompletionResult:
        params = build_completion_params(request, prompts)
        logger.debug(
            "Calling completion service",
            extra={"model": request.model, "message_count": len(prompts), "stream": False},
        )

        client = self._create_client(credential)
        try:
            response = await client.chat.completions.create(
                **params, extra_headers=self._extra_headers()
            )
        except APIError as exc:
            raise map_openai_exception(exc) from exc
        finally:
            await client.close()

        logger.debug(
            "Completion service answered",
            extra={"completion_id": response.id, "choice_count": len(response.choices)},
        )
        return to_completion_result(response)

    async def complete_stream(
        self,
        request: CompletionRequest,
        prompts: list[str],
        credential: str,
    ) -> CompletionStream:
        params = build_completion_params(request, prompts)
        logger.debug(
            "Opening completion stream",
            extra={"model": request.model, "message_count": len(prompts), "stream": True},
        )

        client = self._create_client(credential)
        stream = None
        try:
            stream = await client.chat.completions.create(
                **params, stream=True, extra_headers=self._extra_headers()
            )
        except APIError as exc:
            raise map_openai_exception(exc) from exc
        finally:
            if stream is None:
                await client.close()

        return OpenAICompletionStream(stream, client)
