"""
Completion gateway interface.

The gateway is the only component that talks to the remote chat-completion
service. Renderer, relay and endpoints depend on this interface so they can be
exercised against a deterministic fake.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from essay_api.models.completions import CompletionChunk, CompletionRequest, CompletionResult


class CompletionStream(ABC):
    """
    Handle on an open streaming completion.

    Iterating yields chunks until the completion service signals the end of the
    stream. ``aclose`` releases the underlying connection and may be called more
    than once.
    """

    def __aiter__(self) -> AsyncIterator[CompletionChunk]:
        return self

    @abstractmethod
    async def __anext__(self) -> CompletionChunk:
        """Return the next chunk or raise StopAsyncIteration at end of stream."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release the upstream connection."""


class CompletionGateway(ABC):
    """
    Abstract chat-completion capability.

    Every call takes the caller's credential. Implementations must not keep a
    credential, or a client built from one, beyond the call that received it.
    """

    name = "completion"

    @abstractmethod
    async def complete(
        self,
        request: CompletionRequest,
        prompts: list[str],
        credential: str,
    ) -> CompletionResult:
        """
        Run a completion and wait for the full answer.

        Args:
            request: Validated request carrying model and sampling parameters
            prompts: Rendered prompts, one user message each, in order
            credential: Caller-supplied API credential

        Returns:
            The complete answer envelope

        Raises:
            ExternalServiceError: If the completion service call fails
        """

    @abstractmethod
    async def complete_stream(
        self,
        request: CompletionRequest,
        prompts: list[str],
        credential: str,
    ) -> CompletionStream:
        """
        Open a streaming completion.

        Args:
            request: Validated request carrying model and sampling parameters
            prompts: Rendered prompts, one user message each, in order
            credential: Caller-supplied API credential

        Returns:
            An open stream handle

        Raises:
            ExternalServiceError: If the stream cannot be established
        """
