"""
Request and response models for the essay completion endpoints.

The request body uses the established wire names (``messages``,
``top_p``, ``n`` ...). Responses use one envelope shape for both the
synchronous answer and every streamed chunk.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ConversationTurn(BaseModel):
    """
    One question/essay pair supplied by the caller.

    Each turn is rendered into one prompt and sent as one user message.
    """

    model_config = ConfigDict(frozen=True)

    question: str = Field(default="", description="Essay question or task prompt")
    essay: str = Field(default="", description="Essay text written by the candidate")

    def template_context(self) -> dict[str, str]:
        """Variables available to prompt templates, in both field spellings."""
        return {
            "Question": self.question,
            "Essay": self.essay,
            "question": self.question,
            "essay": self.essay,
        }


class CompletionRequest(BaseModel):
    """
    Request body accepted by every essay endpoint.

    Sampling parameters left unset are omitted from the remote call, so the
    completion service applies its own defaults.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    model: str = Field(min_length=1, description="Model identifier (e.g., 'gpt-4o-mini')")
    turns: list[ConversationTurn] = Field(
        alias="messages",
        min_length=1,
        description="Question/essay pairs, rendered in order",
    )
    temperature: float | None = Field(
        default=None,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for model diversity",
    )
    top_p: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Nucleus sampling parameter",
    )
    n: int | None = Field(default=None, ge=1, description="Number of choices to generate")
    max_tokens: int | None = Field(default=None, ge=1, description="Maximum tokens in the response")
    presence_penalty: float | None = Field(default=None, ge=-2.0, le=2.0)
    frequency_penalty: float | None = Field(default=None, ge=-2.0, le=2.0)
    stream: bool = Field(default=False, description="Stream response chunks as server-sent events")

    def sampling_parameters(self) -> dict[str, Any]:
        """Sampling parameters the caller actually set, keyed by their API names."""
        params = {
            "temperature": self.temperature,
            "top_p": self.top_p,
            "n": self.n,
            "max_tokens": self.max_tokens,
            "presence_penalty": self.presence_penalty,
            "frequency_penalty": self.frequency_penalty,
        }
        return {key: value for key, value in params.items() if value is not None}


class CompletionEnvelope(BaseModel):
    """
    Wire envelope returned to callers.

    Used as the JSON body of synchronous responses and as the payload of each
    streamed ``data:`` event. ``choices`` is passed through without interpretation.
    """

    id: str = Field(description="Completion identifier assigned by the completion service")
    object: str = Field(description="Object type (chat.completion or chat.completion.chunk)")
    created: int = Field(description="Unix timestamp of creation")
    model: str = Field(description="Model that produced the completion")
    choices: Any = Field(default=None, description="Choices payload as sent by the completion service")


class CompletionResult(CompletionEnvelope):
    """Full answer of a synchronous completion call."""

    usage: dict[str, Any] | None = Field(
        default=None,
        description="Token usage reported by the completion service",
    )


class CompletionChunk(CompletionEnvelope):
    """One unit of a streamed completion."""
