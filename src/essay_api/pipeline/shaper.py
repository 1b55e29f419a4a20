"""
Response shaping for synchronous answers and streamed chunks.

Both paths produce the same envelope ``{id, object, created, model, choices}``.
Streamed envelopes are framed as server-sent events.
"""

import json
from typing import Any

from essay_api.models.completions import CompletionChunk, CompletionEnvelope, CompletionResult
from essay_api.utils.errors import EssayServiceError


def shape_result(result: CompletionResult) -> CompletionEnvelope:
    """Map a synchronous completion result to the wire envelope."""
    return CompletionEnvelope(
        id=result.id,
        object=result.object,
        created=result.created,
        model=result.model,
        choices=result.choices,
    )


def shape_chunk(chunk: CompletionChunk) -> CompletionEnvelope:
    """Map one streamed chunk to the wire envelope."""
    return CompletionEnvelope(
        id=chunk.id,
        object=chunk.object,
        created=chunk.created,
        model=chunk.model,
        choices=chunk.choices,
    )


def error_payload(exc: EssayServiceError) -> dict[str, Any]:
    """Structured error body shared by error responses and in-band error events."""
    return {
        "error": {
            "message": exc.message,
            "type": type(exc).__name__,
            "code": exc.error_code,
        }
    }


def format_event(envelope: CompletionEnvelope) -> str:
    """Frame an envelope as one server-sent event."""
    return f"data: {envelope.model_dump_json()}\n\n"


def format_error_event(exc: EssayServiceError) -> str:
    """Frame an error as one server-sent event."""
    return f"data: {json.dumps(error_payload(exc))}\n\n"
