"""
Data models for the Essay Question API.
"""

from essay_api.models.completions import (
    CompletionChunk,
    CompletionEnvelope,
    CompletionRequest,
    CompletionResult,
    ConversationTurn,
)

__all__ = [
    "ConversationTurn",
    "CompletionRequest",
    "CompletionEnvelope",
    "CompletionResult",
    "CompletionChunk",
]
