"""
Render-and-relay pipeline for the essay endpoints.

Template selection, prompt rendering, the stream relay and response shaping.
"""

from essay_api.pipeline.relay import RelayChunk, RelayFailure, RendezvousChannel, StreamRelay
from essay_api.pipeline.renderer import render_prompts
from essay_api.pipeline.selection import EssayRoute, build_essay_routes, select_template
from essay_api.pipeline.shaper import (
    error_payload,
    format_error_event,
    format_event,
    shape_chunk,
    shape_result,
)

__all__ = [
    "EssayRoute",
    "build_essay_routes",
    "select_template",
    "render_prompts",
    "RendezvousChannel",
    "StreamRelay",
    "RelayChunk",
    "RelayFailure",
    "shape_result",
    "shape_chunk",
    "error_payload",
    "format_event",
    "format_error_event",
]
