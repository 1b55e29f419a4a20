"""
Completion gateways for the Essay Question API.

This module contains the gateway interface and the OpenAI-backed implementation.
"""

from essay_api.gateway.base import CompletionGateway, CompletionStream
from essay_api.gateway.openai import OpenAIGateway

__all__ = ["CompletionGateway", "CompletionStream", "OpenAIGateway"]
