"""
Utility modules for the Essay Question API.

This module provides error handling, logging, and prompt template utilities.
"""

from essay_api.utils.errors import (
    AuthError,
    ConfigurationError,
    EssayServiceError,
    ExternalServiceError,
    InvalidRequestError,
    RenderError,
    TemplateNotFoundError,
    TemplateParseError,
    TransportError,
    UpstreamError,
    ValidationError,
)
from essay_api.utils.logging import get_logger, setup_logging
from essay_api.utils.prompts import PromptTemplate, TemplateStore

__all__ = [
    # Errors
    "EssayServiceError",
    "ConfigurationError",
    "ValidationError",
    "TemplateNotFoundError",
    "TemplateParseError",
    "RenderError",
    "ExternalServiceError",
    "AuthError",
    "InvalidRequestError",
    "TransportError",
    "UpstreamError",
    # Logging
    "get_logger",
    "setup_logging",
    # Prompts
    "PromptTemplate",
    "TemplateStore",
]
