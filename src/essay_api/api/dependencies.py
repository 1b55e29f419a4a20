"""Request dependencies for the essay endpoints.

Provides the caller credential and the components stored on the application
state at startup.
"""

from fastapi import Header, Request

from essay_api.config import Settings
from essay_api.gateway.base import CompletionGateway
from essay_api.utils.errors import MissingCredentialError
from essay_api.utils.logging import get_logger
from essay_api.utils.prompts import TemplateStore

logger = get_logger(__name__)


async def get_caller_token(token: str | None = Header(default=None, alias="TOKEN")) -> str:
    """
    Extract the caller's completion service credential from the TOKEN header.

    The credential is used for this request only and is never stored.

    Args:
        token: Raw TOKEN header value

    Returns:
        The credential with surrounding whitespace removed

    Raises:
        MissingCredentialError: 400 if the header is missing or blank
    """
    if token is None or not token.strip():
        logger.warning("Request rejected: TOKEN header missing or blank")
        raise MissingCredentialError()
    return token.strip()


def get_settings(request: Request) -> Settings:
    """Return the settings the application was created with."""
    return request.app.state.settings


def get_gateway(request: Request) -> CompletionGateway:
    """Return the completion gateway configured at startup."""
    return request.app.state.gateway


def get_template_store(request: Request) -> TemplateStore:
    """Return the prompt template store configured at startup."""
    return request.app.state.template_store
