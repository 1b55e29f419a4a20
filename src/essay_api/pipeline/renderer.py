"""
Prompt rendering.

Turns the caller's conversation turns into the prompts sent to the completion
service, one prompt per turn.
"""

from collections.abc import Sequence

from essay_api.models.completions import ConversationTurn
from essay_api.utils.logging import get_logger
from essay_api.utils.prompts import PromptTemplate

logger = get_logger(__name__)


def render_prompts(template: PromptTemplate, turns: Sequence[ConversationTurn]) -> list[str]:
    """
    Render every turn through the template.

    Each turn is rendered on its own: a prompt depends only on its own turn,
    never on the prompts rendered before it.

    Args:
        template: Compiled prompt template
        turns: Conversation turns in request order

    Returns:
        One rendered prompt per turn, in the same order

    Raises:
        RenderError: If any turn fails to render (no partial result is returned)
    """
    prompts = [template.render(turn, index) for index, turn in enumerate(turns)]

    logger.debug(
        "Rendered prompts",
        extra={
            "template": template.name,
            "prompt_count": len(prompts),
            "prompt_chars": sum(len(prompt) for prompt in prompts),
        },
    )
    return prompts
