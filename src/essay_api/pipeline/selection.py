"""
Route table and request-time template selection.

Each essay route is bound to one prompt template. The task scoring routes also
carry a word-count rule: essays below the minimum are scored with an
under-length template instead.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from essay_api.config import Settings
from essay_api.models.completions import ConversationTurn
from essay_api.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class EssayRoute:
    """An essay endpoint and the template(s) it renders."""

    path: str
    template: str
    summary: str
    under_length_template: str | None = None
    min_words: int | None = None
    # Turn whose essay is counted, as a list index
    word_count_turn: int = -1

    @property
    def has_word_count_rule(self) -> bool:
        return self.under_length_template is not None and self.min_words is not None


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


def build_essay_routes(settings: Settings) -> list[EssayRoute]:
    """
    Build the essay route table.

    Args:
        settings: Application settings providing the word-count minimums

    Returns:
        All essay routes, in registration order
    """
    return [
        EssayRoute("/ask", "ask", "Answer a free-form question about an essay"),
        EssayRoute("/vocabulary-upgrade", "vocabulary-upgrade", "Suggest stronger vocabulary"),
        EssayRoute("/grammar-correction", "grammar-correction", "Correct grammar mistakes"),
        EssayRoute("/improved-task-2", "improved-task-2", "Rewrite a Task 2 essay"),
        EssayRoute("/improved-task-1", "improved-task-1", "Rewrite a Task 1 report"),
        EssayRoute(
            "/task-response",
            "task-response",
            "Score Task 2 task response",
            under_length_template="task-response-under-length",
            min_words=settings.task_response_min_words,
        ),
        EssayRoute(
            "/task-achievement",
            "task-achievement",
            "Score Task 1 task achievement",
            under_length_template="task-achievement-under-length",
            min_words=settings.task_achievement_min_words,
        ),
        EssayRoute("/coherence-cohesion", "coherence-cohesion", "Score coherence and cohesion"),
        EssayRoute("/lexical-resource", "lexical-resource", "Score lexical resource"),
        EssayRoute(
            "/grammatical-range-accuracy",
            "grammatical-range-accuracy",
            "Score grammatical range and accuracy",
        ),
        EssayRoute("/essay-outline", "essay-outline", "Outline an essay for a question"),
        EssayRoute("/topic-vocabulary", "topic-vocabulary", "List vocabulary for a topic"),
        EssayRoute("/topic-analysis", "topic-analysis", "Analyse an essay question"),
    ]


def select_template(route: EssayRoute, turns: Sequence[ConversationTurn]) -> str:
    """
    Resolve the template name for a request on a route.

    Args:
        route: The route that received the request
        turns: Validated conversation turns

    Returns:
        The template name the renderer should use
    """
    if not route.has_word_count_rule or not turns:
        return route.template

    try:
        turn = turns[route.word_count_turn]
    except IndexError:
        return route.template

    word_count = count_words(turn.essay)
    if word_count < route.min_words:
        logger.info(
            "Essay below word minimum, using under-length template",
            extra={
                "route": route.path,
                "word_count": word_count,
                "min_words": route.min_words,
                "template": route.under_length_template,
            },
        )
        return route.under_length_template

    return route.template
