"""
Prompt template loading for the essay endpoints.

Loads prompt templates from text files in the prompts/ directory and compiles
them with Jinja2. Templates may use Jinja2 references (``{{ question }}``) or
Go text/template style field references (``{{.Question}}``).
"""

import re
from pathlib import Path

from jinja2 import Environment, StrictUndefined, TemplateError, TemplateSyntaxError

from essay_api.models.completions import ConversationTurn
from essay_api.utils.errors import RenderError, TemplateNotFoundError, TemplateParseError
from essay_api.utils.logging import get_logger

logger = get_logger(__name__)

TEMPLATE_SUFFIX = ".txt"

# {{.Field}}, {{ .Field }}, {{- .Field -}}
_GO_FIELD_REFERENCE = re.compile(r"\{\{(-?)\s*\.([A-Za-z_][A-Za-z0-9_]*)\s*(-?)\}\}")


def translate_field_references(source: str) -> str:
    """Rewrite Go-style ``{{.Field}}`` references as Jinja2 ``{{ Field }}`` references."""
    return _GO_FIELD_REFERENCE.sub(r"{{\1 \2 \3}}", source)


class PromptTemplate:
    """A compiled prompt template. Read-only once loaded."""

    def __init__(self, name: str, source: str, environment: Environment) -> None:
        self.name = name
        self.source = source
        try:
            self._template = environment.from_string(translate_field_references(source))
        except TemplateSyntaxError as exc:
            raise TemplateParseError(name, f"line {exc.lineno}: {exc.message}") from exc

    def render(self, turn: ConversationTurn, index: int = 0) -> str:
        """
        Substitute one conversation turn into the template.

        Every call produces a new string; nothing is carried over between calls.

        Args:
            turn: The question/essay pair to substitute
            index: Position of the turn in the request, used in error messages

        Returns:
            The rendered prompt text

        Raises:
            RenderError: If the template references a field the turn does not provide
        """
        try:
            return self._template.render(turn.template_context())
        except TemplateError as exc:
            raise RenderError(self.name, index, exc.message or type(exc).__name__) from exc


class TemplateStore:
    """
    Loads prompt templates by logical name.

    The template named ``ask`` lives in ``<prompts_dir>/ask.txt``. Files are read
    on every load; prompt files are small and this keeps edits visible without a
    restart.
    """

    def __init__(self, prompts_dir: Path) -> None:
        self.prompts_dir = Path(prompts_dir)
        self._environment = Environment(
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

    def path_for(self, name: str) -> Path:
        """Return the file backing a template name."""
        return self.prompts_dir / f"{name}{TEMPLATE_SUFFIX}"

    def load(self, name: str) -> PromptTemplate:
        """
        Load and compile a prompt template.

        Args:
            name: Logical template name (e.g., 'task-response')

        Returns:
            Compiled prompt template

        Raises:
            TemplateNotFoundError: If no template file exists for the name
            TemplateParseError: If the template text is not a valid template
        """
        # Plain file names only, never a path out of the prompts directory
        if not name or Path(name).name != name or name.startswith("."):
            raise TemplateNotFoundError(name)

        template_file = self.path_for(name)
        try:
            source = template_file.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            logger.error(
                "Prompt template file not found",
                extra={"template": name, "path": str(template_file)},
            )
            raise TemplateNotFoundError(name) from exc

        template = PromptTemplate(name, source, self._environment)
        logger.debug(
            f"Loaded prompt template {name}",
            extra={"template": name, "path": str(template_file), "size": len(source)},
        )
        return template

    def names(self) -> list[str]:
        """List the logical names of all templates in the prompts directory."""
        return sorted(path.stem for path in self.prompts_dir.glob(f"*{TEMPLATE_SUFFIX}"))
