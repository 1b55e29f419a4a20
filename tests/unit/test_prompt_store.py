"""
Unit tests for the prompt template store.

Tests loading by logical name, Go-style field reference translation, and the
not-found and parse failures.
"""

import pytest

from essay_api.config import DEFAULT_PROMPTS_DIR, Settings
from essay_api.models.completions import ConversationTurn
from essay_api.pipeline.selection import build_essay_routes
from essay_api.utils.errors import TemplateNotFoundError, TemplateParseError
from essay_api.utils.prompts import TemplateStore, translate_field_references


class TestTranslateFieldReferences:
    """Tests for Go-style reference translation."""

    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("{{.Question}}", "{{ Question }}"),
            ("{{ .Essay }}", "{{ Essay }}"),
            ("{{- .Essay -}}", "{{- Essay -}}"),
            ("{{ question }}", "{{ question }}"),
            ("no references", "no references"),
        ],
    )
    def test_translation(self, source, expected) -> None:
        """Field references become Jinja2 names, other text is untouched."""
        assert translate_field_references(source) == expected


class TestTemplateStore:
    """Tests for TemplateStore.load."""

    def test_load_and_render(self, tmp_path) -> None:
        """A loaded template renders a turn."""
        (tmp_path / "greeting.txt").write_text("Q={{.Question}} E={{ essay }}", encoding="utf-8")
        store = TemplateStore(tmp_path)

        template = store.load("greeting")

        assert template.name == "greeting"
        assert template.render(ConversationTurn(question="a", essay="b")) == "Q=a E=b"

    def test_trailing_newline_preserved(self, tmp_path) -> None:
        """Template files keep their final newline."""
        (tmp_path / "line.txt").write_text("{{.Question}}\n", encoding="utf-8")

        template = TemplateStore(tmp_path).load("line")

        assert template.render(ConversationTurn(question="x")) == "x\n"

    def test_missing_template(self, tmp_path) -> None:
        """An absent file raises TemplateNotFoundError."""
        with pytest.raises(TemplateNotFoundError) as exc_info:
            TemplateStore(tmp_path).load("does-not-exist")

        assert exc_info.value.template_name == "does-not-exist"
        assert exc_info.value.status_code == 500

    @pytest.mark.parametrize("name", ["../secret", "sub/dir", "", ".hidden"])
    def test_names_cannot_leave_prompts_dir(self, tmp_path, name) -> None:
        """Only plain file names are accepted."""
        (tmp_path / "secret.txt").write_text("secret", encoding="utf-8")
        store = TemplateStore(tmp_path / "prompts")

        with pytest.raises(TemplateNotFoundError):
            store.load(name)

    @pytest.mark.parametrize("source", ["{{ .Question", "{% if question %}no end", "{{ }}"])
    def test_invalid_template(self, tmp_path, source) -> None:
        """Syntactically invalid templates raise TemplateParseError."""
        (tmp_path / "broken.txt").write_text(source, encoding="utf-8")

        with pytest.raises(TemplateParseError) as exc_info:
            TemplateStore(tmp_path).load("broken")

        assert exc_info.value.error_code == "TEMPLATE_PARSE_ERROR"

    def test_reload_picks_up_changes(self, tmp_path) -> None:
        """Templates are read on every load."""
        path = tmp_path / "live.txt"
        path.write_text("v1 {{.Question}}", encoding="utf-8")
        store = TemplateStore(tmp_path)
        turn = ConversationTurn(question="q")

        assert store.load("live").render(turn) == "v1 q"
        path.write_text("v2 {{.Question}}", encoding="utf-8")
        assert store.load("live").render(turn) == "v2 q"

    def test_names(self, tmp_path) -> None:
        """names() lists templates without their suffix."""
        (tmp_path / "b.txt").write_text("b", encoding="utf-8")
        (tmp_path / "a.txt").write_text("a", encoding="utf-8")
        (tmp_path / "notes.md").write_text("ignored", encoding="utf-8")

        assert TemplateStore(tmp_path).names() == ["a", "b"]


class TestPackagedPrompts:
    """The prompts shipped with the package cover every route and render."""

    def test_every_route_template_renders(self) -> None:
        """Each route template (and under-length variant) loads and renders both fields."""
        store = TemplateStore(DEFAULT_PROMPTS_DIR)
        turn = ConversationTurn(question="UNIQUE-QUESTION", essay="UNIQUE-ESSAY")

        for route in build_essay_routes(Settings()):
            names = [route.template]
            if route.under_length_template:
                names.append(route.under_length_template)
            for name in names:
                prompt = store.load(name).render(turn)
                assert "UNIQUE-QUESTION" in prompt, name
