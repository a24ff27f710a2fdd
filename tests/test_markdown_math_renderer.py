"""
Tests for scorm_quiz/core/markdown_math_renderer.py
"""

import pytest

from scorm_quiz.core.markdown_math_renderer import MarkdownMathRenderer


@pytest.fixture
def renderer():
    return MarkdownMathRenderer()


class TestRenderPrompt:
    """Block rendering of question prompts."""

    def test_plain_prompt(self, renderer):
        assert renderer.render_prompt("  What is $2^{10}$?  ") == "<p>What is $2^{10}$?</p>\n"

    def test_math_is_not_read_as_emphasis(self, renderer):
        html = renderer.render_prompt("Solve $a_1 * b_1 * c_1$ for $a_1$")
        assert html == "<p>Solve $a_1 * b_1 * c_1$ for $a_1$</p>\n"
        assert "<em>" not in html

    def test_math_is_html_escaped(self, renderer):
        assert renderer.render_prompt("Is $x < y$?") == "<p>Is $x &lt; y$?</p>\n"

    def test_display_math_spans_lines(self, renderer):
        html = renderer.render_prompt("Evaluate\n\n$$\n\\frac{1}{2}\n$$")
        assert "$$\n\\frac{1}{2}\n$$" in html

    def test_markdown_outside_math(self, renderer):
        assert "<strong>noble gas</strong>" in renderer.render_prompt("A **noble gas**")

    def test_raw_html_is_escaped(self, renderer):
        html = renderer.render_prompt("<script>alert(1)</script>")
        assert "<script>" not in html
        assert "&lt;script&gt;" in html


class TestRenderOption:
    """Inline rendering of option labels."""

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("1024", "1024"),
            ("*maybe*", "<em>maybe</em>"),
            ("$x_1 * y_1$", "$x_1 * y_1$"),
            ("Text with SQMATH7X in it", "Text with SQMATH7X in it"),
        ],
    )
    def test_render_option(self, renderer, label, expected):
        assert renderer.render_option(label) == expected
