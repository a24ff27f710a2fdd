"""HTML rendering of question prompts and option labels.

Bank text is Markdown with ``$...$`` (inline) and ``$$...$$`` (display) math.
Math spans are lifted out before Markdown runs so that ``_`` and ``*`` inside
formulas are not read as emphasis, then put back HTML-escaped for MathJax to
typeset in the learner page. Raw HTML in the bank is never passed through.
"""

from __future__ import annotations

import html
import re

from markdown_it import MarkdownIt

_MATH_PATTERN = re.compile(r"\$\$.+?\$\$|\$[^$\n]+?\$", re.DOTALL)
_PLACEHOLDER = "SQMATH{}X"
_PLACEHOLDER_PATTERN = re.compile(r"SQMATH(\d+)X")


class MarkdownMathRenderer:
    """Renders prompts as block HTML and option labels as inline HTML."""

    def __init__(self) -> None:
        self._markdown = MarkdownIt("commonmark", {"html": False}).enable("table")

    def render_prompt(self, text: str) -> str:
        source, spans = self._lift_math(text.strip())
        return self._restore_math(self._markdown.render(source), spans)

    def render_option(self, label: str) -> str:
        # Options sit inside a button, so no <p> wrapper.
        source, spans = self._lift_math(label.strip())
        return self._restore_math(self._markdown.renderInline(source), spans)

    @staticmethod
    def _lift_math(text: str) -> tuple[str, list[str]]:
        spans: list[str] = []

        def stash(match: re.Match[str]) -> str:
            spans.append(match.group(0))
            return _PLACEHOLDER.format(len(spans) - 1)

        return _MATH_PATTERN.sub(stash, text), spans

    @staticmethod
    def _restore_math(rendered: str, spans: list[str]) -> str:
        if not spans:
            return rendered

        def unstash(match: re.Match[str]) -> str:
            index = int(match.group(1))
            if index >= len(spans):
                return match.group(0)
            return html.escape(spans[index], quote=False)

        return _PLACEHOLDER_PATTERN.sub(unstash, rendered)


renderer = MarkdownMathRenderer()
