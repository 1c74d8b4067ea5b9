"""Whitespace normalisation for practice snippets.

The formatted text is what the user types, so formatting only touches
whitespace and never rewrites code.
"""

import re

from ..entities.language import Language

_LEADING_TABS = re.compile(r"^\t+")


class CodeFormatter:
    """Normalises line endings, indentation and trailing whitespace."""

    def __init__(self, language: Language):
        self.language = language

    def format(self, code: str) -> str:
        formatted = self.normalize_line_endings(code)
        formatted = self.normalize_indentation(formatted)
        formatted = self.remove_trailing_whitespace(formatted)
        return formatted

    def normalize_line_endings(self, code: str) -> str:
        return code.replace("\r\n", "\n").replace("\r", "\n")

    def normalize_indentation(self, code: str) -> str:
        """Expand leading tabs for languages indented with spaces."""
        if self.language.indent_style == "tabs" or self.language.indent_size <= 0:
            return code

        indent = " " * self.language.indent_size
        return "\n".join(
            _LEADING_TABS.sub(lambda match: indent * len(match.group(0)), line)
            for line in code.split("\n")
        )

    def remove_trailing_whitespace(self, code: str) -> str:
        lines = [line.rstrip() for line in code.split("\n")]
        while lines and not lines[-1]:
            lines.pop()
        return "\n".join(lines)
