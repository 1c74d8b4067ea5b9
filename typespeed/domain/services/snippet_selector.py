"""Snippet selection for practice sessions."""

import random
from typing import Optional

_COMMENT_OR_IMPORT_PREFIXES = (
    "//", "#", "/*", "*", "import", "from", "using", "include",
)


class SnippetSelector:
    """Picks a dense window of code from a file.

    Short files are used whole. Longer files are sampled a few times and the
    window with the most actual code wins.
    """

    ATTEMPTS = 5
    GOOD_ENOUGH_SCORE = 0.6

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def select_snippet(self, content: str, max_lines: int = 50) -> str:
        lines = content.split("\n")
        if len(lines) <= max_lines:
            return content

        best_window: Optional[list[str]] = None
        best_score = -1.0
        for _ in range(self.ATTEMPTS):
            start = self._rng.randrange(max(1, len(lines) - max_lines))
            window = lines[start:start + max_lines]
            score = self.score_snippet(window)

            if score > best_score:
                best_score = score
                best_window = window
            if score > self.GOOD_ENOUGH_SCORE:
                break

        return "\n".join(best_window if best_window is not None else lines[:max_lines])

    def score_snippet(self, lines: list[str]) -> float:
        """Share of non-empty lines and of real code lines, weighted equally."""
        if not lines:
            return 0.0

        non_empty = 0
        code = 0
        for line in lines:
            stripped = line.strip()
            if stripped:
                non_empty += 1
                if not is_comment_or_import(stripped):
                    code += 1

        return (non_empty / len(lines)) * 0.5 + (code / len(lines)) * 0.5


def is_comment_or_import(line: str) -> bool:
    return line.startswith(_COMMENT_OR_IMPORT_PREFIXES)
