"""Regex-based syntax highlighting for snippet display."""

import html
import re
from enum import Enum

from pydantic import BaseModel

from ..entities.language import Language

_CODE_TOKENS = (
    r"\"(?:\\.|[^\"\\\n])*\"|'(?:\\.|[^'\\\n])*'|`(?:\\.|[^`\\])*`"
    r"|\d+(?:\.\d+)?"
    r"|\w+"
    r"|[+\-*/%=<>!&|^~?:]+"
    r"|[(){}\[\];,.@#]"
    r"|."
)
_TOKEN_PATTERN = re.compile(r"\s+|(?P<comment>//[^\n]*|/\*.*?\*/)|" + _CODE_TOKENS, re.DOTALL)
_HASH_COMMENT_TOKEN_PATTERN = re.compile(r"\s+|(?P<comment>#[^\n]*)|" + _CODE_TOKENS, re.DOTALL)
_HASH_COMMENT_LANGUAGES = {"Python", "Ruby", "Bash"}


class TokenType(str, Enum):
    KEYWORD = "keyword"
    STRING = "string"
    NUMBER = "number"
    COMMENT = "comment"
    FUNCTION = "function"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"
    TYPE = "type"
    PLAIN = "plain"


class HighlightedToken(BaseModel):
    text: str
    type: TokenType
    position: int


class SyntaxHighlighter:
    """Splits code into typed tokens and renders them as HTML spans.

    Token texts always concatenate back to the input, so positions line up
    with the typing cursor.
    """

    CSS_PREFIX = "token-"

    def highlight(self, code: str, language: Language) -> list[HighlightedToken]:
        keywords = set(language.keywords)
        if language.name in _HASH_COMMENT_LANGUAGES:
            pattern = _HASH_COMMENT_TOKEN_PATTERN
        else:
            pattern = _TOKEN_PATTERN

        return [
            HighlightedToken(
                text=match.group(0),
                type=_token_type(match, keywords),
                position=match.start(),
            )
            for match in pattern.finditer(code)
        ]

    def to_html(self, tokens: list[HighlightedToken]) -> str:
        return "".join(
            f'<span class="{self.CSS_PREFIX}{token.type.value}">{html.escape(token.text)}</span>'
            for token in tokens
        )

    def render(self, code: str, language: Language) -> str:
        return self.to_html(self.highlight(code, language))


def _token_type(match: re.Match, keywords: set[str]) -> TokenType:
    text = match.group(0)
    if match.group("comment") is not None:
        return TokenType.COMMENT
    if text[0] in "\"'`" and len(text) > 1:
        return TokenType.STRING
    if text[0].isdigit():
        return TokenType.NUMBER
    if text in keywords:
        return TokenType.KEYWORD
    if re.fullmatch(r"[+\-*/%=<>!&|^~?:]+", text):
        return TokenType.OPERATOR
    if re.fullmatch(r"[(){}\[\];,.@#]", text):
        return TokenType.PUNCTUATION
    if re.fullmatch(r"[A-Z]\w*", text):
        return TokenType.TYPE
    if re.fullmatch(r"[a-z_]\w*", text) and match.string.startswith("(", match.end()):
        return TokenType.FUNCTION
    return TokenType.PLAIN
