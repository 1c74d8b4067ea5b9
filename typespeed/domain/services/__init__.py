"""Domain services for the TypeSpeed application."""

from .code_formatter import CodeFormatter
from .metrics_calculator import MetricsCalculator, calculate_difficulty
from .path_validator import validate_scan_path
from .snippet_selector import SnippetSelector
from .syntax_highlighter import HighlightedToken, SyntaxHighlighter, TokenType
from .typing_service import TypingService

__all__ = [
    "CodeFormatter",
    "MetricsCalculator",
    "calculate_difficulty",
    "validate_scan_path",
    "SnippetSelector",
    "HighlightedToken",
    "SyntaxHighlighter",
    "TokenType",
    "TypingService",
]
