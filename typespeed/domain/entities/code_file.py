"""Code file entities for the typing trainer."""

import re
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .language import Language

_SYMBOL_PATTERN = re.compile(r"[^a-zA-Z0-9\s]")
_LEADING_WHITESPACE = re.compile(r"^(\s*)")


class CodeFileMetadata(BaseModel):
    """Derived facts about a loaded source file."""

    model_config = ConfigDict(frozen=True)

    size: int = Field(ge=0, description="Size of the content in UTF-8 bytes")
    lines: int = Field(ge=0, description="Number of lines")
    loaded_at: datetime = Field(default_factory=datetime.utcnow)
    complexity: float = Field(ge=1.0, le=2.0, description="Typing difficulty estimate")


class CodeFile(BaseModel):
    """A source file loaded for practice.

    Code files are immutable once loaded. Use :meth:`create` to build one
    with its metadata computed from the content.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    path: str = Field(min_length=1, description="Path relative to the scanned folder or upload root")
    language: Language
    content: str
    metadata: CodeFileMetadata

    @classmethod
    def create(cls, path: str, content: str, language: Language) -> "CodeFile":
        """Build a code file and compute its metadata."""
        return cls(
            path=path,
            language=language,
            content=content,
            metadata=CodeFileMetadata(
                size=len(content.encode("utf-8")),
                lines=len(content.split("\n")),
                complexity=calculate_complexity(content, language),
            ),
        )

    @property
    def name(self) -> str:
        return self.path.replace("\\", "/").rsplit("/", 1)[-1]

    def get_lines(self, start_line: int, end_line: int) -> str:
        """Return lines ``start_line`` through ``end_line`` (1-based, inclusive)."""
        lines = self.content.split("\n")
        return "\n".join(lines[max(start_line - 1, 0):end_line])


def calculate_complexity(content: str, language: Language) -> float:
    """Estimate how hard a file is to type, from 1.0 (prose-like) to 2.0.

    Combines symbol density, keyword density per line and the deepest
    indentation.
    """
    if not content:
        return 1.0

    lines = content.split("\n")
    complexity = 1.0

    symbols = _SYMBOL_PATTERN.findall(content)
    complexity += (len(symbols) / len(content)) * 0.5

    keyword_count = 0
    for keyword in language.keywords:
        keyword_count += len(re.findall(rf"\b{re.escape(keyword)}\b", content))
    complexity += (keyword_count / len(lines)) * 0.3

    max_indent = max(len(_LEADING_WHITESPACE.match(line).group(1)) for line in lines)
    complexity += (max_indent / 40) * 0.2

    return round(min(2.0, complexity), 2)
