"""Code file repository protocol."""

from typing import Optional, Protocol, runtime_checkable

from ..entities.code_file import CodeFile
from ..entities.language import Language


@runtime_checkable
class CodeFileRepository(Protocol):
    """Protocol for storing the code files loaded for practice."""

    def save(self, code_file: CodeFile) -> None:
        ...

    def get(self, file_id: str) -> CodeFile:
        """Retrieve a code file by ID.

        Raises:
            ValueError: If the file is not found.
        """
        ...

    def find_by_language(self, language: Language) -> list[CodeFile]:
        ...

    def list_files(self) -> list[CodeFile]:
        ...

    def get_random_file(self, language: Optional[Language] = None) -> Optional[CodeFile]:
        """Pick a random file, optionally of one language. None when nothing matches."""
        ...

    def clear(self) -> None:
        ...

    def count(self) -> int:
        ...
