"""Local in-memory implementation of CodeFileRepository."""

import random
from typing import Dict, Optional

from ..domain.entities.code_file import CodeFile
from ..domain.entities.language import Language
from ..domain.interfaces.code_file_repository import CodeFileRepository


class LocalCodeFileRepository(CodeFileRepository):
    """Local implementation of the CodeFileRepository protocol.

    Keeps loaded code files in a dictionary keyed by file ID.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """Initialize the repository.

        Args:
            rng: Random source used to pick practice files.
        """
        self._files: Dict[str, CodeFile] = {}
        self._rng = rng or random.Random()

    def save(self, code_file: CodeFile) -> None:
        self._files[code_file.id] = code_file

    def get(self, file_id: str) -> CodeFile:
        """Retrieve a code file by ID.

        Raises:
            ValueError: If the file is not found.
        """
        if file_id not in self._files:
            raise ValueError(f"Code file with id {file_id} not found")

        return self._files[file_id]

    def find_by_language(self, language: Language) -> list[CodeFile]:
        return [f for f in self._files.values() if f.language == language]

    def list_files(self) -> list[CodeFile]:
        return list(self._files.values())

    def get_random_file(self, language: Optional[Language] = None) -> Optional[CodeFile]:
        candidates = self.find_by_language(language) if language else self.list_files()
        if not candidates:
            return None
        return self._rng.choice(candidates)

    def remove(self, file_id: str) -> None:
        """Remove a code file.

        Raises:
            ValueError: If the file is not found.
        """
        if file_id not in self._files:
            raise ValueError(f"Code file with id {file_id} not found")

        del self._files[file_id]

    def clear(self) -> None:
        self._files.clear()

    def count(self) -> int:
        return len(self._files)
