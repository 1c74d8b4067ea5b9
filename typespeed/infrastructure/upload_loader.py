"""Loading of source files uploaded from a browser file selection."""

import logging

from pydantic import BaseModel, Field

from ..domain.entities.code_file import CodeFile
from ..domain.entities.language import detect_language

logger = logging.getLogger(__name__)

MIN_UPLOAD_SIZE = 50
MAX_UPLOAD_SIZE = 500_000
MIN_UPLOAD_LINES = 10


class UploadResult(BaseModel):
    files: list[CodeFile] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class UploadLoader:
    """Turns uploaded (name, bytes) pairs into CodeFile entities.

    Files with an unknown extension, outside the size limits or shorter than
    the minimum line count are skipped, as are files with nothing but
    whitespace. Files that are not valid UTF-8 are reported as errors.
    """

    def __init__(
        self,
        min_size: int = MIN_UPLOAD_SIZE,
        max_size: int = MAX_UPLOAD_SIZE,
        min_lines: int = MIN_UPLOAD_LINES,
    ):
        self.min_size = min_size
        self.max_size = max_size
        self.min_lines = min_lines

    def load(self, uploads: list[tuple[str, bytes]]) -> UploadResult:
        """Load every acceptable upload.

        Args:
            uploads: Pairs of relative file name and raw content.

        Returns:
            UploadResult: Accepted files plus the names that were skipped or failed.
        """
        result = UploadResult()

        for filename, data in uploads:
            language = detect_language(filename)
            if language is None or not self.min_size <= len(data) <= self.max_size:
                result.skipped.append(filename)
                continue

            try:
                content = data.decode("utf-8")
            except UnicodeDecodeError as e:
                result.errors.append(f"Error reading file {filename}: {e}")
                continue

            if not content.strip() or len(content.split("\n")) < self.min_lines:
                result.skipped.append(filename)
                continue

            result.files.append(CodeFile.create(path=filename, content=content, language=language))

        logger.info(
            f"Loaded {len(result.files)} uploaded files "
            f"({len(result.skipped)} skipped, {len(result.errors)} errors)"
        )
        return result
