"""Recursive scanner that loads source files from a project folder."""

import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from ..domain.entities.api_messages import ScanOptions
from ..domain.entities.code_file import CodeFile
from ..domain.entities.language import detect_language

logger = logging.getLogger(__name__)

IGNORED_DIRS = frozenset({
    "node_modules",
    ".git",
    "dist",
    "build",
    "vendor",
    "__pycache__",
    ".vscode",
    ".idea",
    "target",
    "bin",
    "obj",
    ".next",
    ".nuxt",
    "coverage",
})

DEFAULT_MAX_FILE_SIZE = 1024 * 1024


class ScanStatistics(BaseModel):
    total_files: int = 0
    total_size: int = 0
    by_language: dict[str, int] = Field(default_factory=dict)


class ScanResult(BaseModel):
    """Files found by a scan along with the problems met on the way."""

    files: list[CodeFile] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    statistics: ScanStatistics = Field(default_factory=ScanStatistics)


class ProjectScanner:
    """Walks a folder tree and builds CodeFile entities for supported files.

    Problems with single files or directories are collected in the result and
    never abort the scan. Files holding only whitespace are reported as skipped,
    and links that lead outside the scanned folder are never followed.
    """

    def __init__(self, max_depth: int = 5, max_file_size: int = DEFAULT_MAX_FILE_SIZE):
        """Initialize the scanner.

        Args:
            max_depth: Depth used when the scan options do not set one.
            max_file_size: Size limit in bytes used when the options do not set one.
        """
        self.max_depth = max_depth
        self.max_file_size = max_file_size

    def scan_folder(self, folder_path: Path, options: Optional[ScanOptions] = None) -> ScanResult:
        """Scan ``folder_path`` recursively.

        Args:
            folder_path: An already validated directory.
            options: Depth, size, hidden-directory and language filters.

        Returns:
            ScanResult: Loaded files, per-file errors and totals.
        """
        options = options or ScanOptions()
        root = Path(folder_path).resolve()
        result = ScanResult()

        self._scan_directory(root, root, result, options, depth=0)

        logger.info(
            f"Scanned {root}: {result.statistics.total_files} files, "
            f"{len(result.errors)} errors"
        )
        return result

    def _scan_directory(
        self, root: Path, directory: Path, result: ScanResult, options: ScanOptions, depth: int
    ) -> None:
        max_depth = options.max_depth if options.max_depth is not None else self.max_depth
        if depth > max_depth:
            return

        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            result.errors.append(f"Error scanning directory {directory}: {e}")
            return

        for entry in entries:
            if entry.is_symlink() and not self._link_stays_inside(root, entry):
                result.errors.append(f"Skipped link pointing outside the scan folder: {entry}")
                continue

            if entry.is_dir():
                if not self._should_ignore_directory(entry.name, options):
                    self._scan_directory(root, entry, result, options, depth + 1)
            elif entry.is_file():
                self._process_file(root, entry, result, options)

    def _link_stays_inside(self, root: Path, link: Path) -> bool:
        try:
            return link.resolve(strict=True).is_relative_to(root)
        except (OSError, RuntimeError):
            return False

    def _should_ignore_directory(self, name: str, options: ScanOptions) -> bool:
        if not options.include_hidden and name.startswith("."):
            return True
        return name.lower() in IGNORED_DIRS

    def _process_file(self, root: Path, file_path: Path, result: ScanResult, options: ScanOptions) -> None:
        language = detect_language(file_path.name)
        if language is None:
            return

        if options.languages and language.key not in {name.lower() for name in options.languages}:
            return

        try:
            size = file_path.stat().st_size
            max_size = options.max_file_size or self.max_file_size
            if size > max_size:
                result.errors.append(f"File too large: {file_path} ({size} bytes)")
                return

            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            result.errors.append(f"Error processing file {file_path}: {e}")
            return

        if not content.strip():
            result.skipped.append(file_path.relative_to(root).as_posix())
            return

        code_file = CodeFile.create(
            path=file_path.relative_to(root).as_posix(),
            content=content,
            language=language,
        )
        result.files.append(code_file)
        result.statistics.total_files += 1
        result.statistics.total_size += size
        result.statistics.by_language[language.name] = result.statistics.by_language.get(language.name, 0) + 1
