"""Validation of folder paths submitted for scanning."""

import re
from pathlib import Path
from typing import Iterable

from ..errors import PathAccessError

_TRAVERSAL_PATTERN = re.compile(r"(^|[\\/])\.\.([\\/]|$)")


def validate_scan_path(input_path: str, allowed_base_paths: Iterable[str]) -> Path:
    """Resolve ``input_path`` and make sure it lies inside an allowed directory.

    Args:
        input_path: Folder path as submitted by the client.
        allowed_base_paths: Directories that may be scanned, including their subfolders.

    Returns:
        Path: The resolved absolute path.

    Raises:
        PathAccessError: If the path is malformed, missing, or outside every
            allowed directory.
    """
    if not input_path or not input_path.strip():
        raise PathAccessError("Path must be a non-empty string")
    if "\0" in input_path:
        raise PathAccessError("Path contains invalid null byte")
    if _TRAVERSAL_PATTERN.search(input_path):
        raise PathAccessError("Path contains suspicious directory traversal patterns")

    resolved = Path(input_path).expanduser().resolve()
    if not resolved.exists():
        raise PathAccessError(f"Path does not exist: {input_path}")
    if not resolved.is_dir():
        raise PathAccessError(f"Path is not a directory: {input_path}")

    allowed = [Path(base).expanduser().resolve() for base in allowed_base_paths]
    if not any(resolved == base or base in resolved.parents for base in allowed):
        raise PathAccessError("Access denied: Path is outside allowed directories")

    return resolved
