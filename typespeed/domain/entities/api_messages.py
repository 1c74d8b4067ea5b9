"""Request models for the HTTP API."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

USER_ID_PATTERN = r"^[a-zA-Z0-9_-]{3,64}$"
LANGUAGE_NAME_PATTERN = r"^[a-zA-Z0-9+#\-_. ]{1,50}$"


class ScanOptions(BaseModel):
    """Options for scanning a project folder."""

    max_depth: Optional[int] = Field(default=None, ge=0)
    include_hidden: bool = False
    max_file_size: Optional[int] = Field(default=None, gt=0, description="Bytes")
    languages: Optional[list[str]] = Field(default=None, description="Language names to keep")


class ScanRequest(BaseModel):
    folder_path: str = Field(min_length=1)
    options: ScanOptions = Field(default_factory=ScanOptions)
    replace: bool = Field(default=False, description="Drop previously loaded files first")

    @field_validator("folder_path")
    @classmethod
    def folder_path_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("folder_path cannot be empty")
        return value.strip()


class StartSessionRequest(BaseModel):
    """Start a session from a random loaded file, optionally filtered by language."""

    language: Optional[str] = Field(default=None, pattern=LANGUAGE_NAME_PATTERN)
    file_id: Optional[str] = None
    max_lines: Optional[int] = Field(default=None, description="Clamped to the configured bounds")


class CharacterRequest(BaseModel):
    character: str = Field(min_length=1, max_length=1)


class CompleteSessionRequest(BaseModel):
    user_id: str = Field(default="default", pattern=USER_ID_PATTERN)
