"""Programming language value objects."""

from pathlib import PurePath
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class Language(BaseModel):
    """A programming language the trainer can serve snippets for.

    Languages are immutable and compared by value.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Display name, e.g. 'Python'")
    extensions: tuple[str, ...] = Field(description="Lower-case extensions including the dot")
    indent_size: int = Field(default=4, ge=0)
    indent_style: Literal["spaces", "tabs"] = "spaces"
    keywords: tuple[str, ...] = ()

    @property
    def key(self) -> str:
        """Lookup key used by the registry."""
        return self.name.lower()

    def supports_extension(self, extension: str) -> bool:
        return extension.lower() in self.extensions


_LANGUAGES: dict[str, Language] = {
    language.key: language
    for language in (
        Language(
            name="TypeScript",
            extensions=(".ts", ".tsx"),
            indent_size=2,
            keywords=("function", "const", "let", "var", "class", "interface", "type",
                      "import", "export", "if", "else", "for", "while", "return"),
        ),
        Language(
            name="JavaScript",
            extensions=(".js", ".jsx", ".mjs"),
            indent_size=2,
            keywords=("function", "const", "let", "var", "class", "import", "export",
                      "if", "else", "for", "while", "return"),
        ),
        Language(
            name="Python",
            extensions=(".py", ".pyw"),
            indent_size=4,
            keywords=("def", "class", "import", "from", "if", "elif", "else", "for",
                      "while", "return", "yield", "with", "as", "try", "except"),
        ),
        Language(
            name="Swift",
            extensions=(".swift",),
            indent_size=2,
            keywords=("func", "var", "let", "class", "struct", "enum", "protocol",
                      "import", "if", "else", "for", "while", "return", "guard"),
        ),
        Language(
            name="C",
            extensions=(".c", ".h"),
            indent_size=4,
            keywords=("int", "char", "float", "double", "void", "if", "else", "for",
                      "while", "return", "struct", "typedef", "include", "define"),
        ),
        Language(
            name="C++",
            extensions=(".cpp", ".hpp", ".cc", ".cxx"),
            indent_size=4,
            keywords=("int", "char", "float", "double", "void", "class", "public",
                      "private", "protected", "if", "else", "for", "while", "return",
                      "namespace", "using", "template"),
        ),
        Language(
            name="Java",
            extensions=(".java",),
            indent_size=2,
            keywords=("class", "public", "private", "protected", "static", "final",
                      "void", "int", "String", "if", "else", "for", "while", "return",
                      "import", "package"),
        ),
        Language(
            name="Rust",
            extensions=(".rs",),
            indent_size=4,
            keywords=("fn", "let", "mut", "const", "struct", "enum", "impl", "trait",
                      "use", "if", "else", "for", "while", "loop", "match", "return"),
        ),
        Language(
            name="Go",
            extensions=(".go",),
            indent_size=0,
            indent_style="tabs",
            keywords=("func", "var", "const", "type", "struct", "interface", "package",
                      "import", "if", "else", "for", "range", "return", "defer", "go"),
        ),
        Language(
            name="Ruby",
            extensions=(".rb",),
            indent_size=2,
            keywords=("def", "class", "module", "if", "else", "elsif", "unless", "for",
                      "while", "until", "return", "yield", "require", "include"),
        ),
        Language(
            name="Kotlin",
            extensions=(".kt",),
            indent_size=4,
            keywords=("fun", "val", "var", "class", "object", "interface", "import",
                      "package", "if", "else", "when", "for", "while", "return"),
        ),
        Language(
            name="C#",
            extensions=(".cs",),
            indent_size=4,
            keywords=("class", "public", "private", "protected", "static", "void",
                      "int", "string", "using", "namespace", "if", "else", "for",
                      "foreach", "while", "return"),
        ),
        Language(
            name="PHP",
            extensions=(".php",),
            indent_size=4,
            keywords=("function", "class", "public", "private", "protected", "echo",
                      "if", "else", "foreach", "for", "while", "return", "use"),
        ),
        Language(
            name="Bash",
            extensions=(".sh", ".bash"),
            indent_size=2,
            keywords=("if", "then", "else", "fi", "for", "do", "done", "while",
                      "case", "esac", "function", "return", "local", "export"),
        ),
    )
}


def get_language_by_name(name: str) -> Optional[Language]:
    """Resolve a language by its case-insensitive name."""
    return _LANGUAGES.get(name.strip().lower())


def get_language_by_extension(extension: str) -> Optional[Language]:
    """Resolve a language from a file extension such as ``".py"`` or ``"py"``."""
    normalized = extension.lower()
    if normalized and not normalized.startswith("."):
        normalized = f".{normalized}"

    for language in _LANGUAGES.values():
        if normalized in language.extensions:
            return language
    return None


def detect_language(path: str) -> Optional[Language]:
    """Resolve the language of a file from its name."""
    return get_language_by_extension(PurePath(path).suffix)


def supported_languages() -> list[Language]:
    return list(_LANGUAGES.values())
