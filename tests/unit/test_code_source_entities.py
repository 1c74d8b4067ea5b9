"""Unit tests for languages and code files."""

import pytest
from pydantic import ValidationError

from typespeed.domain.entities import (
    CodeFile,
    detect_language,
    get_language_by_extension,
    get_language_by_name,
    supported_languages,
)


class TestLanguage:
    """Tests for the language registry."""

    def test_lookup_by_name_is_case_insensitive(self):
        assert get_language_by_name("PYTHON").name == "Python"
        assert get_language_by_name(" typescript ").name == "TypeScript"

    def test_unknown_name(self):
        assert get_language_by_name("cobol") is None

    @pytest.mark.parametrize("extension, expected", [
        (".py", "Python"),
        ("ts", "TypeScript"),
        (".TSX", "TypeScript"),
        (".go", "Go"),
        (".rs", "Rust"),
    ])
    def test_lookup_by_extension(self, extension, expected):
        assert get_language_by_extension(extension).name == expected

    def test_detect_language_from_path(self):
        assert detect_language("src/app/main.swift").name == "Swift"
        assert detect_language("README.md") is None
        assert detect_language("Makefile") is None

    def test_go_is_indented_with_tabs(self):
        assert get_language_by_name("go").indent_style == "tabs"

    def test_language_is_immutable(self):
        language = get_language_by_name("python")

        with pytest.raises(ValidationError):
            language.indent_size = 8

    def test_supported_languages(self):
        names = {language.name for language in supported_languages()}

        assert {"Python", "JavaScript", "TypeScript", "Go", "Rust", "Java"} <= names


class TestCodeFile:
    """Tests for the CodeFile entity."""

    def test_create_computes_metadata(self):
        content = "def f(x):\n    return x * 2\n"
        code_file = CodeFile.create(path="pkg/util.py", content=content, language=get_language_by_name("python"))

        assert code_file.id
        assert code_file.name == "util.py"
        assert code_file.metadata.size == len(content)
        assert code_file.metadata.lines == 3
        assert 1.0 <= code_file.metadata.complexity <= 2.0

    def test_size_counts_utf8_bytes(self):
        code_file = CodeFile.create(path="a.py", content="é", language=get_language_by_name("python"))

        assert code_file.metadata.size == 2

    def test_get_lines(self):
        code_file = CodeFile.create(path="a.py", content="one\ntwo\nthree\nfour", language=get_language_by_name("python"))

        assert code_file.get_lines(2, 3) == "two\nthree"

    def test_each_file_gets_its_own_id(self):
        python = get_language_by_name("python")

        assert CodeFile.create("a.py", "x", python).id != CodeFile.create("a.py", "x", python).id
