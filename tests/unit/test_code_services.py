"""Unit tests for snippet selection, formatting and highlighting."""

import random

import pytest

from typespeed.domain.entities import get_language_by_name
from typespeed.domain.services import CodeFormatter, SnippetSelector, SyntaxHighlighter, TokenType
from typespeed.domain.services.snippet_selector import is_comment_or_import


@pytest.fixture
def selector():
    return SnippetSelector(rng=random.Random(42))


@pytest.fixture
def highlighter():
    return SyntaxHighlighter()


class TestSnippetSelector:
    """Tests for SnippetSelector."""

    def test_short_content_is_used_whole(self, selector):
        content = "a = 1\nb = 2\n"

        assert selector.select_snippet(content, max_lines=50) == content

    def test_long_content_is_cut_to_max_lines(self, selector):
        content = "\n".join(f"value_{i} = {i}" for i in range(500))

        snippet = selector.select_snippet(content, max_lines=20)

        lines = snippet.split("\n")
        assert len(lines) == 20
        assert snippet in content

    def test_score_prefers_code_over_comments(self, selector):
        code = ["x = 1", "y = 2", "z = x + y"]
        comments = ["# one", "", "import os"]

        assert selector.score_snippet(code) == 1.0
        assert selector.score_snippet(comments) < selector.score_snippet(code)

    def test_score_of_empty_window(self, selector):
        assert selector.score_snippet([]) == 0.0

    @pytest.mark.parametrize("line, expected", [
        ("// comment", True),
        ("# comment", True),
        ("import os", True),
        ("from x import y", True),
        ("return 1", False),
    ])
    def test_is_comment_or_import(self, line, expected):
        assert is_comment_or_import(line) is expected


class TestCodeFormatter:
    """Tests for CodeFormatter."""

    def test_line_endings_are_normalised(self):
        formatter = CodeFormatter(get_language_by_name("python"))

        assert formatter.format("a\r\nb\rc") == "a\nb\nc"

    def test_leading_tabs_expand_for_space_languages(self):
        formatter = CodeFormatter(get_language_by_name("python"))

        assert formatter.format("if x:\n\tpass") == "if x:\n    pass"

    def test_tabs_are_kept_for_tab_languages(self):
        formatter = CodeFormatter(get_language_by_name("go"))

        assert formatter.format("func f() {\n\treturn\n}") == "func f() {\n\treturn\n}"

    def test_trailing_whitespace_and_blank_lines_are_removed(self):
        formatter = CodeFormatter(get_language_by_name("javascript"))

        assert formatter.format("let a = 1;   \n\n\n") == "let a = 1;"

    def test_code_is_not_rewritten(self):
        formatter = CodeFormatter(get_language_by_name("javascript"))

        assert formatter.format("const a = 1\nfoo()") == "const a = 1\nfoo()"


class TestSyntaxHighlighter:
    """Tests for SyntaxHighlighter."""

    def test_tokens_cover_the_whole_input(self, highlighter):
        code = 'def greet(name):\n    # say hi\n    return "hi " + name  # done\n'

        tokens = highlighter.highlight(code, get_language_by_name("python"))

        assert "".join(token.text for token in tokens) == code
        for token in tokens:
            assert code[token.position:token.position + len(token.text)] == token.text

    def test_token_types(self, highlighter):
        tokens = highlighter.highlight('return "x" + 42', get_language_by_name("python"))
        types = {token.text: token.type for token in tokens}

        assert types["return"] == TokenType.KEYWORD
        assert types['"x"'] == TokenType.STRING
        assert types["42"] == TokenType.NUMBER
        assert types["+"] == TokenType.OPERATOR

    def test_hash_is_not_a_comment_in_c(self, highlighter):
        tokens = highlighter.highlight("#include <stdio.h>", get_language_by_name("c"))

        assert tokens[0].text == "#"
        assert tokens[0].type == TokenType.PUNCTUATION
        assert tokens[1].text == "include"
        assert tokens[1].type == TokenType.KEYWORD
        assert "".join(token.text for token in tokens) == "#include <stdio.h>"

    def test_long_runs_of_hashes_in_c(self, highlighter):
        code = "#" * 5000 + "\nint x;"

        tokens = highlighter.highlight(code, get_language_by_name("c"))

        assert "".join(token.text for token in tokens) == code
        assert all(token.type == TokenType.PUNCTUATION for token in tokens[:5000])

    def test_only_called_names_are_functions(self, highlighter):
        tokens = highlighter.highlight("total = compute(value)", get_language_by_name("python"))
        types = {token.text: token.type for token in tokens}

        assert types["compute"] == TokenType.FUNCTION
        assert types["total"] == TokenType.PLAIN
        assert types["value"] == TokenType.PLAIN

    def test_floor_division_is_not_a_comment_in_python(self, highlighter):
        tokens = highlighter.highlight("half = n // 2  # rounded down", get_language_by_name("python"))
        types = {token.text: token.type for token in tokens}

        assert types["//"] == TokenType.OPERATOR
        assert types["# rounded down"] == TokenType.COMMENT

    def test_html_is_escaped(self, highlighter):
        html = highlighter.render("a < b", get_language_by_name("javascript"))

        assert '<span class="token-operator">&lt;</span>' in html
        assert "<span" in html
