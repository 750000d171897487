"""Tests for the default minifiers and line wrapping."""

import pytest
from calmjs.parse.exceptions import ECMASyntaxError

from html_compressor import CompressorOptions, minify_css, minify_js, wrap_lines


class TestWrapLines:
    def test_breaks_after_delimiter(self):
        assert wrap_lines("a{x}b{y}c{z}", 4, "}") == "a{x}\nb{y}\nc{z}"

    def test_breaks_only_once_width_reached(self):
        assert wrap_lines("a{x}b{y}c{z}", 8, "}") == "a{x}b{y}\nc{z}"

    @pytest.mark.parametrize("width", [0, -1])
    def test_disabled(self, width: int):
        assert wrap_lines("a;b;c;", width, ";") == "a;b;c;"

    def test_empty(self):
        assert wrap_lines("", 10, ";") == ""

    def test_no_break_inside_strings(self):
        assert wrap_lines('a="x;y";b=1;', 1, ";", "'\"") == 'a="x;y";\nb=1;'

    def test_escaped_quote_inside_string(self):
        assert wrap_lines('a="x\\";y";b;', 1, ";", "'\"") == 'a="x\\";y";\nb;'

    def test_existing_newline_starts_new_line(self):
        assert wrap_lines("aaaa\nb;cc;d", 3, ";") == "aaaa\nb;cc;\nd"

    def test_no_break_inside_regex_literals(self):
        source = "var r=/;/g;var q=/'/;var x=1;"
        assert wrap_lines(source, 1, ";", "'\"`", regex_literals=True) == (
            "var r=/;/g;\nvar q=/'/;\nvar x=1;"
        )

    def test_division_is_not_a_regex(self):
        assert wrap_lines("a=b/c;d=e/f;", 1, ";", regex_literals=True) == "a=b/c;\nd=e/f;"

    def test_slash_inside_regex_class(self):
        assert wrap_lines("r=/[/;]/;x;", 1, ";", regex_literals=True) == "r=/[/;]/;\nx;"

    def test_regex_after_keyword(self):
        assert wrap_lines("return/;/.test(s);x;", 1, ";", regex_literals=True) == (
            "return/;/.test(s);\nx;"
        )


class TestMinifyJs:
    def test_removes_whitespace_and_comments(self):
        result = minify_js("// counter\nvar count = 0;\n", CompressorOptions())
        assert "counter" not in result
        assert "var count=0" in result

    def test_keeps_string_contents(self):
        result = minify_js('var s = "a   b";', CompressorOptions())
        assert '"a   b"' in result

    def test_syntax_error_raises(self):
        with pytest.raises(ECMASyntaxError):
            minify_js("function (", CompressorOptions())


class TestMinifyCss:
    def test_removes_whitespace(self):
        result = minify_css("body {\n  margin: 0;\n}\n", CompressorOptions())
        assert result.startswith("body{margin:0")

    def test_wraps_lines(self):
        options = CompressorOptions(css_line_break=1)
        result = minify_css("a { color: red; }\nb { color: blue; }", options)
        assert result.split("\n")[1].startswith("b{")

    def test_no_wrap_by_default(self):
        result = minify_css("a { color: red; }\nb { color: blue; }", CompressorOptions())
        assert "\n" not in result
