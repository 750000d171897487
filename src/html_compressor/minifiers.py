"""Default minifiers for the bodies of <script> and <style> blocks."""

from __future__ import annotations

from typing import TYPE_CHECKING

import rcssmin
from calmjs.parse import es5
from calmjs.parse.unparsers.es5 import minify_print

if TYPE_CHECKING:
    from html_compressor.compressor import CompressorOptions

_JS_QUOTES = "'\"`"
_CSS_QUOTES = "'\""

# A "/" after one of these (or after a keyword below) opens a regex literal,
# anywhere else it divides.
_REGEX_PRECEDERS = set("(,=:[!&|?{};+-*%<>~^")
_REGEX_KEYWORDS = {
    "return", "typeof", "instanceof", "in", "new", "delete",
    "void", "throw", "case", "do", "else",
}


def _opens_regex(source: str, slash: int) -> bool:
    i = slash - 1
    while i >= 0 and source[i] in " \t\r\n":
        i -= 1
    if i < 0 or source[i] in _REGEX_PRECEDERS:
        return True
    if not (source[i].isalnum() or source[i] in "_$"):
        return False
    end = i + 1
    while i >= 0 and (source[i].isalnum() or source[i] in "_$"):
        i -= 1
    return source[i + 1:end] in _REGEX_KEYWORDS


def wrap_lines(
    source: str,
    width: int,
    break_after: str,
    quote_chars: str = "",
    regex_literals: bool = False,
) -> str:
    """Insert line breaks once a line reaches *width* characters.

    A break is only placed right after one of the *break_after* characters,
    never inside a string or, with *regex_literals*, a JavaScript regex
    literal, so lines may run past *width* until the next opportunity.

    Args:
        source: Minified code.
        width: Line length that triggers a break; ``<= 0`` disables wrapping.
        break_after: Characters a line may end with, e.g. ``"}"`` for CSS.
        quote_chars: Characters that open and close string literals.
        regex_literals: Treat ``/.../`` in operand position as a literal.

    Returns:
        The wrapped code.
    """
    if width <= 0:
        return source

    lines: list[str] = []
    line_start = 0     # start of the pending output chunk
    column_start = 0   # start of the current physical line
    quote: str | None = None   # closing character of the open literal
    in_class = False           # inside [...] of a regex
    escape = False

    for i, ch in enumerate(source):
        if quote is not None:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif quote == "/" and ch == "[":
                in_class = True
            elif quote == "/" and ch == "]":
                in_class = False
            elif ch == quote and not in_class:
                quote = None
            continue

        if ch in quote_chars:
            quote = ch
        elif regex_literals and ch == "/" and _opens_regex(source, i):
            quote = "/"
        elif ch == "\n":
            column_start = i + 1
        elif ch in break_after and i + 1 - column_start >= width:
            lines.append(source[line_start:i + 1])
            line_start = column_start = i + 1

    if line_start < len(source) or not lines:
        lines.append(source[line_start:])

    return "\n".join(lines)


def minify_js(source: str, options: CompressorOptions) -> str:
    """Minify ECMAScript 5 with calmjs.parse.

    Local symbols are renamed unless ``js_no_munge`` is set, and the last
    semicolon of each block is dropped unless ``js_preserve_semicolons`` is
    set. calmjs.parse performs no micro-optimizations, so
    ``js_disable_optimizations`` needs no handling here.

    Raises:
        calmjs.parse.exceptions.ECMASyntaxError: If *source* does not parse.
    """
    program = es5(source)
    minified = minify_print(
        program,
        obfuscate=not options.js_no_munge,
        obfuscate_globals=False,
        drop_semi=not options.js_preserve_semicolons,
    )
    return wrap_lines(minified, options.js_line_break, ";", _JS_QUOTES, regex_literals=True)


def minify_css(source: str, options: CompressorOptions) -> str:
    """Minify CSS with rcssmin, wrapping after ``}`` if ``css_line_break`` is set."""
    minified = rcssmin.cssmin(source, keep_bang_comments=False)
    return wrap_lines(minified, options.css_line_break, "}", _CSS_QUOTES)
