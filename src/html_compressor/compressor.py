"""Core compression logic."""

from __future__ import annotations

import dataclasses
import enum
import logging
import re
from collections import deque
from collections.abc import Callable

from html_compressor.errors import (
    MinificationError,
    PlaceholderCollisionError,
    ReassemblyError,
)
from html_compressor.minifiers import minify_css, minify_js

logger = logging.getLogger(__name__)


class RegionKind(enum.Enum):
    """Whitespace-sensitive blocks, declared in extraction order."""

    PRE = "pre"
    TEXTAREA = "textarea"
    SCRIPT = "script"
    STYLE = "style"

    @property
    def tag(self) -> str:
        return self.value


@dataclasses.dataclass(frozen=True, slots=True)
class Region:
    """A block of the document that was set aside before normalization."""

    kind: RegionKind
    text: str          # the full block, opening and closing tags included


@dataclasses.dataclass(frozen=True, slots=True)
class CompressorOptions:
    """Settings for a compression run.

    The ``js_*`` and ``css_*`` values are handed to the script and style
    minifiers untouched; they only matter when ``compress_js`` or
    ``compress_css`` is enabled.
    """

    compress_js: bool = False
    compress_css: bool = False
    js_no_munge: bool = False                # do not rename local symbols
    js_preserve_semicolons: bool = False     # keep unnecessary semicolons
    js_disable_optimizations: bool = False   # skip micro-optimizations
    js_line_break: int = -1                  # <= 0 disables line wrapping
    css_line_break: int = -1                 # <= 0 disables line wrapping
    temp_prefix: str = "%%%COMPRESS~"
    temp_suffix: str = "%%%"

    def __post_init__(self) -> None:
        if not self.temp_prefix:
            raise ValueError("temp_prefix must not be empty")
        # Whitespace inside a token would be collapsed along with the markup.
        if any(ch.isspace() for ch in self.temp_prefix + self.temp_suffix):
            raise ValueError("temp_prefix and temp_suffix must not contain whitespace")

    def placeholder(self, kind: RegionKind) -> str:
        """Return the token that stands in for an extracted *kind* block."""
        return f"{self.temp_prefix}{kind.name}{self.temp_suffix}"


@dataclasses.dataclass(frozen=True, slots=True)
class CompressionResult:
    """Result of compression with detailed statistics."""

    text: str                              # the compressed document
    original_length: int                   # len(original input)
    compressed_length: int                 # len(text)
    ratio: float                           # compressed_length / original_length (0.0–1.0)
    savings_pct: float                     # (1 - ratio) * 100
    preserved_regions: tuple[Region, ...]  # blocks as they were put back

    def __str__(self) -> str:
        return self.text


# A minifier takes the payload of a script or style block and returns its
# minified form, raising on input it cannot handle.
Minifier = Callable[[str, CompressorOptions], str]

_DEFAULT_OPTIONS = CompressorOptions()

_FLAGS = re.DOTALL | re.IGNORECASE

# --- Whole blocks, tags included ---
_REGION_RES: dict[RegionKind, re.Pattern[str]] = {
    kind: re.compile(rf"<{kind.tag}[^>]*?>.*?</{kind.tag}>", _FLAGS)
    for kind in RegionKind
}

# --- Non-empty payload between the tags of a minifiable block ---
_PAYLOAD_RES: dict[RegionKind, re.Pattern[str]] = {
    kind: re.compile(rf"<{kind.tag}[^>]*?>(.+?)</{kind.tag}>", _FLAGS)
    for kind in (RegionKind.SCRIPT, RegionKind.STYLE)
}

_COMMENT_RE = re.compile(r"<!--.*?-->", _FLAGS)

# ASCII only: a non-breaking space is content, not layout.
_WHITESPACE_RUN_RE = re.compile(r"\s{2,}", re.ASCII)
_TRIM_CHARS = " \t\n\r\x0b\x0c"


def extract_regions(
    text: str,
    kind: RegionKind,
    options: CompressorOptions = _DEFAULT_OPTIONS,
) -> tuple[str, deque[Region]]:
    """Replace every *kind* block in *text* with its placeholder.

    Blocks are matched left to right, case-insensitively, with the shortest
    body that reaches a closing tag.

    Returns:
        The rewritten text and the removed blocks in document order.
    """
    token = options.placeholder(kind)
    regions: deque[Region] = deque()

    def _stash(match: re.Match[str]) -> str:
        regions.append(Region(kind, match.group(0)))
        return token

    text = _REGION_RES[kind].sub(_stash, text)
    logger.debug("Extracted %d %s block(s)", len(regions), kind.tag)
    return text, regions


def normalize_html(text: str) -> str:
    """Strip comments, then collapse whitespace runs into a single space.

    Only call this on text that no longer holds any preserved block.
    """
    text = _COMMENT_RE.sub("", text)
    return _WHITESPACE_RUN_RE.sub(" ", text)


def minify_region(region: Region, minifier: Minifier, options: CompressorOptions) -> Region:
    """Run the payload of a script or style block through *minifier*.

    Blocks with an empty body are returned as-is without calling the minifier.

    Raises:
        ValueError: If *region* is not a script or style block.
        MinificationError: If the minifier fails on the payload.
    """
    if region.kind not in _PAYLOAD_RES:
        raise ValueError(f"{region.kind.tag} blocks cannot be minified")

    match = _PAYLOAD_RES[region.kind].search(region.text)
    if match is None:
        return region

    try:
        minified = minifier(match.group(1), options)
    except Exception as e:
        raise MinificationError(region.kind, str(e) or type(e).__name__) from e

    logger.debug(
        "Minified %s block: %d -> %d chars",
        region.kind.tag, len(match.group(1)), len(minified),
    )
    return Region(
        region.kind,
        region.text[:match.start(1)] + minified + region.text[match.end(1):],
    )


def reassemble_regions(
    text: str,
    kind: RegionKind,
    regions: deque[Region],
    options: CompressorOptions = _DEFAULT_OPTIONS,
    minifier: Minifier | None = None,
    collect_regions: list[Region] | None = None,
) -> str:
    """Put the *kind* blocks back in place of their placeholders.

    Placeholders are filled left to right, consuming *regions* from the front.
    Inserted text is taken literally and is not searched for further
    placeholders.

    Args:
        text: Normalized text holding *kind* placeholders.
        kind: Which placeholders to fill.
        regions: Blocks of *kind* in document order; emptied by this call.
        options: Supplies the placeholder token and the minifier settings.
        minifier: If given, each block goes through ``minify_region`` first.
        collect_regions: Optional list that receives the blocks as inserted.

    Raises:
        ReassemblyError: If the number of placeholders differs from
            ``len(regions)``.
        MinificationError: If *minifier* fails on a block.
    """
    token = options.placeholder(kind)
    count = text.count(token)
    if count != len(regions):
        raise ReassemblyError(
            f"Found {count} {kind.tag} placeholder(s) "
            f"but {len(regions)} preserved {kind.tag} block(s)"
        )
    if not regions:
        return text

    pieces = text.split(token)
    result = [pieces[0]]
    for piece in pieces[1:]:
        region = regions.popleft()
        if minifier is not None:
            region = minify_region(region, minifier, options)
        if collect_regions is not None:
            collect_regions.append(region)
        result.append(region.text)
        result.append(piece)

    return "".join(result)


def _count_overlapping(needle: str, haystack: str) -> int:
    return len(re.findall(f"(?={re.escape(needle)})", haystack))


def _check_collisions(html: str, options: CompressorOptions) -> None:
    # Any copy of the prefix, even a partial token, can fuse with a
    # placeholder or with text joined by comment removal.
    if options.temp_prefix in html:
        raise PlaceholderCollisionError(options.temp_prefix)


def _check_placeholders(
    text: str,
    sequences: dict[RegionKind, deque[Region]],
    options: CompressorOptions,
) -> None:
    """Fail if normalization assembled a prefix outside the placeholders."""
    prefix = options.temp_prefix
    expected = sum(
        len(regions) * _count_overlapping(prefix, options.placeholder(kind))
        for kind, regions in sequences.items()
    )
    found = _count_overlapping(prefix, text)
    if found != expected:
        raise PlaceholderCollisionError(prefix)


def _discard_commented_regions(
    text: str,
    sequences: dict[RegionKind, deque[Region]],
    options: CompressorOptions,
) -> None:
    """Drop blocks whose placeholders sit inside comments.

    ``normalize_html`` deletes those placeholders together with the comment,
    so their blocks must leave the sequences too.
    """
    comments = [(m.start(), m.end()) for m in _COMMENT_RE.finditer(text)]
    if not comments:
        return

    for kind, regions in sequences.items():
        if not regions:
            continue
        token = options.placeholder(kind)
        ordered = list(regions)
        kept: deque[Region] = deque()
        index = 0
        prev_end = 0
        for start, end in comments:
            before = text.count(token, prev_end, start)
            kept.extend(ordered[index:index + before])
            index += before + text.count(token, start, end)
            prev_end = end
        kept.extend(ordered[index:])

        if len(kept) != len(ordered):
            logger.debug("Dropped %d commented-out %s block(s)", len(ordered) - len(kept), kind.tag)
        sequences[kind] = kept


def _compress_html(
    html: str,
    options: CompressorOptions,
    js_minifier: Minifier,
    css_minifier: Minifier,
    collect_regions: list[Region] | None = None,
) -> str:
    _check_collisions(html, options)

    # Extraction order matters: a <script> inside a <pre> leaves with the <pre>.
    text = html
    sequences: dict[RegionKind, deque[Region]] = {}
    for kind in RegionKind:
        text, sequences[kind] = extract_regions(text, kind, options)

    _discard_commented_regions(text, sequences, options)
    text = normalize_html(text)
    _check_placeholders(text, sequences, options)

    minifiers: dict[RegionKind, Minifier | None] = {
        RegionKind.SCRIPT: js_minifier if options.compress_js else None,
        RegionKind.STYLE: css_minifier if options.compress_css else None,
    }
    for kind in RegionKind:
        text = reassemble_regions(
            text, kind, sequences[kind], options, minifiers.get(kind), collect_regions
        )

    return text.strip(_TRIM_CHARS)


def compress(
    html: str | None,
    options: CompressorOptions | None = None,
    *,
    js_minifier: Minifier | None = None,
    css_minifier: Minifier | None = None,
) -> str | None:
    """Remove comments and redundant whitespace from an HTML document.

    Content of ``<pre>``, ``<textarea>``, ``<script>`` and ``<style>`` blocks
    is kept byte for byte, except that script and style bodies are minified
    when ``options.compress_js`` / ``options.compress_css`` are set.

    Args:
        html: Document to compress. ``None`` and ``""`` are returned unchanged.
        options: Compression settings; defaults to ``CompressorOptions()``.
        js_minifier: Replacement for the default ``minify_js``.
        css_minifier: Replacement for the default ``minify_css``.

    Returns:
        The compressed document with surrounding whitespace trimmed.

    Raises:
        PlaceholderCollisionError: If *html* contains ``options.temp_prefix``,
            or comment removal pieces one together.
        MinificationError: If a script or style minifier fails. No output is
            produced in that case.
    """
    if not html:
        return html

    return _compress_html(
        html,
        options or _DEFAULT_OPTIONS,
        js_minifier or minify_js,
        css_minifier or minify_css,
    )


def compress_with_stats(
    html: str,
    options: CompressorOptions | None = None,
    *,
    js_minifier: Minifier | None = None,
    css_minifier: Minifier | None = None,
) -> CompressionResult:
    """Compress *html* and report sizes along with the preserved blocks.

    Takes the same arguments and raises the same errors as ``compress``.
    """
    original_length = len(html)
    collected_regions: list[Region] = []

    if html:
        compressed_text = _compress_html(
            html,
            options or _DEFAULT_OPTIONS,
            js_minifier or minify_js,
            css_minifier or minify_css,
            collected_regions,
        )
    else:
        compressed_text = html

    compressed_length = len(compressed_text)
    ratio = compressed_length / original_length if original_length > 0 else 1.0

    return CompressionResult(
        text=compressed_text,
        original_length=original_length,
        compressed_length=compressed_length,
        ratio=ratio,
        savings_pct=(1 - ratio) * 100,
        preserved_regions=tuple(collected_regions),
    )
