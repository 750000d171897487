"""HTML Compressor - Strip comments and whitespace from HTML without touching pre, textarea, script or style content."""

from html_compressor.compressor import (
    CompressionResult,
    CompressorOptions,
    Minifier,
    Region,
    RegionKind,
    compress,
    compress_with_stats,
    extract_regions,
    minify_region,
    normalize_html,
    reassemble_regions,
)
from html_compressor.errors import (
    HtmlCompressorError,
    MinificationError,
    PlaceholderCollisionError,
    ReassemblyError,
)
from html_compressor.minifiers import minify_css, minify_js, wrap_lines

__all__ = [
    "compress",
    "compress_with_stats",
    "extract_regions",
    "normalize_html",
    "reassemble_regions",
    "minify_region",
    "minify_js",
    "minify_css",
    "wrap_lines",
    "CompressionResult",
    "CompressorOptions",
    "Minifier",
    "Region",
    "RegionKind",
    "HtmlCompressorError",
    "MinificationError",
    "PlaceholderCollisionError",
    "ReassemblyError",
]
