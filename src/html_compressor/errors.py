"""Exceptions raised by the HTML compressor."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from html_compressor.compressor import RegionKind


class HtmlCompressorError(Exception):
    """Base class for every error raised by html_compressor."""


class MinificationError(HtmlCompressorError, ValueError):
    """The external minifier rejected a script or style payload."""

    def __init__(self, kind: RegionKind, message: str) -> None:
        super().__init__(f"Failed to minify {kind.name.lower()} block: {message}")
        self.kind = kind


class PlaceholderCollisionError(HtmlCompressorError, ValueError):
    """The input contains, or normalizes into, the placeholder prefix."""

    def __init__(self, token: str) -> None:
        super().__init__(
            f"Input contains the reserved placeholder prefix {token!r}; "
            "choose a different temp_prefix/temp_suffix"
        )
        self.token = token


class ReassemblyError(HtmlCompressorError, RuntimeError):
    """Placeholders and preserved regions got out of step."""
