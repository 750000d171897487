#!/usr/bin/env python3
"""
Benchmark html-compressor over a directory of HTML pages.

Each page is compressed in four modes (markup only, +JS, +CSS, +JS+CSS)
and the size and median time of every run is printed as one table row per
page. Pages whose scripts the JavaScript minifier rejects are reported as
errors for that mode and skipped in the totals.

Usage:
    python benchmarks/run_benchmark.py
    python benchmarks/run_benchmark.py --corpus pages/ --iterations 20
    python benchmarks/run_benchmark.py --output results.json
"""

from __future__ import annotations

import argparse
import json
import platform
import statistics
import sys
import time
from dataclasses import asdict, dataclass
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_PROJECT_ROOT / "src"))

from html_compressor import CompressorOptions, HtmlCompressorError, compress  # noqa: E402


MODES: dict[str, CompressorOptions] = {
    "html": CompressorOptions(),
    "+js": CompressorOptions(compress_js=True),
    "+css": CompressorOptions(compress_css=True),
    "+js+css": CompressorOptions(compress_js=True, compress_css=True),
}


@dataclass(slots=True)
class Measurement:
    page: str
    mode: str
    original_chars: int
    compressed_chars: int | None   # None when compression failed
    median_ms: float | None
    error: str | None = None


def measure(page: str, html: str, mode: str, iterations: int) -> Measurement:
    timings = []
    try:
        for _ in range(iterations):
            start = time.perf_counter()
            compressed = compress(html, MODES[mode])
            timings.append((time.perf_counter() - start) * 1000)
    except HtmlCompressorError as e:
        return Measurement(page, mode, len(html), None, None, str(e))
    return Measurement(page, mode, len(html), len(compressed), statistics.median(timings))


def _cell(m: Measurement) -> str:
    if m.compressed_chars is None:
        return f"{'error':>20s}"
    saved = 100.0 * (1 - m.compressed_chars / m.original_chars) if m.original_chars else 0.0
    return f"{saved:>8.1f}% {m.median_ms:>8.2f}ms"


def print_table(results: list[Measurement]) -> None:
    pages = list(dict.fromkeys(m.page for m in results))
    by_key = {(m.page, m.mode): m for m in results}

    print(f"{'page':<28s}{'chars':>9s}  " + "  ".join(f"{mode:>20s}" for mode in MODES))
    for page in pages:
        first = by_key[page, next(iter(MODES))]
        cells = "  ".join(_cell(by_key[page, mode]) for mode in MODES)
        print(f"{page[:27]:<28s}{first.original_chars:>9,d}  {cells}")

    totals = []
    for mode in MODES:
        ok = [m for m in results if m.mode == mode and m.compressed_chars is not None]
        original = sum(m.original_chars for m in ok)
        compressed = sum(m.compressed_chars for m in ok)
        totals.append(f"{100.0 * (1 - compressed / original) if original else 0.0:>19.1f}%")
    print(f"{'total saved':<28s}{'':>9s}  " + "  ".join(totals))

    for m in results:
        if m.error:
            print(f"  {m.page} [{m.mode}]: {m.error}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark html-compressor")
    parser.add_argument(
        "--corpus",
        type=Path,
        default=Path(__file__).resolve().parent / "corpus",
        help="Directory of .html pages (default: benchmarks/corpus/)",
    )
    parser.add_argument("--iterations", type=int, default=10, help="Runs per page and mode (default: 10)")
    parser.add_argument("--output", "-o", type=Path, help="Also write the measurements as JSON")
    args = parser.parse_args()

    pages = sorted(args.corpus.glob("*.html"))
    if not pages:
        parser.error(f"no .html files in {args.corpus}")

    print(f"html-compressor benchmark, Python {platform.python_version()}, {args.iterations} iterations\n")
    results = [
        measure(path.name, path.read_text(encoding="utf-8"), mode, args.iterations)
        for path in pages
        for mode in MODES
    ]
    print_table(results)

    if args.output is not None:
        args.output.write_text(json.dumps([asdict(m) for m in results], indent=2), encoding="utf-8")
        print(f"\nSaved to {args.output}")


if __name__ == "__main__":
    main()
