"""Benchmark helper for diff and preview latency on large documents."""
from __future__ import annotations

import argparse
import json
import random
import statistics
from dataclasses import dataclass
from pathlib import Path
from time import perf_counter
from typing import Iterable, Sequence

from cogmd.diff.engine import DP_COST_CEILING
from cogmd.diff.hunks import compute_unified_diff, split_lines
from cogmd.diff.render import format_unified, summarize_hunks
from cogmd.editor.preview import document_size_bytes, is_large_document, render_preview
from cogmd.utils.file_io import read_text


@dataclass(slots=True)
class BenchmarkResult:
    label: str
    lines: int
    size_bytes: int
    hunks: int
    diff_chars: int
    greedy: bool
    diff_ms: float
    preview_ms: float | None

    @property
    def size_kb(self) -> float:
        return self.size_bytes / 1024


def _synthetic_document(line_count: int, *, seed: int = 7) -> str:
    rng = random.Random(seed)
    words = ("alpha", "beta", "gamma", "delta", "edit", "preview", "session", "tab", "diff", "hunk")
    lines: list[str] = []
    for index in range(line_count):
        if index % 40 == 0:
            lines.append(f"## Section {index // 40}")
        elif index % 7 == 0:
            lines.append("")
        else:
            lines.append(" ".join(rng.choice(words) for _ in range(rng.randint(4, 14))))
    return "\n".join(lines)


def _default_cases() -> Sequence[tuple[str, str]]:
    return (
        ("500 lines", _synthetic_document(500)),
        ("3k lines", _synthetic_document(3_000)),
        ("12k lines", _synthetic_document(12_000)),
    )


def _mutate_text(text: str, *, edits: int, seed: int = 11) -> str:
    rng = random.Random(seed)
    lines = split_lines(text)
    for _ in range(edits):
        if not lines:
            break
        index = rng.randrange(len(lines))
        action = rng.choice(("replace", "insert", "delete"))
        if action == "replace":
            lines[index] = lines[index].replace("a", "A") + " (edited)"
        elif action == "insert":
            lines.insert(index, "inserted line")
        else:
            del lines[index]
    return "\n".join(lines)


def _timed(func, repeat: int) -> tuple[float, object]:
    samples: list[float] = []
    result: object = None
    for _ in range(max(1, repeat)):
        start = perf_counter()
        result = func()
        samples.append((perf_counter() - start) * 1000)
    return statistics.median(samples), result


def run_benchmarks(
    cases: Iterable[tuple[str, str]],
    *,
    context_lines: int,
    edits: int,
    repeat: int,
    cost_ceiling: int,
) -> list[BenchmarkResult]:
    results: list[BenchmarkResult] = []
    for label, text in cases:
        updated = _mutate_text(text, edits=edits)
        old_count = len(split_lines(text))
        new_count = len(split_lines(updated))
        diff_ms, hunks = _timed(
            lambda: compute_unified_diff(text, updated, context_lines, cost_ceiling=cost_ceiling),
            repeat,
        )
        preview_ms: float | None = None
        if not is_large_document(updated):
            preview_ms, _ = _timed(lambda: render_preview(updated), repeat)
        summary = summarize_hunks(hunks)  # type: ignore[arg-type]
        results.append(
            BenchmarkResult(
                label=label,
                lines=old_count,
                size_bytes=document_size_bytes(text),
                hunks=summary.hunks,
                diff_chars=len(format_unified(hunks)),  # type: ignore[arg-type]
                # Prefix/suffix trimming can keep the table path below the ceiling.
                greedy=old_count * new_count > cost_ceiling,
                diff_ms=diff_ms,
                preview_ms=preview_ms,
            )
        )
    return results


def main() -> None:
    parser = argparse.ArgumentParser(description="Measure diff and preview latency on large Markdown documents.")
    parser.add_argument(
        "--case",
        action="append",
        metavar="LABEL=PATH",
        help="Benchmark a file instead of the synthetic documents; can be supplied multiple times.",
    )
    parser.add_argument("--context", type=int, default=3, help="Context lines per hunk.")
    parser.add_argument("--edits", type=int, default=25, help="Random line edits applied to each document.")
    parser.add_argument("--repeat", type=int, default=3, help="Runs per measurement; the median is reported.")
    parser.add_argument(
        "--cost-ceiling",
        type=int,
        default=DP_COST_CEILING,
        help="Table cells allowed before the greedy alignment takes over.",
    )
    parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON results.")
    args = parser.parse_args()

    if args.case:
        cases: list[tuple[str, str]] = []
        for raw in args.case:
            if "=" not in raw:
                parser.error(f"Invalid --case '{raw}'. Expected LABEL=PATH format.")
            label, value = raw.split("=", 1)
            cases.append((label.strip(), read_text(Path(value).expanduser())))
    else:
        cases = list(_default_cases())

    results = run_benchmarks(
        cases,
        context_lines=max(0, args.context),
        edits=max(0, args.edits),
        repeat=args.repeat,
        cost_ceiling=max(0, args.cost_ceiling),
    )

    if args.json:
        payload = [
            {
                "label": result.label,
                "lines": result.lines,
                "size_kb": result.size_kb,
                "hunks": result.hunks,
                "diff_chars": result.diff_chars,
                "greedy": result.greedy,
                "diff_ms": result.diff_ms,
                "preview_ms": result.preview_ms,
            }
            for result in results
        ]
        print(json.dumps(payload, indent=2))
        return

    header = f"{'Case':<16} {'Lines':>8} {'Size (KB)':>10} {'Hunks':>6} {'Diff ms':>9} {'Preview ms':>11}  Path"
    print(header)
    print("-" * len(header))
    for result in results:
        preview = "paused" if result.preview_ms is None else f"{result.preview_ms:.2f}"
        path = "greedy" if result.greedy else "table"
        print(
            f"{result.label:<16} {result.lines:>8} {result.size_kb:>10.1f} {result.hunks:>6} "
            f"{result.diff_ms:>9.2f} {preview:>11}  {path}"
        )


if __name__ == "__main__":
    main()
