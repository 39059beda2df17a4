"""Group raw edit scripts into context-padded hunks."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from .engine import DP_COST_CEILING, EditOp, OpType, diff_lines

__all__ = [
    "DEFAULT_CONTEXT_LINES",
    "DiffHunk",
    "HunkLine",
    "LineKind",
    "build_hunks",
    "change_ranges",
    "compute_unified_diff",
    "split_lines",
]

DEFAULT_CONTEXT_LINES = 3


class LineKind(Enum):
    CONTEXT = "context"
    ADD = "add"
    REMOVE = "remove"


@dataclass(slots=True, frozen=True)
class HunkLine:
    """One rendered row of a hunk with 1-based line numbers."""

    kind: LineKind
    text: str
    old_line: int | None = None
    new_line: int | None = None


@dataclass(slots=True)
class DiffHunk:
    """Contiguous block of changes plus surrounding context."""

    old_start: int
    new_start: int
    lines: list[HunkLine] = field(default_factory=list)

    @property
    def old_count(self) -> int:
        return sum(1 for line in self.lines if line.old_line is not None)

    @property
    def new_count(self) -> int:
        return sum(1 for line in self.lines if line.new_line is not None)


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only; a trailing newline yields a trailing empty line."""

    return (text or "").split("\n")


def compute_unified_diff(
    old_text: str,
    new_text: str,
    context_lines: int = DEFAULT_CONTEXT_LINES,
    *,
    cost_ceiling: int = DP_COST_CEILING,
) -> list[DiffHunk]:
    """Diff two texts line by line and return context-padded hunks."""

    old_lines = split_lines(old_text)
    new_lines = split_lines(new_text)
    ops = diff_lines(old_lines, new_lines, cost_ceiling=cost_ceiling)
    return build_hunks(ops, old_lines, new_lines, context_lines)


def change_ranges(ops: Sequence[EditOp]) -> list[tuple[int, int]]:
    """Return inclusive ``(start, end)`` op-index ranges of maximal non-equal runs."""

    ranges: list[tuple[int, int]] = []
    index = 0
    total = len(ops)
    while index < total:
        if ops[index].type is OpType.EQUAL:
            index += 1
            continue
        start = index
        while index < total and ops[index].type is not OpType.EQUAL:
            index += 1
        ranges.append((start, index - 1))
    return ranges


def build_hunks(
    ops: Sequence[EditOp],
    old_lines: Sequence[str],
    new_lines: Sequence[str],
    context_lines: int = DEFAULT_CONTEXT_LINES,
) -> list[DiffHunk]:
    """Expand change runs by ``context_lines`` and merge touching ranges."""

    changes = change_ranges(ops)
    if not changes:
        return []

    context = max(0, int(context_lines))
    last_op = len(ops) - 1
    merged: list[list[int]] = []
    for start, end in changes:
        expanded_start = max(0, start - context)
        expanded_end = min(last_op, end + context)
        if merged and expanded_start <= merged[-1][1] + 1:
            merged[-1][1] = max(merged[-1][1], expanded_end)
        else:
            merged.append([expanded_start, expanded_end])

    return [_build_hunk(ops, old_lines, new_lines, start, end) for start, end in merged]


def _build_hunk(
    ops: Sequence[EditOp],
    old_lines: Sequence[str],
    new_lines: Sequence[str],
    start: int,
    end: int,
) -> DiffHunk:
    lines: list[HunkLine] = []
    for op in ops[start : end + 1]:
        if op.type is OpType.EQUAL:
            assert op.old_index is not None and op.new_index is not None
            lines.append(
                HunkLine(
                    LineKind.CONTEXT,
                    old_lines[op.old_index],
                    old_line=op.old_index + 1,
                    new_line=op.new_index + 1,
                )
            )
        elif op.type is OpType.DELETE:
            assert op.old_index is not None
            lines.append(HunkLine(LineKind.REMOVE, old_lines[op.old_index], old_line=op.old_index + 1))
        else:
            assert op.new_index is not None
            lines.append(HunkLine(LineKind.ADD, new_lines[op.new_index], new_line=op.new_index + 1))

    old_start = _first_index(ops, start, end, "old_index")
    new_start = _first_index(ops, start, end, "new_index")
    return DiffHunk(
        old_start=old_start + 1 if old_start is not None else len(old_lines) + 1,
        new_start=new_start + 1 if new_start is not None else len(new_lines) + 1,
        lines=lines,
    )


def _first_index(ops: Sequence[EditOp], start: int, end: int, attribute: str) -> int | None:
    for op in ops[start : end + 1]:
        value = getattr(op, attribute)
        if value is not None:
            return value
    return None
