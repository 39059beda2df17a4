"""Line-level diff engine producing dense edit scripts.

Small inputs are aligned with a full longest-common-subsequence table, which
yields a minimal edit script. Inputs whose table would exceed
:data:`DP_COST_CEILING` cells fall back to a linear greedy alignment that may
miss common lines but never produces a non-monotonic alignment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Sequence

__all__ = [
    "DP_COST_CEILING",
    "EditOp",
    "OpType",
    "compute_lcs",
    "diff_lines",
    "apply_ops",
]

LOGGER = logging.getLogger(__name__)

DP_COST_CEILING = 10_000_000


class OpType(Enum):
    """Kinds of edit operations emitted by :func:`diff_lines`."""

    EQUAL = "equal"
    INSERT = "insert"
    DELETE = "delete"


@dataclass(slots=True, frozen=True)
class EditOp:
    """Single step of an edit script.

    ``old_index`` is set for ``equal`` and ``delete`` ops, ``new_index`` for
    ``equal`` and ``insert`` ops. Both are 0-based.
    """

    type: OpType
    old_index: int | None = None
    new_index: int | None = None

    @classmethod
    def equal(cls, old_index: int, new_index: int) -> "EditOp":
        return cls(OpType.EQUAL, old_index, new_index)

    @classmethod
    def delete(cls, old_index: int) -> "EditOp":
        return cls(OpType.DELETE, old_index=old_index)

    @classmethod
    def insert(cls, new_index: int) -> "EditOp":
        return cls(OpType.INSERT, new_index=new_index)


def diff_lines(
    old_lines: Sequence[str],
    new_lines: Sequence[str],
    *,
    cost_ceiling: int = DP_COST_CEILING,
) -> list[EditOp]:
    """Return the edit script turning ``old_lines`` into ``new_lines``."""

    old_len = len(old_lines)
    new_len = len(new_lines)

    if old_len == new_len and all(a == b for a, b in zip(old_lines, new_lines)):
        return [EditOp.equal(index, index) for index in range(old_len)]

    anchors = compute_lcs(old_lines, new_lines, cost_ceiling=cost_ceiling)

    ops: list[EditOp] = []
    old_pos = 0
    new_pos = 0
    for anchor_old, anchor_new in anchors:
        # Deletes come before inserts inside the same gap.
        while old_pos < anchor_old:
            ops.append(EditOp.delete(old_pos))
            old_pos += 1
        while new_pos < anchor_new:
            ops.append(EditOp.insert(new_pos))
            new_pos += 1
        ops.append(EditOp.equal(old_pos, new_pos))
        old_pos += 1
        new_pos += 1
    while old_pos < old_len:
        ops.append(EditOp.delete(old_pos))
        old_pos += 1
    while new_pos < new_len:
        ops.append(EditOp.insert(new_pos))
        new_pos += 1
    return ops


def compute_lcs(
    old_lines: Sequence[str],
    new_lines: Sequence[str],
    *,
    cost_ceiling: int = DP_COST_CEILING,
) -> list[tuple[int, int]]:
    """Return LCS index pairs, strictly increasing in both coordinates."""

    old_len = len(old_lines)
    new_len = len(new_lines)
    if old_len == 0 or new_len == 0:
        return []
    if old_len * new_len > cost_ceiling:
        LOGGER.debug(
            "Diff cost %d x %d exceeds ceiling %d; using greedy alignment",
            old_len,
            new_len,
            cost_ceiling,
        )
        return _greedy_lcs(old_lines, new_lines)

    # A shared prefix/suffix is part of every LCS, so only the middle is aligned.
    prefix = 0
    limit = min(old_len, new_len)
    while prefix < limit and old_lines[prefix] == new_lines[prefix]:
        prefix += 1
    suffix = 0
    while (
        suffix < limit - prefix
        and old_lines[old_len - 1 - suffix] == new_lines[new_len - 1 - suffix]
    ):
        suffix += 1

    old_middle = old_lines[prefix : old_len - suffix]
    new_middle = new_lines[prefix : new_len - suffix]
    middle = _table_lcs(old_middle, new_middle) if old_middle and new_middle else []

    pairs = [(index, index) for index in range(prefix)]
    pairs.extend((old_index + prefix, new_index + prefix) for old_index, new_index in middle)
    pairs.extend((old_len - suffix + offset, new_len - suffix + offset) for offset in range(suffix))
    return pairs


def apply_ops(ops: Sequence[EditOp], old_lines: Sequence[str], new_lines: Sequence[str]) -> list[str]:
    """Replay ``ops`` against ``old_lines`` and return the resulting sequence.

    Inserted lines are looked up in ``new_lines``; deleted lines are checked
    against ``old_lines`` so a malformed script fails loudly.
    """

    result: list[str] = []
    cursor = 0
    for op in ops:
        if op.type is OpType.EQUAL:
            if op.old_index != cursor:
                raise ValueError(f"Edit script skipped old line {cursor}")
            result.append(old_lines[cursor])
            cursor += 1
        elif op.type is OpType.DELETE:
            if op.old_index != cursor:
                raise ValueError(f"Edit script skipped old line {cursor}")
            cursor += 1
        else:
            assert op.new_index is not None
            result.append(new_lines[op.new_index])
    if cursor != len(old_lines):
        raise ValueError("Edit script did not consume every old line")
    return result


def _table_lcs(old_lines: Sequence[str], new_lines: Sequence[str]) -> list[tuple[int, int]]:
    old_len = len(old_lines)
    new_len = len(new_lines)
    table: List[List[int]] = [[0] * (new_len + 1) for _ in range(old_len + 1)]

    for i in range(1, old_len + 1):
        previous_row = table[i - 1]
        row = table[i]
        old_line = old_lines[i - 1]
        for j in range(1, new_len + 1):
            if old_line == new_lines[j - 1]:
                row[j] = previous_row[j - 1] + 1
            else:
                up = previous_row[j]
                left = row[j - 1]
                row[j] = up if up >= left else left

    pairs: list[tuple[int, int]] = []
    i, j = old_len, new_len
    while i > 0 and j > 0:
        if old_lines[i - 1] == new_lines[j - 1]:
            pairs.append((i - 1, j - 1))
            i -= 1
            j -= 1
        elif table[i - 1][j] >= table[i][j - 1]:
            i -= 1
        else:
            j -= 1
    pairs.reverse()
    return pairs


def _greedy_lcs(old_lines: Sequence[str], new_lines: Sequence[str]) -> list[tuple[int, int]]:
    positions: Dict[str, list[int]] = {}
    for index, line in enumerate(new_lines):
        positions.setdefault(line, []).append(index)

    # Per-line cursor into its position list; positions only ever move forward.
    cursors: Dict[str, int] = {}
    pairs: list[tuple[int, int]] = []
    last_new = -1
    for old_index, line in enumerate(old_lines):
        candidates = positions.get(line)
        if not candidates:
            continue
        cursor = cursors.get(line, 0)
        while cursor < len(candidates) and candidates[cursor] <= last_new:
            cursor += 1
        cursors[line] = cursor
        if cursor == len(candidates):
            continue
        last_new = candidates[cursor]
        cursors[line] = cursor + 1
        pairs.append((old_index, last_new))
    return pairs
