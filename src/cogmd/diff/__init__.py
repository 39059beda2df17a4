"""Line-granular diffing against a document's last saved content."""

from .engine import DP_COST_CEILING, EditOp, OpType, apply_ops, compute_lcs, diff_lines
from .hunks import (
    DEFAULT_CONTEXT_LINES,
    DiffHunk,
    HunkLine,
    LineKind,
    build_hunks,
    compute_unified_diff,
    split_lines,
)
from .render import NO_CHANGES_MESSAGE, format_unified, render_hunks_html, summarize_hunks

__all__ = [
    "DEFAULT_CONTEXT_LINES",
    "DP_COST_CEILING",
    "DiffHunk",
    "EditOp",
    "HunkLine",
    "LineKind",
    "NO_CHANGES_MESSAGE",
    "OpType",
    "apply_ops",
    "build_hunks",
    "compute_lcs",
    "compute_unified_diff",
    "diff_lines",
    "format_unified",
    "render_hunks_html",
    "split_lines",
    "summarize_hunks",
]
