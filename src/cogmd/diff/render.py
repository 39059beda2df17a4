"""Presentation helpers that turn hunks into unified text or HTML."""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Sequence

from .hunks import DiffHunk, LineKind

__all__ = [
    "NO_CHANGES_MESSAGE",
    "DiffSummary",
    "format_unified",
    "hunk_header",
    "render_hunks_html",
    "summarize_hunks",
]

NO_CHANGES_MESSAGE = "No changes since last save"
_PREFIXES = {LineKind.CONTEXT: " ", LineKind.ADD: "+", LineKind.REMOVE: "-"}
_CSS_CLASSES = {LineKind.CONTEXT: "diff-context", LineKind.ADD: "diff-add", LineKind.REMOVE: "diff-remove"}


@dataclass(slots=True, frozen=True)
class DiffSummary:
    """Aggregate counts for a list of hunks."""

    hunks: int
    added: int
    removed: int

    def describe(self) -> str:
        if not self.hunks:
            return NO_CHANGES_MESSAGE
        return f"{self.hunks} hunk(s), +{self.added} -{self.removed}"


def summarize_hunks(hunks: Sequence[DiffHunk]) -> DiffSummary:
    added = 0
    removed = 0
    for hunk in hunks:
        for line in hunk.lines:
            if line.kind is LineKind.ADD:
                added += 1
            elif line.kind is LineKind.REMOVE:
                removed += 1
    return DiffSummary(hunks=len(hunks), added=added, removed=removed)


def hunk_header(hunk: DiffHunk) -> str:
    return f"@@ -{hunk.old_start},{hunk.old_count} +{hunk.new_start},{hunk.new_count} @@"


def format_unified(
    hunks: Sequence[DiffHunk],
    *,
    filename: str | None = None,
) -> str:
    """Return a unified-diff string; empty when there are no hunks."""

    if not hunks:
        return ""
    name = filename.strip() if isinstance(filename, str) and filename.strip() else "document.md"
    output = [f"--- a/{name}", f"+++ b/{name}"]
    for hunk in hunks:
        output.append(hunk_header(hunk))
        output.extend(f"{_PREFIXES[line.kind]}{line.text}" for line in hunk.lines)
    return "\n".join(output)


def render_hunks_html(hunks: Sequence[DiffHunk]) -> str:
    """Render hunks as a self-contained HTML table for the diff pane."""

    if not hunks:
        return f'<p class="diff-empty"><i>{html.escape(NO_CHANGES_MESSAGE)}</i></p>'

    rows: list[str] = []
    for hunk in hunks:
        rows.append(
            '<tr class="diff-header"><td colspan="4">'
            f"{html.escape(hunk_header(hunk))}</td></tr>"
        )
        for line in hunk.lines:
            old_no = "" if line.old_line is None else str(line.old_line)
            new_no = "" if line.new_line is None else str(line.new_line)
            rows.append(
                f'<tr class="{_CSS_CLASSES[line.kind]}">'
                f'<td class="ln">{old_no}</td><td class="ln">{new_no}</td>'
                f"<td>{_PREFIXES[line.kind]}</td>"
                f"<td><pre>{html.escape(line.text)}</pre></td></tr>"
            )
    return '<table class="diff" cellspacing="0">' + "".join(rows) + "</table>"
