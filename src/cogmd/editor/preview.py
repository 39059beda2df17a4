"""Markdown preview rendering helpers."""

from __future__ import annotations

import html
from dataclasses import dataclass

from markdown_it import MarkdownIt

__all__ = [
    "LARGE_FILE_NOTICE",
    "LARGE_FILE_THRESHOLD",
    "MarkdownPreview",
    "document_size_bytes",
    "is_large_document",
    "large_file_notice_html",
    "render_preview",
]

LARGE_FILE_THRESHOLD = 200 * 1024
LARGE_FILE_NOTICE = "Large file - preview paused (use Refresh Preview to render)"

_MARKDOWN_RENDERER: MarkdownIt | None = None


@dataclass(slots=True)
class MarkdownPreview:
    """Rendered preview HTML."""

    html: str


def document_size_bytes(text: str) -> int:
    return len((text or "").encode("utf-8"))


def is_large_document(text: str, threshold: int = LARGE_FILE_THRESHOLD) -> bool:
    return document_size_bytes(text) > threshold


def render_preview(text: str) -> MarkdownPreview:
    """Render Markdown ``text`` into HTML with ``markdown-it-py``."""

    rendered = _build_renderer().render(text or "")
    return MarkdownPreview(html=f'<div class="cogmd-preview">{rendered}</div>')


def large_file_notice_html() -> str:
    return f'<p class="cogmd-large-file"><i>{html.escape(LARGE_FILE_NOTICE)}</i></p>'


def _build_renderer() -> MarkdownIt:
    global _MARKDOWN_RENDERER
    if _MARKDOWN_RENDERER is None:
        renderer = MarkdownIt("commonmark", {"html": False, "typographer": True})
        renderer.enable("table")
        renderer.enable("strikethrough")
        # Setext headings turn a "---" under a paragraph into a heading.
        renderer.disable("lheading")
        _MARKDOWN_RENDERER = renderer
    return _MARKDOWN_RENDERER
