"""Unit tests for :mod:`cogmd.utils.file_io`."""

from __future__ import annotations

import codecs
from pathlib import Path

import pytest

from cogmd.utils.file_io import is_markdown_path, read_text, write_text


class TestReadText:
    """Decoding documents from disk."""

    def test_plain_utf8(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.md"
        path.write_bytes("héllo\n".encode("utf-8"))

        assert read_text(path) == "héllo\n"

    @pytest.mark.parametrize(
        ("bom", "encoding"),
        [
            (codecs.BOM_UTF8, "utf-8"),
            (codecs.BOM_UTF16_LE, "utf-16-le"),
            (codecs.BOM_UTF16_BE, "utf-16-be"),
            (codecs.BOM_UTF32_LE, "utf-32-le"),
        ],
    )
    def test_byte_order_marks_are_detected_and_stripped(self, tmp_path: Path, bom: bytes, encoding: str) -> None:
        path = tmp_path / "doc.md"
        path.write_bytes(bom + "# Título".encode(encoding))

        assert read_text(path) == "# Título"

    def test_line_endings_are_normalized(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.md"
        path.write_bytes(b"a\r\nb\rc\n")

        assert read_text(path) == "a\nb\nc\n"

    def test_non_utf8_falls_back(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.md"
        path.write_bytes("caf\xe9".encode("latin-1"))

        assert read_text(path).startswith("caf")

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            read_text(tmp_path / "missing.md")


class TestWriteText:
    def test_creates_parents_and_replaces_atomically(self, tmp_path: Path) -> None:
        target = tmp_path / "deep" / "doc.md"

        write_text(target, "one\r\ntwo")
        write_text(target, "three\n")

        assert target.read_bytes() == b"three\n"
        assert [entry.name for entry in target.parent.iterdir()] == ["doc.md"]

    def test_normalizes_line_endings(self, tmp_path: Path) -> None:
        target = tmp_path / "doc.md"

        write_text(target, "a\r\nb")

        assert target.read_bytes() == b"a\nb"


@pytest.mark.parametrize(
    ("name", "expected"),
    [("a.md", True), ("b.MARKDOWN", True), ("c.txt", True), ("d.py", False), ("noext", False)],
)
def test_is_markdown_path(name: str, expected: bool) -> None:
    assert is_markdown_path(name) is expected
