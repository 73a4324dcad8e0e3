"""Tests for the previewsync CLI: argument parsing and subcommand output.

Subcommands are called directly with a Console writing to a StringIO so the
rich output can be asserted on.
"""

from __future__ import annotations

from io import StringIO
from typing import TYPE_CHECKING

import pytest
from rich.console import Console

from previewsync.cli import _build_parser, _cmd_locate, _cmd_search
from tests.conftest import EDITOR_TEXT, PREVIEW_HTML

if TYPE_CHECKING:
    from pathlib import Path

    from previewsync.config import Settings


def _console() -> tuple[Console, StringIO]:
    buf = StringIO()
    return Console(file=buf, width=400, no_color=True), buf


@pytest.fixture
def preview_file(tmp_path: Path) -> Path:
    path = tmp_path / "preview.html"
    path.write_text(PREVIEW_HTML, encoding="utf-8")
    return path


@pytest.fixture
def editor_file(tmp_path: Path) -> Path:
    path = tmp_path / "editor.txt"
    path.write_text(EDITOR_TEXT, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Parser tests
# ---------------------------------------------------------------------------


class TestParser:
    """Parser recognises both subcommands and their options."""

    def test_search_defaults(self) -> None:
        args = _build_parser().parse_args(["search", "page.html", "hello"])
        assert args.command == "search"
        assert args.term == "hello"
        assert args.current == 1
        assert args.html is False
        assert args.verbose is False

    def test_search_options(self) -> None:
        args = _build_parser().parse_args(
            ["-v", "search", "page.html", "hello", "--current", "2", "--html"]
        )
        assert args.verbose is True
        assert args.current == 2
        assert args.html is True

    def test_locate(self) -> None:
        args = _build_parser().parse_args(
            ["locate", "page.html", "editor.txt", "there", "--nth", "1"]
        )
        assert args.command == "locate"
        assert args.needle == "there"
        assert args.nth == 1
        assert args.editor_text.name == "editor.txt"

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args([])

    def test_locate_requires_needle(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["locate", "page.html", "editor.txt"])


# ---------------------------------------------------------------------------
# search
# ---------------------------------------------------------------------------


class TestSearchCommand:
    """The search subcommand."""

    def test_lists_matches(self, preview_file: Path, settings: Settings) -> None:
        """Both hits are listed and the first is current."""
        con, buf = _console()
        code = _cmd_search(preview_file, "hello", settings=settings, console=con)
        out = buf.getvalue()
        assert code == 0
        assert "Matches for 'hello'" in out
        assert out.count("Hello") == 2
        assert "Match 1 / 2" in out

    def test_current_option(self, preview_file: Path, settings: Settings) -> None:
        """--current moves the current match."""
        con, buf = _console()
        _cmd_search(preview_file, "hello", current=2, settings=settings, console=con)
        assert "Match 2 / 2" in buf.getvalue()

    def test_show_html(self, preview_file: Path, settings: Settings) -> None:
        """--html prints the styled markup."""
        con, buf = _console()
        _cmd_search(
            preview_file, "there", show_html=True, settings=settings, console=con
        )
        out = buf.getvalue()
        assert 'class="search-highlight"' in out
        assert "background-color: #ADD8E6" in out

    def test_no_matches(self, preview_file: Path, settings: Settings) -> None:
        """A term with no hits reports it and exits cleanly."""
        con, buf = _console()
        code = _cmd_search(preview_file, "absent", settings=settings, console=con)
        out = buf.getvalue()
        assert code == 0
        assert "No matches for 'absent'" in out
        assert "Match 0 / 0" in out

    def test_missing_file(self, tmp_path: Path, settings: Settings) -> None:
        """An unreadable file is an error."""
        con, buf = _console()
        code = _cmd_search(
            tmp_path / "nope.html", "x", settings=settings, console=con
        )
        assert code == 1
        assert "cannot read" in buf.getvalue()


# ---------------------------------------------------------------------------
# locate
# ---------------------------------------------------------------------------


class TestLocateCommand:
    """The locate subcommand."""

    def test_locates_second_sentence(
        self, preview_file: Path, editor_file: Path, settings: Settings
    ) -> None:
        """Selecting "there" in the preview locates index 19 in the editor."""
        con, buf = _console()
        code = _cmd_locate(
            preview_file, editor_file, "there", settings=settings, console=con
        )
        out = buf.getvalue()
        assert code == 0
        assert "index=19 length=5" in out
        assert "'there'" in out

    def test_nth_occurrence(
        self, preview_file: Path, editor_file: Path, settings: Settings
    ) -> None:
        """--nth picks a later occurrence of the needle."""
        con, buf = _console()
        code = _cmd_locate(
            preview_file, editor_file, "Hello", nth=1, settings=settings, console=con
        )
        assert code == 0
        assert "index=13 length=5" in buf.getvalue()

    def test_needle_not_in_preview(
        self, preview_file: Path, editor_file: Path, settings: Settings
    ) -> None:
        """A needle the preview does not contain is an error."""
        con, buf = _console()
        code = _cmd_locate(
            preview_file, editor_file, "absent", settings=settings, console=con
        )
        assert code == 1
        assert "not in preview" in buf.getvalue()

    def test_diverged_editor(
        self, preview_file: Path, tmp_path: Path, settings: Settings
    ) -> None:
        """Editor text without the block reports the mapping failure."""
        editor_file = tmp_path / "other.txt"
        editor_file.write_text("Unrelated content.", encoding="utf-8")
        con, buf = _console()
        code = _cmd_locate(
            preview_file, editor_file, "there", settings=settings, console=con
        )
        out = buf.getvalue()
        assert code == 1
        assert "mapping_failed" in out
        assert "could not be located" in out

    def test_missing_editor_file(
        self, preview_file: Path, tmp_path: Path, settings: Settings
    ) -> None:
        """An unreadable editor file is an error."""
        con, _buf = _console()
        code = _cmd_locate(
            preview_file, tmp_path / "nope.txt", "there", settings=settings, console=con
        )
        assert code == 1
