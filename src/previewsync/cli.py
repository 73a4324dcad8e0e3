"""Command-line entry point: run the search and selection pipelines on files.

Usage::

    previewsync search page.html "term" --current 2
    previewsync locate page.html editor.txt "needle" --nth 1
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from previewsync import configure_logging
from previewsync.config import Settings, get_settings
from previewsync.editor.memory import InMemoryRichTextDocument
from previewsync.models import EditorRange, ErrorMessage
from previewsync.preview.document import PreviewDocument
from previewsync.preview.sanitiser import BleachSanitiser
from previewsync.preview.search import SearchHighlighter
from previewsync.preview.selection import DocumentSelection
from previewsync.scheduling import ImmediateScheduler
from previewsync.session import PreviewSession

logger = logging.getLogger(__name__)

console = Console()


def _read(path: Path, con: Console) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        con.print(f"[red]Error:[/] cannot read {path}: {exc.strerror}")
        return None


def _cmd_search(
    path: Path,
    term: str,
    *,
    current: int = 1,
    show_html: bool = False,
    settings: Settings | None = None,
    console: Console | None = None,
) -> int:
    """Highlight *term* in an HTML file and print the matches."""
    con = console or globals()["console"]
    settings = settings or get_settings()
    html = _read(path, con)
    if html is None:
        return 1

    sanitiser = BleachSanitiser()
    policy = settings.sanitiser_policy()
    highlight = settings.highlight
    search = SearchHighlighter(
        sanitiser,
        policy,
        marker=highlight.marker(),
        match_color=highlight.match_color,
        current_match_color=highlight.current_match_color,
    )
    result = search.update(sanitiser.sanitise(html, policy), term)

    if not result.matches:
        con.print(f"[yellow]No matches for[/] {term!r}")
        con.print(f"Match {search.status()}")
        return 0

    for _ in range(max(current, 1) - 1):
        search.next()

    table = Table(title=f"Matches for {term!r}")
    table.add_column("#", justify="right")
    table.add_column("Text", style="cyan")
    table.add_column("Current")
    for handle in result.matches:
        is_current = handle.ordinal == search.current_index
        table.add_row(
            str(handle.ordinal + 1),
            handle.text,
            "[green]Yes[/]" if is_current else "",
        )
    con.print(table)
    con.print(f"Match {search.status()}")
    if show_html:
        con.print(search.styled_html(), markup=False, highlight=False)
    return 0


def _cmd_locate(
    path: Path,
    editor_path: Path,
    needle: str,
    *,
    nth: int = 0,
    settings: Settings | None = None,
    console: Console | None = None,
) -> int:
    """Select *needle* in the preview and locate it in the editor text."""
    con = console or globals()["console"]
    settings = settings or get_settings()
    html = _read(path, con)
    editor_text = _read(editor_path, con)
    if html is None or editor_text is None:
        return 1

    editor = InMemoryRichTextDocument(editor_text)
    session = PreviewSession(
        editor,
        BleachSanitiser(),
        settings=settings,
        scheduler=ImmediateScheduler(),
    )
    session.render_preview(html)
    document = PreviewDocument.from_html(session.displayed_html)
    selection = DocumentSelection(document)
    if selection.select_text(needle, nth) is None:
        con.print(f"[red]Error:[/] occurrence {nth} of {needle!r} not in preview")
        return 1

    session.begin_selection()
    outcome = session.end_selection(selection, document)
    if isinstance(outcome, EditorRange):
        span = editor.get_text()[outcome.index : outcome.end]
        con.print(
            f"[green]Located[/] index={outcome.index} length={outcome.length}",
            highlight=False,
        )
        con.print(f"  {span!r}", markup=False, highlight=False)
        return 0
    if isinstance(outcome, ErrorMessage):
        text = outcome.text or "Nothing selected."
        con.print(f"[red]{outcome.kind}:[/] {text}")
        return 1
    con.print("[red]Error:[/] selection could not be processed")
    return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build argparse parser for the previewsync subcommands."""
    parser = argparse.ArgumentParser(
        prog="previewsync",
        description="Search a preview or map a preview selection onto editor text.",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log debug output to console"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # search
    search_p = sub.add_parser("search", help="Highlight a term in an HTML file")
    search_p.add_argument("file", type=Path, help="Preview HTML file")
    search_p.add_argument("term", help="Search term")
    search_p.add_argument(
        "--current", type=int, default=1, help="1-based current match (default: 1)"
    )
    search_p.add_argument(
        "--html", action="store_true", help="Print the styled HTML as well"
    )

    # locate
    locate_p = sub.add_parser(
        "locate", help="Locate a preview selection in editor text"
    )
    locate_p.add_argument("file", type=Path, help="Preview HTML file")
    locate_p.add_argument("editor_text", type=Path, help="Editor plain-text file")
    locate_p.add_argument("needle", help="Text to select in the preview")
    locate_p.add_argument(
        "--nth", type=int, default=0, help="0-based occurrence to select (default: 0)"
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ``previewsync`` console script."""
    args = _build_parser().parse_args(sys.argv[1:] if argv is None else argv)
    settings = get_settings()
    level = "DEBUG" if args.verbose else settings.app.log_level
    configure_logging(settings.app.log_dir, level)

    match args.command:
        case "search":
            code = _cmd_search(
                args.file,
                args.term,
                current=args.current,
                show_html=args.html,
                settings=settings,
            )
        case "locate":
            code = _cmd_locate(
                args.file,
                args.editor_text,
                args.needle,
                nth=args.nth,
                settings=settings,
            )
        case _:
            code = 2
    sys.exit(code)
