"""Preview session: the collaborator-facing coordinator.

One ``PreviewSession`` sits between a read-only preview and an editable
rich-text document. It runs the selection pipeline (extract -> resolve ->
highlight) when a selection gesture ends, keeps the search markup in step
with the preview, and debounces user edits before committing them.

Expected failures land on the ``error`` channel as ``ErrorMessage`` values.
Host failures (selection primitive or editor misbehaving) are logged and the
gesture is dropped.
"""

# Pattern: Imperative Shell

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from previewsync.config import get_settings
from previewsync.editor.highlight import SelectionHighlighter
from previewsync.editor.resolver import resolve_position
from previewsync.errors import EditorNotMountedError
from previewsync.models import EditorRange, ErrorKind, ErrorMessage
from previewsync.preview.extractor import extract_from_source
from previewsync.preview.search import SearchHighlighter
from previewsync.scheduling import Debouncer, LoopScheduler

if TYPE_CHECKING:
    from collections.abc import Callable

    from previewsync.config import Settings
    from previewsync.editor.protocol import RichTextDocument
    from previewsync.models import SearchResult, SelectionDescriptor
    from previewsync.preview.document import PreviewDocument
    from previewsync.preview.sanitiser import HtmlSanitiser
    from previewsync.preview.search import MatchPresenter
    from previewsync.preview.selection import TextSelectionSource
    from previewsync.scheduling import Scheduler

logger = logging.getLogger(__name__)

# Editor change sources; only user edits are committed
USER_SOURCE = "user"


class PreviewSession:
    """Selection echo, search and commit wiring for one preview/editor pair.

    Args:
        editor: The editable rich-text document.
        sanitiser: Allow-list sanitiser for preview markup.
        settings: Configuration; defaults to ``get_settings()``.
        scheduler: Paint-tick and debounce scheduler; defaults to the
            running asyncio loop.
        commit: Called with the editor HTML once edits settle.
        presenter: Live view of search markers, if the host has one.
    """

    def __init__(
        self,
        editor: RichTextDocument,
        sanitiser: HtmlSanitiser,
        *,
        settings: Settings | None = None,
        scheduler: Scheduler | None = None,
        commit: Callable[[str], None] | None = None,
        presenter: MatchPresenter | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        scheduler = scheduler or LoopScheduler()
        highlight = self._settings.highlight

        self._editor = editor
        self._sanitiser = sanitiser
        self._policy = self._settings.sanitiser_policy()
        self._commit_callback = commit
        self._highlighter = SelectionHighlighter(
            editor,
            scheduler,
            format_name=highlight.format_name,
            color=highlight.selection_color,
            paint_tick=self._settings.editor.paint_tick_ms / 1000,
        )
        self._search = SearchHighlighter(
            sanitiser,
            self._policy,
            marker=highlight.marker(),
            match_color=highlight.match_color,
            current_match_color=highlight.current_match_color,
            presenter=presenter,
        )
        self._debouncer = Debouncer(
            self._settings.editor.commit_debounce_ms / 1000, self._commit, scheduler
        )
        self._preview_html = ""
        self._error: ErrorMessage | None = None
        self._gesture_ignored = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def error(self) -> ErrorMessage | None:
        return self._error

    @property
    def preview_html(self) -> str:
        """Sanitised preview markup, without search markers."""
        return self._preview_html

    @property
    def displayed_html(self) -> str:
        """Markup the preview shows: search markup when a term is active."""
        return self._search.result.html or self._preview_html

    @property
    def search(self) -> SearchHighlighter:
        return self._search

    @property
    def highlighter(self) -> SelectionHighlighter:
        return self._highlighter

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    def render_preview(self, html: str) -> str:
        """Sanitise editor HTML into the preview and re-run the current search."""
        self._preview_html = self._sanitiser.sanitise(html, self._policy)
        self._search.update(self._preview_html, self._search.term)
        return self._preview_html

    # ------------------------------------------------------------------
    # Selection pipeline
    # ------------------------------------------------------------------

    def begin_selection(self, target_tag: str | None = None) -> bool:
        """Start a selection gesture.

        Presses on form controls and images are ignored and leave the error
        channel untouched.

        Returns:
            True if the gesture was accepted.
        """
        ignored = self._settings.selection.ignored_start_tags
        self._gesture_ignored = bool(target_tag) and target_tag.lower() in ignored
        if self._gesture_ignored:
            logger.debug("[SESSION] press on <%s> ignored", target_tag)
            return False
        self._error = None
        return True

    def end_selection(
        self, source: TextSelectionSource, document: PreviewDocument
    ) -> EditorRange | ErrorMessage | None:
        """Finish a selection gesture: extract, resolve, highlight.

        The host selection is cleared afterwards.

        Returns:
            The highlighted range, the error reported, or None when the
            gesture was ignored or the host failed.
        """
        if self._gesture_ignored:
            self._gesture_ignored = False
            return None

        outcome: EditorRange | ErrorMessage | None = None
        try:
            extracted = extract_from_source(
                source, document, self._settings.selection.block_tags
            )
            if isinstance(extracted, ErrorMessage):
                self._error = extracted
                outcome = extracted
            else:
                outcome = self.on_selection_resolved(extracted)
        except Exception:
            logger.warning("[SESSION] selection gesture failed", exc_info=True)
            outcome = None

        try:
            source.clear()
        except Exception:
            logger.warning("[SESSION] could not clear host selection", exc_info=True)
        return outcome

    def on_selection_resolved(
        self, descriptor: SelectionDescriptor
    ) -> EditorRange | ErrorMessage:
        """Locate *descriptor* in the editor and highlight it there."""
        try:
            full_text = self._editor.get_text()
        except EditorNotMountedError:
            logger.warning("[SESSION] editor not mounted; selection dropped")
            self._error = ErrorMessage.of(ErrorKind.MAPPING_FAILED)
            return self._error
        except Exception:
            logger.warning("[SESSION] could not read editor text", exc_info=True)
            self._error = ErrorMessage.of(ErrorKind.MAPPING_FAILED)
            return self._error

        result = resolve_position(
            descriptor, full_text, prefix_fallback=self._settings.resolver.fallback()
        )
        if isinstance(result, ErrorMessage):
            self._error = result
            return result

        self._error = None
        self._highlighter.apply(result)
        return result

    def clear_selection(self) -> None:
        self._highlighter.clear()

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def on_search_term_changed(self, term: str) -> SearchResult:
        return self._search.update(self._preview_html, term)

    def next_match(self) -> int:
        return self._search.next()

    def previous_match(self) -> int:
        return self._search.previous()

    def search_status(self) -> str:
        return self._search.status()

    def handle_search_key(self, key: str, *, shift: bool = False) -> bool:
        return self._search.handle_key(key, shift=shift)

    # ------------------------------------------------------------------
    # Editor commits
    # ------------------------------------------------------------------

    def on_editor_change(self, html: str, source: str = USER_SOURCE) -> bool:
        """Queue a commit for a user edit.

        Returns:
            True if the change was queued; programmatic changes are not.
        """
        if source != USER_SOURCE:
            logger.debug("[SESSION] ignoring %s-originated change", source)
            return False
        self._debouncer(html)
        return True

    def flush(self) -> bool:
        """Commit a pending edit immediately."""
        return self._debouncer.flush()

    def _commit(self, html: str) -> None:
        self.render_preview(html)
        if self._commit_callback is not None:
            self._commit_callback(html)
