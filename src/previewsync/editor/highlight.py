"""Selection echo highlight in the editor.

At most one range is highlighted at a time. Applying a new range retracts
the previous one first, and after formatting the cursor is moved to the
start of the range and the editor focused on the next paint tick.

The editor is a host component that can fail (most often by not being
mounted yet). Those failures are logged and swallowed here so a selection
gesture never breaks the page.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from previewsync.editor.protocol import RichTextDocument
    from previewsync.models import EditorRange
    from previewsync.scheduling import ScheduledCall, Scheduler

logger = logging.getLogger(__name__)


class SelectionHighlighter:
    """Single-slot highlight over a ``RichTextDocument``."""

    def __init__(
        self,
        document: RichTextDocument,
        scheduler: Scheduler,
        *,
        format_name: str = "background",
        color: str = "#ADD8E6",
        paint_tick: float = 0.0,
    ) -> None:
        self._document = document
        self._scheduler = scheduler
        self._format_name = format_name
        self._color = color
        self._paint_tick = paint_tick
        self._tracked: EditorRange | None = None
        self._cursor_call: ScheduledCall | None = None

    @property
    def tracked(self) -> EditorRange | None:
        return self._tracked

    def apply(self, editor_range: EditorRange) -> bool:
        """Highlight *editor_range*, replacing any tracked highlight.

        Returns:
            True if the new range was formatted.
        """
        previous = self._tracked
        if previous is not None:
            try:
                self._document.format_text(
                    previous.index, previous.length, self._format_name, False
                )
            except Exception:
                logger.warning(
                    "[HIGHLIGHT] could not retract %s", previous, exc_info=True
                )
                return False
            self._tracked = None

        try:
            self._document.format_text(
                editor_range.index, editor_range.length, self._format_name, self._color
            )
        except Exception:
            logger.warning(
                "[HIGHLIGHT] could not format %s", editor_range, exc_info=True
            )
            return False

        self._tracked = editor_range
        logger.debug("[HIGHLIGHT] applied %s", editor_range)

        if self._cursor_call is not None:
            self._cursor_call.cancel()
            self._cursor_call = None
        try:
            self._cursor_call = self._scheduler.call_later(
                self._paint_tick, partial(self._place_cursor, editor_range.index)
            )
        except Exception:
            # The highlight stands; only the cursor move is lost
            logger.warning(
                "[HIGHLIGHT] could not schedule cursor move to %d",
                editor_range.index,
                exc_info=True,
            )
        return True

    def _place_cursor(self, index: int) -> None:
        self._cursor_call = None
        try:
            self._document.set_selection(index, 0)
            self._document.focus()
        except Exception:
            logger.warning(
                "[HIGHLIGHT] could not move cursor to %d", index, exc_info=True
            )

    def clear(self) -> None:
        """Retract the tracked highlight; no-op when nothing is tracked."""
        tracked = self._tracked
        if tracked is None:
            return
        try:
            self._document.format_text(
                tracked.index, tracked.length, self._format_name, False
            )
        except Exception:
            logger.warning("[HIGHLIGHT] could not clear %s", tracked, exc_info=True)
            return
        self._tracked = None
        if self._cursor_call is not None:
            self._cursor_call.cancel()
            self._cursor_call = None

    def is_active(self) -> bool:
        """True if the editor still shows the highlight over the tracked span."""
        tracked = self._tracked
        if tracked is None:
            return False
        try:
            formats = self._document.get_format(tracked.index, tracked.length)
        except Exception:
            logger.warning("[HIGHLIGHT] could not read formats", exc_info=True)
            return False
        return formats.get(self._format_name) == self._color
