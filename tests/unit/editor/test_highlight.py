"""Tests for the single-slot selection echo highlight."""

from __future__ import annotations

import logging

import pytest

from previewsync.editor.highlight import SelectionHighlighter
from previewsync.editor.memory import InMemoryRichTextDocument
from previewsync.models import EditorRange
from previewsync.scheduling import ImmediateScheduler
from tests.fakes import FailingScheduler, ManualScheduler

COLOR = "#ADD8E6"


@pytest.fixture
def highlighter(
    editor: InMemoryRichTextDocument, scheduler: ManualScheduler
) -> SelectionHighlighter:
    return SelectionHighlighter(editor, scheduler, color=COLOR)


class TestApply:
    """Applying a highlight."""

    def test_formats_range(
        self, highlighter: SelectionHighlighter, editor: InMemoryRichTextDocument
    ) -> None:
        """The range gets the highlight format and is tracked."""
        assert highlighter.apply(EditorRange(19, 5))
        assert editor.formatted_spans("background") == [(19, 5, COLOR)]
        assert highlighter.tracked == EditorRange(19, 5)
        assert highlighter.is_active()

    def test_cursor_deferred_to_next_tick(
        self,
        highlighter: SelectionHighlighter,
        editor: InMemoryRichTextDocument,
        scheduler: ManualScheduler,
    ) -> None:
        """The cursor moves and the editor focuses only after the tick."""
        highlighter.apply(EditorRange(19, 5))
        assert editor.selection is None
        assert not editor.focused
        assert [call.delay for call in scheduler.pending] == [0.0]

        scheduler.run_pending()
        assert editor.selection == (19, 0)
        assert editor.focused

    def test_operation_order(
        self,
        highlighter: SelectionHighlighter,
        editor: InMemoryRichTextDocument,
        scheduler: ManualScheduler,
    ) -> None:
        """Format, then cursor, then focus."""
        highlighter.apply(EditorRange(6, 5))
        scheduler.run_pending()
        assert [name for name, _ in editor.history] == [
            "format_text",
            "set_selection",
            "focus",
        ]

    def test_second_apply_supersedes_first(
        self,
        highlighter: SelectionHighlighter,
        editor: InMemoryRichTextDocument,
        scheduler: ManualScheduler,
    ) -> None:
        """Only the latest range stays highlighted."""
        highlighter.apply(EditorRange(19, 5))
        highlighter.apply(EditorRange(0, 5))
        assert editor.formatted_spans("background") == [(0, 5, COLOR)]
        assert highlighter.tracked == EditorRange(0, 5)

        scheduler.run_pending()
        assert editor.selection == (0, 0)
        moves = [args for name, args in editor.history if name == "set_selection"]
        assert moves == [(0, 0)]

    def test_overlapping_ranges(
        self, highlighter: SelectionHighlighter, editor: InMemoryRichTextDocument
    ) -> None:
        """An overlapping new range is fully highlighted after the retract."""
        highlighter.apply(EditorRange(0, 10))
        highlighter.apply(EditorRange(6, 10))
        assert editor.formatted_spans("background") == [(6, 10, COLOR)]

    def test_immediate_scheduler(self, editor: InMemoryRichTextDocument) -> None:
        """With an inline scheduler the cursor moves straight away."""
        highlighter = SelectionHighlighter(editor, ImmediateScheduler())
        highlighter.apply(EditorRange(13, 5))
        assert editor.selection == (13, 0)


class TestClear:
    """Retracting the highlight."""

    def test_clear(
        self, highlighter: SelectionHighlighter, editor: InMemoryRichTextDocument
    ) -> None:
        """clear() removes the format and forgets the range."""
        highlighter.apply(EditorRange(19, 5))
        highlighter.clear()
        assert editor.formatted_spans("background") == []
        assert highlighter.tracked is None
        assert not highlighter.is_active()

    def test_clear_without_highlight(
        self, highlighter: SelectionHighlighter, editor: InMemoryRichTextDocument
    ) -> None:
        """clear() with nothing tracked touches nothing."""
        highlighter.clear()
        assert editor.history == []

    def test_is_active_tracks_editor_state(
        self, highlighter: SelectionHighlighter, editor: InMemoryRichTextDocument
    ) -> None:
        """is_active() reflects formatting removed behind our back."""
        highlighter.apply(EditorRange(19, 5))
        editor.format_text(19, 5, "background", False)
        assert not highlighter.is_active()


class TestEditorFailures:
    """Host failures are logged, never raised."""

    def test_scheduler_failure_keeps_highlight(
        self,
        editor: InMemoryRichTextDocument,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A cursor move that cannot be scheduled leaves the highlight applied."""
        highlighter = SelectionHighlighter(editor, FailingScheduler(), color=COLOR)
        with caplog.at_level(logging.WARNING, logger="previewsync.editor.highlight"):
            assert highlighter.apply(EditorRange(19, 5))
        assert editor.formatted_spans("background") == [(19, 5, COLOR)]
        assert highlighter.tracked == EditorRange(19, 5)
        assert editor.selection is None
        assert "could not schedule cursor move" in caplog.text

    def test_unmounted_editor(
        self,
        highlighter: SelectionHighlighter,
        editor: InMemoryRichTextDocument,
        scheduler: ManualScheduler,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """apply() on an unmounted editor reports False and tracks nothing."""
        editor.mounted = False
        with caplog.at_level(logging.WARNING, logger="previewsync.editor.highlight"):
            assert not highlighter.apply(EditorRange(19, 5))
        assert highlighter.tracked is None
        assert scheduler.pending == []
        assert "could not format" in caplog.text

    def test_clear_on_unmounted_keeps_tracking(
        self, highlighter: SelectionHighlighter, editor: InMemoryRichTextDocument
    ) -> None:
        """A failed clear leaves the tracked range as it was."""
        highlighter.apply(EditorRange(19, 5))
        editor.mounted = False
        highlighter.clear()
        assert highlighter.tracked == EditorRange(19, 5)
        assert not highlighter.is_active()

    def test_deferred_cursor_failure(
        self,
        highlighter: SelectionHighlighter,
        editor: InMemoryRichTextDocument,
        scheduler: ManualScheduler,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A cursor move that fails on the tick is logged."""
        highlighter.apply(EditorRange(19, 5))
        editor.mounted = False
        with caplog.at_level(logging.WARNING, logger="previewsync.editor.highlight"):
            scheduler.run_pending()
        assert "could not move cursor" in caplog.text
        assert highlighter.tracked == EditorRange(19, 5)
