"""In-memory rich-text document.

Implements ``RichTextDocument`` over a plain string plus one format map per
character. Used by the CLI and by tests in place of a live editor.

Like Quill, the buffer always ends with a newline: an empty document is
``"\\n"`` and ``set_text("abc")`` yields ``"abc\\n"``.
"""

from __future__ import annotations

import logging

from previewsync.errors import EditorNotMountedError

logger = logging.getLogger(__name__)


def _with_trailing_newline(text: str) -> str:
    return text if text.endswith("\n") else text + "\n"


class InMemoryRichTextDocument:
    """RichTextDocument implementation backed by Python lists.

    Attributes:
        mounted: When False every operation raises ``EditorNotMountedError``,
            as a host editor does before it is attached.
        selection: Last ``(index, length)`` passed to ``set_selection``.
        focused: Whether ``focus()`` has been called since the last blur.
        history: Operation log, ``(method, args)`` in call order.
    """

    def __init__(self, text: str = "", *, mounted: bool = True) -> None:
        self.mounted = mounted
        self.selection: tuple[int, int] | None = None
        self.focused = False
        self.history: list[tuple[str, tuple[object, ...]]] = []
        self._text = _with_trailing_newline(text)
        self._formats: list[dict[str, object]] = [{} for _ in self._text]

    def _require_mounted(self) -> None:
        if not self.mounted:
            msg = "rich-text editor is not mounted"
            raise EditorNotMountedError(msg)

    def _clamp(self, index: int, length: int) -> tuple[int, int]:
        size = len(self._text)
        start = min(max(index, 0), size)
        end = min(max(index + length, start), size)
        return start, end

    # ------------------------------------------------------------------
    # RichTextDocument
    # ------------------------------------------------------------------

    def get_text(self) -> str:
        self._require_mounted()
        return self._text

    def format_text(self, index: int, length: int, name: str, value: object) -> None:
        self._require_mounted()
        self.history.append(("format_text", (index, length, name, value)))
        start, end = self._clamp(index, length)
        for formats in self._formats[start:end]:
            if value is False or value is None:
                formats.pop(name, None)
            else:
                formats[name] = value

    def get_format(self, index: int, length: int = 0) -> dict[str, object]:
        self._require_mounted()
        start, end = self._clamp(index, length)
        if start == end:
            # A cursor takes the formats of the character before it
            start = max(start - 1, 0)
            end = min(start + 1, len(self._text))
        spans = self._formats[start:end]
        if not spans:
            return {}
        shared = dict(spans[0])
        for formats in spans[1:]:
            shared = {
                name: value
                for name, value in shared.items()
                if formats.get(name) == value
            }
        return shared

    def set_selection(self, index: int, length: int = 0) -> None:
        self._require_mounted()
        self.history.append(("set_selection", (index, length)))
        start, end = self._clamp(index, length)
        self.selection = (start, end - start)

    def focus(self) -> None:
        self._require_mounted()
        self.history.append(("focus", ()))
        self.focused = True

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def set_text(self, text: str) -> None:
        """Replace the whole buffer, dropping all formatting."""
        self._require_mounted()
        self._text = _with_trailing_newline(text)
        self._formats = [{} for _ in self._text]
        self.selection = None
        logger.debug("[EDITOR] content replaced (%d chars)", len(self._text))

    def formatted_spans(self, name: str) -> list[tuple[int, int, object]]:
        """Maximal ``(index, length, value)`` runs carrying format *name*."""
        spans: list[tuple[int, int, object]] = []
        run_start: int | None = None
        run_value: object = None
        for position, formats in enumerate([*self._formats, {}]):
            value = formats.get(name)
            if run_start is not None and value != run_value:
                spans.append((run_start, position - run_start, run_value))
                run_start = None
            if run_start is None and value is not None:
                run_start, run_value = position, value
        return spans
