"""Selection ranges over a preview document, and the host selection protocol.

A ``SelectionRange`` mirrors a DOM Range: two (container, offset) boundary
points where containers are preview arena node ids. The host's selection
primitive is hidden behind ``TextSelectionSource`` so extraction can be
driven by the browser bridge in production and by ``DocumentSelection`` in
tests and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from previewsync.preview.document import PreviewDocument


@dataclass(frozen=True)
class Boundary:
    """A DOM-style boundary point: character offset for text containers,
    child index for element containers."""

    node_id: int
    offset: int


@dataclass(frozen=True)
class SelectionRange:
    """Start and end boundary of a selection."""

    start: Boundary
    end: Boundary

    @property
    def collapsed(self) -> bool:
        return self.start == self.end


class TextSelectionSource(Protocol):
    """Protocol for the host text-selection primitive."""

    def current_range(self) -> SelectionRange | None:
        """Return the first range of the current selection, if any."""
        ...

    def selected_text(self) -> str:
        """Return the selection as the host stringifies it (untrimmed)."""
        ...

    def clear(self) -> None:
        """Remove all ranges from the selection."""
        ...


class DocumentSelection:
    """In-memory ``TextSelectionSource`` over a ``PreviewDocument``.

    Selections are set either from explicit boundaries or by locating a
    needle in the document's text content.
    """

    def __init__(self, document: PreviewDocument) -> None:
        self._document = document
        self._range: SelectionRange | None = None

    @property
    def document(self) -> PreviewDocument:
        return self._document

    def select(self, start: Boundary, end: Boundary) -> SelectionRange:
        self._range = SelectionRange(start=start, end=end)
        return self._range

    def select_text(self, needle: str, nth: int = 0) -> SelectionRange | None:
        """Select the *nth* occurrence of *needle* in the document text.

        Returns the new range, or None (selection cleared) when there is no
        such occurrence.
        """
        text = self._document.text_content()
        position = -1
        for _ in range(nth + 1):
            position = text.find(needle, position + 1)
            if position == -1 or not needle:
                self._range = None
                return None

        start_leaf, start_offset = self._document.locate(position)
        end_leaf, end_offset = self._document.locate(
            position + len(needle), prefer_end=True
        )
        return self.select(
            Boundary(start_leaf, start_offset), Boundary(end_leaf, end_offset)
        )

    def current_range(self) -> SelectionRange | None:
        return self._range

    def selected_text(self) -> str:
        if self._range is None or self._range.collapsed:
            return ""
        start = self._document.absolute_offset(
            self._range.start.node_id, self._range.start.offset
        )
        end = self._document.absolute_offset(
            self._range.end.node_id, self._range.end.offset
        )
        if start == -1 or end == -1 or end <= start:
            return ""
        return self._document.text_content()[start:end]

    def clear(self) -> None:
        self._range = None
