"""Protocol defining the rich-text editor interface.

The live editor (a Quill instance behind the browser bridge) and
``InMemoryRichTextDocument`` both implement this protocol, so the highlight
manager can drive either one.
"""

from __future__ import annotations

from typing import Protocol


class RichTextDocument(Protocol):
    """Linear text buffer with per-character formatting.

    Positions are indices into ``get_text()``. Implementations may raise
    ``EditorNotMountedError`` when no editor instance is attached.
    """

    def get_text(self) -> str:
        """Return the full plain text of the document."""
        ...

    def format_text(self, index: int, length: int, name: str, value: object) -> None:
        """Apply format *name* = *value* to a span.

        Args:
            index: Start of the span.
            length: Length of the span.
            name: Format name, e.g. ``"background"``.
            value: Format value; ``False`` removes the format.
        """
        ...

    def get_format(self, index: int, length: int = 0) -> dict[str, object]:
        """Return the formats shared by every character of the span."""
        ...

    def set_selection(self, index: int, length: int = 0) -> None:
        """Place the cursor (``length == 0``) or select a span."""
        ...

    def focus(self) -> None:
        """Give the editor keyboard focus."""
        ...
