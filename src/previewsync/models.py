"""Value types shared by the selection and search pipelines.

These are plain frozen dataclasses. None of them is persisted: descriptors
and error messages live for one gesture, ranges and match handles for as
long as their owning component keeps them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from previewsync.errors import InvalidRangeError


class ErrorKind(StrEnum):
    """Recoverable failure kinds surfaced on the session error channel."""

    EMPTY_SELECTION = "empty_selection"
    MULTI_BLOCK_SELECTION = "multi_block_selection"
    NON_TEXT_NODE = "non_text_node"
    OFFSET_COMPUTATION_FAILED = "offset_computation_failed"
    MAPPING_FAILED = "mapping_failed"


# User-facing text per kind. EMPTY_SELECTION is deliberately silent.
ERROR_TEXT: dict[ErrorKind, str] = {
    ErrorKind.EMPTY_SELECTION: "",
    ErrorKind.MULTI_BLOCK_SELECTION: (
        "Selection spans multiple blocks; select text within a single block."
    ),
    ErrorKind.NON_TEXT_NODE: "Selection range is not addressable text.",
    ErrorKind.OFFSET_COMPUTATION_FAILED: "Could not compute the selection offset.",
    ErrorKind.MAPPING_FAILED: "Selected text could not be located in the editor.",
}


@dataclass(frozen=True)
class ErrorMessage:
    """A transient, user-facing failure report."""

    kind: ErrorKind
    text: str

    @classmethod
    def of(cls, kind: ErrorKind) -> ErrorMessage:
        """Build the message for *kind* with its standard text."""
        return cls(kind=kind, text=ERROR_TEXT[kind])

    @property
    def silent(self) -> bool:
        """True when nothing should be shown to the user."""
        return self.kind is ErrorKind.EMPTY_SELECTION


@dataclass(frozen=True)
class SelectionDescriptor:
    """A selection expressed relative to its enclosing preview block.

    Attributes:
        block_text: Full raw text content of the enclosing block.
        offset: Raw character offset of the selection within ``block_text``.
        length: Raw character length of the selection.
        selected_text: The literal (trimmed) selected string, used to verify
            a candidate editor span.
    """

    block_text: str
    offset: int
    length: int
    selected_text: str


@dataclass(frozen=True)
class EditorRange:
    """Index/length span in the editor's linear text buffer."""

    index: int
    length: int

    def __post_init__(self) -> None:
        if self.index < 0 or self.length < 0:
            msg = f"EditorRange requires non-negative values, got {self!r}"
            raise InvalidRangeError(msg)

    @property
    def end(self) -> int:
        return self.index + self.length


@dataclass(frozen=True)
class MatchHandle:
    """Opaque handle for one search marker, in document order."""

    ordinal: int
    text: str


@dataclass(frozen=True)
class SearchResult:
    """Marked-up preview HTML and the matches it contains."""

    html: str
    matches: tuple[MatchHandle, ...] = ()

    @property
    def count(self) -> int:
        return len(self.matches)
