"""Preview side: rendered HTML, selection extraction and search highlighting."""

from previewsync.preview.document import ROOT_ID, PreviewDocument, PreviewNode
from previewsync.preview.extractor import (
    block_offset,
    extract_from_source,
    extract_selection,
)
from previewsync.preview.sanitiser import (
    BleachSanitiser,
    HtmlSanitiser,
    SanitiserPolicy,
    inner_html,
    strip_non_content,
)
from previewsync.preview.search import (
    DEFAULT_MARKER,
    MatchPresenter,
    SearchHighlighter,
    SearchMarker,
    apply_match_styles,
    collect_matches,
    highlight_search_term,
)
from previewsync.preview.selection import (
    Boundary,
    DocumentSelection,
    SelectionRange,
    TextSelectionSource,
)

__all__ = [
    "DEFAULT_MARKER",
    "ROOT_ID",
    "BleachSanitiser",
    "Boundary",
    "DocumentSelection",
    "HtmlSanitiser",
    "MatchPresenter",
    "PreviewDocument",
    "PreviewNode",
    "SanitiserPolicy",
    "SearchHighlighter",
    "SearchMarker",
    "SelectionRange",
    "TextSelectionSource",
    "apply_match_styles",
    "block_offset",
    "collect_matches",
    "extract_from_source",
    "extract_selection",
    "highlight_search_term",
    "inner_html",
    "strip_non_content",
]
