"""Editor side: position resolution and the selection echo highlight."""

from previewsync.editor.highlight import SelectionHighlighter
from previewsync.editor.memory import InMemoryRichTextDocument
from previewsync.editor.protocol import RichTextDocument
from previewsync.editor.resolver import PrefixFallback, find_all, resolve_position

__all__ = [
    "InMemoryRichTextDocument",
    "PrefixFallback",
    "RichTextDocument",
    "SelectionHighlighter",
    "find_all",
    "resolve_position",
]
