"""Position resolution: block-relative descriptor -> editor range.

The preview and the editor hold the same text in different shapes, so the
descriptor's block text is searched for in the editor's full text and the
block-relative span is replayed from each occurrence. A candidate is only
accepted if the span it yields reproduces the selected text; repeated
blocks are disambiguated that way rather than by taking the first hit.

All comparisons happen on whitespace-normalised text. The winning span is
mapped back to raw editor indices through the normaliser's index map.
"""

# Pattern: Functional Core

from __future__ import annotations

import difflib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from previewsync.models import EditorRange, ErrorKind, ErrorMessage
from previewsync.normaliser import (
    normalise_text,
    normalise_with_map,
    raw_to_normalised_offset,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from previewsync.models import SelectionDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrefixFallback:
    """Bounded prefix search used when no exact candidate matches.

    Attributes:
        prefix_length: Normalised characters of the selection searched for.
        min_selection: Only selections longer than this are eligible.
        min_similarity: Minimum ``difflib`` ratio between the located span
            and the selection.
    """

    prefix_length: int = 20
    min_selection: int = 10
    min_similarity: float = 0.9


def find_all(haystack: str, needle: str) -> Iterator[int]:
    """Yield every start index of *needle* in *haystack*, overlaps included."""
    if not needle:
        return
    position = haystack.find(needle)
    while position != -1:
        yield position
        position = haystack.find(needle, position + 1)


def _to_editor_range(index_map: list[int], start: int, end: int) -> EditorRange:
    raw_start = index_map[start]
    raw_end = index_map[end - 1] + 1
    return EditorRange(index=raw_start, length=raw_end - raw_start)


def _trim_span(text: str, start: int, end: int) -> tuple[int, int]:
    while start < end and text[start] == " ":
        start += 1
    while end > start and text[end - 1] == " ":
        end -= 1
    return start, end


def _prefix_match(
    full: str,
    window_start: int,
    window_length: int,
    selected: str,
    fallback: PrefixFallback,
) -> tuple[int, int] | None:
    if len(selected) <= fallback.min_selection:
        return None
    prefix = selected[: fallback.prefix_length]
    found = full.find(prefix, window_start)
    if found == -1 or found >= window_start + window_length:
        return None
    end = min(found + len(selected), len(full))
    ratio = difflib.SequenceMatcher(None, full[found:end], selected).ratio()
    if ratio < fallback.min_similarity:
        logger.debug("[RESOLVER] prefix candidate at %d rejected (%.2f)", found, ratio)
        return None
    return found, end


def resolve_position(
    descriptor: SelectionDescriptor,
    full_text: str,
    *,
    prefix_fallback: PrefixFallback | None = None,
) -> EditorRange | ErrorMessage:
    """Locate the descriptor's span inside the editor text.

    Args:
        descriptor: Block-relative selection from the preview.
        full_text: The editor's full plain text.
        prefix_fallback: Optional bounded prefix search, tried only when no
            candidate reproduces the selection exactly.

    Returns:
        The span in raw editor coordinates, or a MAPPING_FAILED message.

    >>> from previewsync.models import SelectionDescriptor
    >>> d = SelectionDescriptor("Hello there.", 6, 5, "there")
    >>> resolve_position(d, "Hello world. Hello there.")
    EditorRange(index=19, length=5)
    """
    full, index_map = normalise_with_map(full_text)
    block = normalise_text(descriptor.block_text)
    selected = normalise_text(descriptor.selected_text)
    if not block or not selected:
        return ErrorMessage.of(ErrorKind.MAPPING_FAILED)

    start_in_block = raw_to_normalised_offset(descriptor.block_text, descriptor.offset)
    end_in_block = raw_to_normalised_offset(
        descriptor.block_text, descriptor.offset + descriptor.length
    )
    candidates = list(find_all(full, block))
    for occurrence, block_start in enumerate(candidates, start=1):
        position = block_start + start_in_block
        end = block_start + end_in_block
        if end > len(full) or end <= position:
            continue
        if normalise_text(full[position:end]) != selected:
            continue
        position, end = _trim_span(full, position, end)
        result = _to_editor_range(index_map, position, end)
        logger.debug(
            "[RESOLVER] matched at block occurrence %d of %d -> %s",
            occurrence,
            len(candidates),
            result,
        )
        return result

    if prefix_fallback is not None:
        # Without any block occurrence the whole text is one search window
        windows = [(start, len(block)) for start in candidates] or [(0, len(full))]
        for window_start, window_length in windows:
            span = _prefix_match(
                full, window_start, window_length, selected, prefix_fallback
            )
            if span is not None:
                result = _to_editor_range(index_map, *_trim_span(full, *span))
                logger.info("[RESOLVER] prefix fallback matched -> %s", result)
                return result

    logger.info(
        "[RESOLVER] no match for %r (%d block occurrences)",
        descriptor.selected_text,
        len(candidates),
    )
    return ErrorMessage.of(ErrorKind.MAPPING_FAILED)
