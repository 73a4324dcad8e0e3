"""Selection extraction: preview selection -> block-relative descriptor.

Given a selection range over the rendered preview, find the single block
element enclosing it and express the selection as a character offset and
length within that block's raw text. Block-relative offsets are only well
defined inside one block, so cross-block selections are rejected.

Failures are returned as ``ErrorMessage`` values; nothing here raises for a
bad selection and nothing mutates the document.
"""

# Pattern: Functional Core

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from previewsync.models import ErrorKind, ErrorMessage, SelectionDescriptor

if TYPE_CHECKING:
    from previewsync.preview.document import PreviewDocument
    from previewsync.preview.selection import SelectionRange, TextSelectionSource

logger = logging.getLogger(__name__)

ExtractionResult = SelectionDescriptor | ErrorMessage


def block_offset(
    document: PreviewDocument, block_id: int, container_id: int, local_offset: int
) -> int:
    """Block-relative offset of a (text container, local offset) boundary.

    Walks the block's text leaves in document order, accumulating their
    lengths until *container_id* is reached.

    Returns:
        The offset, or -1 if the container is not a text leaf of the block
        or *local_offset* lies outside it.
    """
    total = 0
    for leaf_id, length in document.leaf_index(block_id):
        if leaf_id == container_id:
            if not 0 <= local_offset <= length:
                return -1
            return total + local_offset
        total += length
    return -1


def extract_selection(
    document: PreviewDocument,
    selection: SelectionRange | None,
    selected_text: str,
    block_tags: frozenset[str],
) -> ExtractionResult:
    """Turn a preview selection into a ``SelectionDescriptor``.

    Args:
        document: The rendered preview the selection is anchored in.
        selection: The selection range, or None when nothing is selected.
        selected_text: The selection as the host stringifies it.
        block_tags: Tag names that delimit addressable blocks.

    Returns:
        A descriptor, or an ``ErrorMessage`` whose kind is one of
        EMPTY_SELECTION, MULTI_BLOCK_SELECTION, NON_TEXT_NODE,
        OFFSET_COMPUTATION_FAILED or MAPPING_FAILED (no enclosing block).
    """
    trimmed = selected_text.strip()
    if selection is None or selection.collapsed or not trimmed:
        return ErrorMessage.of(ErrorKind.EMPTY_SELECTION)

    start, end = selection.start, selection.end
    if start.node_id not in document or end.node_id not in document:
        logger.debug("[SELECTION] boundary outside preview: %s", selection)
        return ErrorMessage.of(ErrorKind.NON_TEXT_NODE)

    start_block = document.closest_block(start.node_id, block_tags)
    end_block = document.closest_block(end.node_id, block_tags)
    if start_block is None and end_block is None:
        logger.debug("[SELECTION] no enclosing block for %s", selection)
        return ErrorMessage.of(ErrorKind.MAPPING_FAILED)
    if start_block != end_block:
        logger.debug("[SELECTION] spans blocks %s and %s", start_block, end_block)
        return ErrorMessage.of(ErrorKind.MULTI_BLOCK_SELECTION)
    assert start_block is not None

    start_node = document.node(start.node_id)
    end_node = document.node(end.node_id)
    if not start_node.is_text or not end_node.is_text:
        return ErrorMessage.of(ErrorKind.NON_TEXT_NODE)

    start_offset = block_offset(document, start_block, start.node_id, start.offset)
    end_offset = block_offset(document, start_block, end.node_id, end.offset)
    if start_offset == -1 or end_offset == -1 or end_offset < start_offset:
        logger.debug(
            "[SELECTION] offset walk failed: start=%d end=%d",
            start_offset,
            end_offset,
        )
        return ErrorMessage.of(ErrorKind.OFFSET_COMPUTATION_FAILED)

    descriptor = SelectionDescriptor(
        block_text=document.text_content(start_block),
        offset=start_offset,
        length=end_offset - start_offset,
        selected_text=trimmed,
    )
    logger.debug(
        "[SELECTION] block=%d offset=%d length=%d",
        start_block,
        descriptor.offset,
        descriptor.length,
    )
    return descriptor


def extract_from_source(
    source: TextSelectionSource,
    document: PreviewDocument,
    block_tags: frozenset[str],
) -> ExtractionResult:
    """Read the host selection and extract a descriptor from it."""
    return extract_selection(
        document, source.current_range(), source.selected_text(), block_tags
    )
