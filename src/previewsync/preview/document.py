"""Preview document: rendered preview HTML flattened into a node arena.

The preview is parsed once with selectolax and every node (elements and text
leaves) is stored in a flat list addressed by integer id. Selection
boundaries refer to those ids, and all offset arithmetic runs over the
ordered list of text leaves, so nothing downstream depends on a live DOM.

Text leaves keep their raw text (no whitespace collapsing): block-relative
offsets are measured the way a browser's ``textContent`` measures them.
"""

# Pattern: Functional Core (immutable arena built once per render)

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from selectolax.lexbor import LexborHTMLParser

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

# Tags skipped entirely (never rendered as text)
_STRIP_TAGS = frozenset(("script", "style", "noscript", "template"))

# selectolax tag name for text nodes
_TEXT_TAG = "-text"

ROOT_ID = 0


@dataclass
class PreviewNode:
    """One node of the preview arena."""

    node_id: int
    tag: str
    parent: int | None
    children: list[int] = field(default_factory=list)
    text: str = ""  # raw decoded text, text leaves only

    @property
    def is_text(self) -> bool:
        return self.tag == _TEXT_TAG


class PreviewDocument:
    """Arena of preview nodes with leaf-index helpers.

    Node ``ROOT_ID`` is the container (the parsed ``<body>``); it is never a
    block itself.
    """

    def __init__(self, nodes: list[PreviewNode]) -> None:
        if not nodes:
            nodes = [PreviewNode(node_id=ROOT_ID, tag="body", parent=None)]
        self._nodes = nodes

    @classmethod
    def from_html(cls, html: str) -> PreviewDocument:
        """Parse rendered preview HTML into an arena."""
        nodes: list[PreviewNode] = [
            PreviewNode(node_id=ROOT_ID, tag="body", parent=None)
        ]
        if not html:
            return cls(nodes)

        tree = LexborHTMLParser(html)
        body = tree.body
        root = body if body else tree.root
        if root is None:
            return cls(nodes)

        def _add(tag: str, parent_id: int, text: str = "") -> int:
            node_id = len(nodes)
            nodes.append(
                PreviewNode(node_id=node_id, tag=tag, parent=parent_id, text=text)
            )
            nodes[parent_id].children.append(node_id)
            return node_id

        def _walk(node: Any, parent_id: int) -> None:
            tag = node.tag

            # Text node: selectolax uses "-text" as the tag
            if tag == _TEXT_TAG:
                text = node.text_content
                if text:
                    _add(_TEXT_TAG, parent_id, text)
                return

            # Comments and other non-element nodes have punctuated tag names
            if not tag or not tag[0].isalpha() or tag.lower() in _STRIP_TAGS:
                return

            node_id = _add(tag.lower(), parent_id)
            child = node.child
            while child is not None:
                _walk(child, node_id)
                child = child.next

        # Start from root's children (skip the root element itself)
        child = root.child
        while child is not None:
            _walk(child, ROOT_ID)
            child = child.next

        return cls(nodes)

    # ------------------------------------------------------------------
    # Node access
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return isinstance(node_id, int) and 0 <= node_id < len(self._nodes)

    def node(self, node_id: int) -> PreviewNode:
        return self._nodes[node_id]

    def nodes(self) -> Iterable[PreviewNode]:
        return iter(self._nodes)

    def ancestors(self, node_id: int) -> Iterator[int]:
        """Yield *node_id* and then each ancestor up to (excluding) the root."""
        current: int | None = node_id
        while current is not None and current != ROOT_ID:
            yield current
            current = self._nodes[current].parent

    def contains(self, ancestor_id: int, node_id: int) -> bool:
        if ancestor_id == ROOT_ID:
            return node_id in self
        return ancestor_id in self.ancestors(node_id)

    def closest_block(self, node_id: int, block_tags: frozenset[str]) -> int | None:
        """Nearest node (self included) whose tag is a block tag, or None."""
        for candidate in self.ancestors(node_id):
            if self._nodes[candidate].tag in block_tags:
                return candidate
        return None

    # ------------------------------------------------------------------
    # Leaf index
    # ------------------------------------------------------------------

    def text_leaves(self, node_id: int = ROOT_ID) -> list[int]:
        """Text leaf ids under *node_id* in document (in-order) order."""
        node = self._nodes[node_id]
        if node.is_text:
            return [node_id]
        leaves: list[int] = []
        stack = list(reversed(node.children))
        while stack:
            current = self._nodes[stack.pop()]
            if current.is_text:
                leaves.append(current.node_id)
            else:
                stack.extend(reversed(current.children))
        return leaves

    def leaf_index(self, node_id: int = ROOT_ID) -> list[tuple[int, int]]:
        """``(leaf_id, text_length)`` pairs for the text leaves under *node_id*."""
        nodes = self._nodes
        return [(leaf, len(nodes[leaf].text)) for leaf in self.text_leaves(node_id)]

    def text_content(self, node_id: int = ROOT_ID) -> str:
        nodes = self._nodes
        return "".join(nodes[leaf].text for leaf in self.text_leaves(node_id))

    def absolute_offset(
        self, container_id: int, offset: int, within: int = ROOT_ID
    ) -> int:
        """Character offset of a (container, offset) boundary within *within*.

        Text containers count characters; element containers count child
        nodes, as DOM range boundaries do. Returns -1 when the boundary is
        not inside *within* or the offset is out of bounds.
        """
        if container_id not in self or not self.contains(within, container_id):
            return -1
        container = self._nodes[container_id]
        if container.is_text:
            if not 0 <= offset <= len(container.text):
                return -1
            return self._text_before(container_id, within) + offset

        if not 0 <= offset <= len(container.children):
            return -1
        # Node ids are assigned in document order, so everything before the
        # boundary has a smaller id than the node right after it.
        if offset < len(container.children):
            limit = container.children[offset]
        else:
            limit = self._subtree_end(container_id)
        return self._text_before(limit, within)

    def _text_before(self, node_id: int, within: int) -> int:
        index = self.leaf_index(within)
        return sum(length for leaf, length in index if leaf < node_id)

    def _subtree_end(self, node_id: int) -> int:
        node = self._nodes[node_id]
        while node.children:
            node = self._nodes[node.children[-1]]
        return node.node_id + 1

    def locate(self, absolute: int, *, prefer_end: bool = False) -> tuple[int, int]:
        """Map an absolute text offset to a ``(leaf_id, local_offset)`` boundary.

        At a seam between two leaves, the boundary goes to the start of the
        following leaf, or the end of the preceding one with *prefer_end*.

        Raises:
            IndexError: If *absolute* lies outside the document text.
        """
        total = 0
        index = self.leaf_index()
        for leaf, length in index:
            end = total + length
            if prefer_end:
                inside = total < absolute <= end
            else:
                inside = total <= absolute < end
            if inside:
                return leaf, absolute - total
            total = end
        if index and absolute == total:
            leaf, length = index[-1]
            return leaf, length
        msg = f"offset {absolute} outside document text of length {total}"
        raise IndexError(msg)
