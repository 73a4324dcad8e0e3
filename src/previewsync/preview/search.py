"""Search highlighting over the sanitised preview.

Every case-insensitive occurrence of the search term inside preview text is
wrapped in a marker element; the marked-up HTML is then re-sanitised with
the same allow-list the preview render uses, so marker injection can never
widen what the preview is allowed to show.

``SearchHighlighter`` owns the match list and the current-match index and
cycles through the matches. It shares nothing with the editor-side
selection highlight.
"""

# Pattern: Functional Core (marker injection) + Imperative Shell (navigation)

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from lxml import etree
from lxml import html as lxml_html
from selectolax.lexbor import LexborHTMLParser

from previewsync.models import MatchHandle, SearchResult
from previewsync.preview.sanitiser import inner_html

if TYPE_CHECKING:
    from lxml.html import HtmlElement

    from previewsync.preview.sanitiser import HtmlSanitiser, SanitiserPolicy

logger = logging.getLogger(__name__)

# Text inside these is never searched
_SKIP_TAGS = frozenset(("script", "style", "noscript", "template"))


@dataclass(frozen=True)
class SearchMarker:
    """Markup used for search hits.

    Each matching text run becomes ``<span class=wrapper_class>`` holding
    the surrounding text and one ``<tag class=css_class>`` per occurrence.
    """

    tag: str = "mark"
    css_class: str = "search-highlight"
    wrapper_class: str = "search-hit"

    @property
    def selector(self) -> str:
        return f"{self.tag}.{self.css_class}"


DEFAULT_MARKER = SearchMarker()


def compile_term(term: str) -> re.Pattern[str] | None:
    """Case-insensitive literal pattern for *term*, or None for a blank term."""
    if not term or not term.strip():
        return None
    return re.compile(re.escape(term), re.IGNORECASE)


def _wrap_matches(
    text: str | None, pattern: re.Pattern[str], marker: SearchMarker
) -> HtmlElement | None:
    """Wrapper span for *text* with every match marked, or None if no match."""
    if not text:
        return None
    matches = list(pattern.finditer(text))
    if not matches:
        return None

    wrapper = lxml_html.Element("span")
    wrapper.set("class", marker.wrapper_class)
    cursor = 0
    previous: HtmlElement | None = None
    for match in matches:
        gap = text[cursor : match.start()] or None
        if previous is None:
            wrapper.text = gap
        else:
            previous.tail = gap
        previous = etree.SubElement(wrapper, marker.tag)
        previous.set("class", marker.css_class)
        previous.text = match.group()
        cursor = match.end()
    assert previous is not None
    previous.tail = text[cursor:] or None
    return wrapper


def _mark_element(
    element: HtmlElement, pattern: re.Pattern[str], marker: SearchMarker
) -> int:
    """Mark matches in *element*'s text and in its children's tails.

    Returns the number of markers inserted.
    """
    # Comments and processing instructions have a non-string tag
    if not isinstance(element.tag, str) or element.tag.lower() in _SKIP_TAGS:
        return 0

    inserted = 0
    children = list(element)

    wrapper = _wrap_matches(element.text, pattern, marker)
    if wrapper is not None:
        element.text = None
        element.insert(0, wrapper)
        inserted += len(wrapper)

    for child in children:
        inserted += _mark_element(child, pattern, marker)
        # A child's tail is text of *element*, so it is searched even when
        # the child itself is skipped
        wrapper = _wrap_matches(child.tail, pattern, marker)
        if wrapper is not None:
            child.tail = None
            child.addnext(wrapper)
            inserted += len(wrapper)

    return inserted


def _neutralise_markers(root: HtmlElement, marker: SearchMarker) -> int:
    """Drop the marker class from marker elements already in the markup.

    Only markers inserted by the current pass may carry the class, so that
    the match list counts real hits and nothing else.
    """
    neutralised = 0
    for element in root.iter(marker.tag):
        classes = (element.get("class") or "").split()
        if marker.css_class not in classes:
            continue
        remaining = [name for name in classes if name != marker.css_class]
        if remaining:
            element.set("class", " ".join(remaining))
        else:
            del element.attrib["class"]
        neutralised += 1
    return neutralised


def _mark_up(html: str, term: str, marker: SearchMarker) -> tuple[str, int]:
    """Unsanitised marked-up HTML and the number of markers inserted.

    With nothing inserted the input is returned as given.
    """
    pattern = compile_term(term)
    if pattern is None or not html or not html.strip():
        return html, 0

    try:
        root = lxml_html.fragment_fromstring(html, create_parent="div")
    except (etree.ParserError, ValueError):
        logger.warning("[SEARCH] could not parse preview HTML", exc_info=True)
        return html, 0

    stale = _neutralise_markers(root, marker)
    if stale:
        logger.debug("[SEARCH] %d pre-existing markers neutralised", stale)

    inserted = _mark_element(root, pattern, marker)
    if inserted == 0:
        return html, 0

    logger.debug("[SEARCH] %d markers for term %r", inserted, term)
    return inner_html(root), inserted


def highlight_search_term(
    html: str,
    term: str,
    *,
    sanitiser: HtmlSanitiser,
    policy: SanitiserPolicy,
    marker: SearchMarker = DEFAULT_MARKER,
) -> str:
    """Wrap every occurrence of *term* in *html* in a search marker.

    Marker elements already present in *html* lose the marker class, so the
    output carries markers for this term only.

    Args:
        html: Sanitised preview markup.
        term: Search term. Matched literally and case-insensitively.
        sanitiser: Sanitiser used to re-clean the marked-up output.
        policy: Allow-list policy; must admit the marker tag and class.
        marker: Marker markup.

    Returns:
        Marked-up, re-sanitised HTML. The input is returned unchanged for a
        blank term, when nothing matches, or when the HTML cannot be parsed.
    """
    marked, inserted = _mark_up(html, term, marker)
    if inserted == 0:
        return html
    return sanitiser.sanitise(marked, policy)


def collect_matches(
    html: str, marker: SearchMarker = DEFAULT_MARKER
) -> tuple[MatchHandle, ...]:
    """Marker elements in *html*, in document order."""
    if not html:
        return ()
    tree = LexborHTMLParser(html)
    return tuple(
        MatchHandle(ordinal=ordinal, text=node.text())
        for ordinal, node in enumerate(tree.css(marker.selector))
    )


def apply_match_styles(
    html: str,
    current_index: int,
    *,
    marker: SearchMarker = DEFAULT_MARKER,
    match_color: str,
    current_match_color: str,
) -> str:
    """Inline background colours on each marker; the current one differs."""
    if not html or not html.strip():
        return html
    try:
        root = lxml_html.fragment_fromstring(html, create_parent="div")
    except (etree.ParserError, ValueError):
        logger.warning("[SEARCH] could not parse marked-up HTML", exc_info=True)
        return html

    ordinal = 0
    for element in root.iter(marker.tag):
        if marker.css_class not in (element.get("class") or "").split():
            continue
        color = current_match_color if ordinal == current_index else match_color
        element.set("style", f"background-color: {color}")
        ordinal += 1
    return inner_html(root)


class MatchPresenter(Protocol):
    """Protocol for a live view of the marker elements."""

    def scroll_into_view(self, handle: MatchHandle) -> None:
        """Bring the marker for *handle* into view."""
        ...

    def set_style(self, handle: MatchHandle, *, current: bool) -> None:
        """Style the marker for *handle* as the current or an ordinary match."""
        ...


class SearchHighlighter:
    """Match list and cyclic current-match index for one preview.

    The index is ``-1`` when there are no matches and is reset to ``0``
    whenever the list is rebuilt with at least one match.
    """

    def __init__(
        self,
        sanitiser: HtmlSanitiser,
        policy: SanitiserPolicy,
        *,
        marker: SearchMarker = DEFAULT_MARKER,
        match_color: str = "#FFFF99",
        current_match_color: str = "#ADD8E6",
        presenter: MatchPresenter | None = None,
    ) -> None:
        self._sanitiser = sanitiser
        self._policy = policy
        self._marker = marker
        self._match_color = match_color
        self._current_match_color = current_match_color
        self._presenter = presenter
        self._term = ""
        self._result = SearchResult(html="")
        self._index = -1

    @property
    def term(self) -> str:
        return self._term

    @property
    def result(self) -> SearchResult:
        return self._result

    @property
    def matches(self) -> tuple[MatchHandle, ...]:
        return self._result.matches

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current(self) -> MatchHandle | None:
        if self._index < 0:
            return None
        return self._result.matches[self._index]

    def update(self, html: str, term: str) -> SearchResult:
        """Rebuild the markup and match list for *html* and *term*."""
        self._term = term
        marked, inserted = _mark_up(html, term, self._marker)
        matches: tuple[MatchHandle, ...] = ()
        if inserted:
            marked = self._sanitiser.sanitise(marked, self._policy)
            matches = collect_matches(marked, self._marker)
        self._result = SearchResult(html=marked, matches=matches)
        self._index = 0 if matches else -1
        logger.debug("[SEARCH] term=%r matches=%d", term, len(matches))
        self._present()
        return self._result

    def next(self) -> int:
        """Advance to the following match, wrapping at the end."""
        count = self._result.count
        if count > 1:
            self._index = (self._index + 1) % count
            self._present()
        return self._index

    def previous(self) -> int:
        """Step back to the preceding match, wrapping at the start."""
        count = self._result.count
        if count > 1:
            self._index = (self._index - 1 + count) % count
            self._present()
        return self._index

    def handle_key(self, key: str, *, shift: bool = False) -> bool:
        """Enter moves forward, Shift+Enter backward.

        Returns:
            True if the key was consumed.
        """
        if key != "Enter" or self._result.count <= 1:
            return False
        if shift:
            self.previous()
        else:
            self.next()
        return True

    def status(self) -> str:
        """Counter label, ``"i / N"`` with a 1-based ``i``."""
        if self._index < 0:
            return "0 / 0"
        return f"{self._index + 1} / {self._result.count}"

    def styled_html(self) -> str:
        """Current markup with match colours inlined."""
        if self._index < 0:
            return self._result.html
        return apply_match_styles(
            self._result.html,
            self._index,
            marker=self._marker,
            match_color=self._match_color,
            current_match_color=self._current_match_color,
        )

    def _present(self) -> None:
        current = self.current
        if self._presenter is None or current is None:
            return
        try:
            self._presenter.scroll_into_view(current)
            for handle in self._result.matches:
                self._presenter.set_style(
                    handle, current=handle.ordinal == current.ordinal
                )
        except Exception:
            logger.warning(
                "[SEARCH] presenter failed for match %d", current.ordinal, exc_info=True
            )
