"""Allow-list HTML sanitisation for the preview.

The sanitiser itself is an external collaborator: the preview renderer and
the search highlighter both call it with the same policy. ``BleachSanitiser``
is the default adapter; anything implementing ``HtmlSanitiser`` can stand in.
"""

from __future__ import annotations

import html as html_lib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import bleach
from bleach.css_sanitizer import CSSSanitizer
from lxml import etree
from lxml import html as lxml_html

if TYPE_CHECKING:
    from lxml.html import HtmlElement

logger = logging.getLogger(__name__)

# Non-content elements whose *contents* must go too; bleach's strip mode
# would otherwise keep their text.
_NON_CONTENT_TAGS = ("script", "style", "noscript", "template")

_ALLOWED_PROTOCOLS = frozenset(("http", "https", "mailto"))

_ALLOWED_CSS_PROPERTIES = (
    "color",
    "background-color",
    "font-size",
    "font-style",
    "font-weight",
    "text-align",
    "text-decoration",
    "margin-left",
    "margin-right",
    "padding-left",
    "padding-right",
    "text-indent",
    "width",
    "height",
    "max-width",
    "line-height",
)


@dataclass(frozen=True)
class SanitiserPolicy:
    """Tags and attributes that survive sanitisation."""

    allowed_tags: frozenset[str]
    allowed_attributes: frozenset[str]
    allow_data_attributes: bool = False

    def allows_attribute(self, name: str) -> bool:
        if name in self.allowed_attributes:
            return True
        return self.allow_data_attributes and name.startswith("data-")


class HtmlSanitiser(Protocol):
    """Protocol for allow-list sanitisers."""

    def sanitise(self, html: str, policy: SanitiserPolicy) -> str:
        """Return *html* reduced to what *policy* allows.

        Args:
            html: Untrusted HTML fragment.
            policy: Allowed tags and attributes.

        Returns:
            Sanitised HTML fragment.
        """
        ...


def inner_html(root: HtmlElement) -> str:
    """Serialise the children (and leading text) of a parsed fragment parent."""
    parts = [html_lib.escape(root.text, quote=False)] if root.text else []
    parts.extend(lxml_html.tostring(child, encoding="unicode") for child in root)
    return "".join(parts)


def strip_non_content(html: str) -> str:
    """Remove script, style, noscript and template elements with their content.

    The markup is parsed with lxml, so unclosed elements are dropped up to
    where the parser ends them. Markup without such elements comes back as
    given.
    """
    if not html or not html.strip():
        return html
    try:
        root = lxml_html.fragment_fromstring(html, create_parent="div")
    except (etree.ParserError, ValueError):
        logger.warning("[SANITISE] could not parse HTML for stripping", exc_info=True)
        return html

    dropped = list(root.iter(*_NON_CONTENT_TAGS))
    if not dropped:
        return html
    for element in dropped:
        # drop_tree() keeps the tail text, which belongs to the parent
        element.drop_tree()
    return inner_html(root)


class BleachSanitiser:
    """HtmlSanitiser backed by bleach, with CSS filtering for inline styles."""

    def __init__(self, css_properties: tuple[str, ...] = _ALLOWED_CSS_PROPERTIES):
        self._css_sanitizer = CSSSanitizer(allowed_css_properties=css_properties)

    def sanitise(self, html: str, policy: SanitiserPolicy) -> str:
        if not html:
            return html

        def _filter_attributes(tag: str, name: str, value: str) -> bool:
            return policy.allows_attribute(name)

        cleaned = bleach.clean(
            strip_non_content(html),
            tags=policy.allowed_tags,
            attributes=_filter_attributes,
            protocols=_ALLOWED_PROTOCOLS,
            css_sanitizer=self._css_sanitizer,
            strip=True,
        )
        logger.debug(
            "[SANITISE] %d -> %d chars (%d tags allowed)",
            len(html),
            len(cleaned),
            len(policy.allowed_tags),
        )
        return cleaned
