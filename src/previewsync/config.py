"""Centralised configuration using pydantic-settings.

All environment variables are read through the Settings class.
Consumers call ``get_settings()`` to obtain a cached, validated instance.
Tests construct ``Settings(_env_file=None, ...)`` directly for isolation.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from previewsync.editor.resolver import PrefixFallback
from previewsync.preview.sanitiser import SanitiserPolicy
from previewsync.preview.search import SearchMarker

logger = logging.getLogger(__name__)

# src/previewsync/config.py  ->  parent x3  ->  project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


# ---------------------------------------------------------------------------
# Sub-models (one per configuration domain)
# ---------------------------------------------------------------------------
class SelectionConfig(BaseModel):
    """Preview selection extraction."""

    # Minimal addressable units for block-relative offsets
    block_tags: frozenset[str] = frozenset(
        (
            "p",
            "h1",
            "h2",
            "h3",
            "h4",
            "h5",
            "h6",
            "li",
            "ul",
            "ol",
            "div",
            "blockquote",
            "pre",
        )
    )
    # Presses on these elements never start a selection gesture
    ignored_start_tags: frozenset[str] = frozenset(("input", "button", "img"))

    @field_validator("block_tags", "ignored_start_tags")
    @classmethod
    def _lowercase_tags(cls, value: frozenset[str]) -> frozenset[str]:
        return frozenset(tag.lower() for tag in value)


class ResolverConfig(BaseModel):
    """Editor position resolution."""

    prefix_fallback: bool = False
    prefix_length: int = 20
    min_prefix_selection: int = 10
    min_similarity: float = 0.9

    @model_validator(mode="after")
    def _check_bounds(self) -> ResolverConfig:
        if not 0.0 < self.min_similarity <= 1.0:
            msg = "RESOLVER__MIN_SIMILARITY must be in (0, 1]"
            raise ValueError(msg)
        if self.prefix_length < 1:
            msg = "RESOLVER__PREFIX_LENGTH must be positive"
            raise ValueError(msg)
        return self

    def fallback(self) -> PrefixFallback | None:
        """Prefix fallback settings, or None when the fallback is disabled."""
        if not self.prefix_fallback:
            return None
        return PrefixFallback(
            prefix_length=self.prefix_length,
            min_selection=self.min_prefix_selection,
            min_similarity=self.min_similarity,
        )


class HighlightConfig(BaseModel):
    """Colours and marker markup for both highlight pipelines."""

    format_name: str = "background"
    selection_color: str = "#ADD8E6"
    match_color: str = "#FFFF99"
    current_match_color: str = "#ADD8E6"
    marker_tag: str = "mark"
    marker_class: str = "search-highlight"
    wrapper_class: str = "search-hit"

    def marker(self) -> SearchMarker:
        return SearchMarker(
            tag=self.marker_tag,
            css_class=self.marker_class,
            wrapper_class=self.wrapper_class,
        )


class SanitiserConfig(BaseModel):
    """Allow-list used for the preview render and marker re-sanitisation."""

    allowed_tags: frozenset[str] = frozenset(
        (
            "p",
            "h1",
            "h2",
            "h3",
            "h4",
            "h5",
            "h6",
            "li",
            "ul",
            "ol",
            "blockquote",
            "strong",
            "em",
            "u",
            "s",
            "sub",
            "sup",
            "mark",
            "br",
            "hr",
            "div",
            "span",
            "pre",
            "code",
            "img",
            "a",
            "table",
            "thead",
            "tbody",
            "tr",
            "th",
            "td",
        )
    )
    allowed_attributes: frozenset[str] = frozenset(
        (
            "style",
            "class",
            "id",
            "src",
            "alt",
            "width",
            "height",
            "href",
            "target",
            "rel",
            "colspan",
            "rowspan",
        )
    )
    allow_data_attributes: bool = True

    def policy(self, highlight: HighlightConfig) -> SanitiserPolicy:
        """Build the policy, always admitting the search marker markup."""
        return SanitiserPolicy(
            allowed_tags=self.allowed_tags | {highlight.marker_tag, "span"},
            allowed_attributes=self.allowed_attributes | {"class"},
            allow_data_attributes=self.allow_data_attributes,
        )


class EditorConfig(BaseModel):
    """Editor commit and paint-tick timing."""

    commit_debounce_ms: int = 300
    paint_tick_ms: int = 0


class AppConfig(BaseModel):
    """Runtime configuration."""

    log_dir: Path = Path("logs")
    log_level: str = "INFO"


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Settings with automatic .env loading and type validation.

    Environment variables use double-underscore delimiter for nesting:
    ``RESOLVER__PREFIX_FALLBACK``, ``EDITOR__COMMIT_DEBOUNCE_MS``, etc.
    """

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    selection: SelectionConfig = SelectionConfig()
    resolver: ResolverConfig = ResolverConfig()
    highlight: HighlightConfig = HighlightConfig()
    sanitiser: SanitiserConfig = SanitiserConfig()
    editor: EditorConfig = EditorConfig()
    app: AppConfig = AppConfig()

    def sanitiser_policy(self) -> SanitiserPolicy:
        return self.sanitiser.policy(self.highlight)


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = Settings()

    env_file = settings.model_config.get("env_file")
    if env_file is not None and Path(str(env_file)).is_file():
        logger.info("Settings loaded .env from: %s", env_file)
    else:
        logger.info("Settings: no .env file found, using env vars and defaults")

    return settings
