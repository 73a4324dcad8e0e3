"""Shared pytest fixtures for previewsync tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from previewsync.config import Settings, get_settings
from previewsync.editor.memory import InMemoryRichTextDocument
from previewsync.preview.sanitiser import BleachSanitiser
from tests.fakes import ManualScheduler

if TYPE_CHECKING:
    from collections.abc import Iterator

    from previewsync.preview.sanitiser import SanitiserPolicy

# Editor text used throughout: two sentences sharing the word "Hello"
EDITOR_TEXT = "Hello world. Hello there."
PREVIEW_HTML = "<p>Hello world.</p><p>Hello there.</p>"


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Iterator[None]:
    """Each test sees a fresh get_settings() result."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def sanitiser() -> BleachSanitiser:
    return BleachSanitiser()


@pytest.fixture
def policy(settings: Settings) -> SanitiserPolicy:
    return settings.sanitiser_policy()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def editor() -> InMemoryRichTextDocument:
    return InMemoryRichTextDocument(EDITOR_TEXT)
