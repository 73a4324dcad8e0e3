"""Whitespace normalisation for comparing text across representations.

The preview (rendered, sanitised HTML) and the editor (linear text buffer)
disagree mostly about whitespace: collapsed runs, non-breaking spaces,
trailing newlines. Comparing normalised strings absorbs those differences.
"""

# Pattern: Functional Core (pure functions, no state)

from __future__ import annotations

import re

# Any whitespace run, including \u00a0 (nbsp)
_WHITESPACE_RUN = re.compile(r"[\s\u00a0]+")


def _is_space(char: str) -> bool:
    return char == "\u00a0" or char.isspace()


def normalise_text(text: str) -> str:
    """Collapse whitespace runs (including nbsp) to one space and trim.

    >>> normalise_text("  Hello\\u00a0\\n world  ")
    'Hello world'
    """
    return _WHITESPACE_RUN.sub(" ", text).strip(" ")


def normalise_with_map(text: str) -> tuple[str, list[int]]:
    """Normalise *text* and record where each output character came from.

    Returns:
        ``(normalised, index_map)`` where ``index_map[i]`` is the index in
        *text* of the raw character that produced ``normalised[i]``. A
        collapsed whitespace run maps to its first raw character.
    """
    out: list[str] = []
    index_map: list[int] = []
    pending_space: int | None = None

    for raw_index, char in enumerate(text):
        if _is_space(char):
            # Leading whitespace is trimmed; inner runs keep their first index
            if out and pending_space is None:
                pending_space = raw_index
            continue
        if pending_space is not None:
            out.append(" ")
            index_map.append(pending_space)
            pending_space = None
        out.append(char)
        index_map.append(raw_index)

    return "".join(out), index_map


def raw_to_normalised_offset(text: str, raw_offset: int) -> int:
    """Map a raw offset in *text* to the matching offset in its normalised form.

    Counts the normalised characters produced strictly before *raw_offset*.
    Offsets beyond the end of *text* extend linearly past the normalised
    length, so spans that run off a block still map to a usable length.
    """
    normalised, index_map = normalise_with_map(text)
    if raw_offset > len(text):
        return len(normalised) + (raw_offset - len(text))

    count = 0
    for raw_index in index_map:
        if raw_index >= raw_offset:
            break
        count += 1
    return count
