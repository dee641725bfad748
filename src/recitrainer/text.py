"""Character classification shared by the masking engine."""

from __future__ import annotations

import re

CONTENT = "content"
SEPARATOR = "separator"

# CJK symbols and punctuation (including the ideographic space) and the
# full-width punctuation blocks of the halfwidth/fullwidth forms range.
_SEPARATOR_RE = re.compile(r"[\u3000-\u303f\uff00-\uff0f\uff1a-\uff20\uff3b-\uff40\uff5b-\uff65]")


def is_separator(char: str) -> bool:
    """Return whether one character is punctuation or spacing that is never hidden."""
    if len(char) != 1:
        raise ValueError(f"Expected a single character, got {char!r}.")
    return _SEPARATOR_RE.match(char) is not None


def classify(char: str) -> str:
    """Return CONTENT or SEPARATOR for one character."""
    return SEPARATOR if is_separator(char) else CONTENT


def content_positions(passage: str) -> list[int]:
    """Return indexes of all content characters in passage order."""
    return [index for index, char in enumerate(passage) if not is_separator(char)]
