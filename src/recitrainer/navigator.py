"""Segment boundaries and answerable-position search over a mask buffer."""

from __future__ import annotations

from .masking import Mask, is_pre_revealed
from .text import is_separator


def find_next_answerable(passage: str, mask: Mask, start: int, snapshot: Mask | None = None) -> int | None:
    """Return the first hidden, answerable position at or after start."""
    for index in range(max(start, 0), len(passage)):
        if is_separator(passage[index]) or mask[index] is not None:
            continue
        if is_pre_revealed(snapshot, index):
            continue
        return index
    return None


def find_prev_answerable(passage: str, mask: Mask, before: int, snapshot: Mask | None = None) -> int | None:
    """Return the nearest revealed, answerable position strictly before `before`."""
    for index in range(min(before, len(passage)) - 1, -1, -1):
        if is_separator(passage[index]) or mask[index] is None:
            continue
        if is_pre_revealed(snapshot, index):
            continue
        return index
    return None


def segment_bounds(passage: str, anchor: int) -> tuple[int, int]:
    """Return (start, end) of the content run around anchor.

    `end` is the index of the next separator or len(passage). An anchor that
    sits on a separator belongs to the run that the separator terminates.
    """
    anchor = min(max(anchor, 0), len(passage))
    start = anchor
    while start > 0 and not is_separator(passage[start - 1]):
        start -= 1
    end = anchor
    while end < len(passage) and not is_separator(passage[end]):
        end += 1
    return (start, end)


def next_segment_start(passage: str, index: int) -> int:
    """Skip the separators at or after index; len(passage) when none remain."""
    index = max(index, 0)
    while index < len(passage) and is_separator(passage[index]):
        index += 1
    return min(index, len(passage))


def prev_segment_start(passage: str, start: int) -> int | None:
    """Return the first content position of the segment before the one at start."""
    index = min(start, len(passage)) - 1
    while index >= 0 and is_separator(passage[index]):
        index -= 1
    if index < 0:
        return None
    return segment_bounds(passage, index)[0]


def last_content_position(passage: str) -> int | None:
    """Return the index of the final content character."""
    for index in range(len(passage) - 1, -1, -1):
        if not is_separator(passage[index]):
            return index
    return None
