"""Initial reveal/hide patterns for each practice mode."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Protocol

from .models import MODE_RANDOM, validate_mode
from .text import is_separator

Mask = list[str | None]

_default_rng = random.Random()


class RandomSource(Protocol):
    """Subset of random.Random used by the engine."""

    def random(self) -> float: ...

    def sample(self, population: list[str], k: int) -> list[str]: ...

    def shuffle(self, x: list[str]) -> None: ...


@dataclass(frozen=True)
class MaskResult:
    """Mask buffer plus the random-mode snapshot of pre-revealed positions."""

    mask: Mask
    snapshot: Mask | None


def default_rng() -> RandomSource:
    """Return the process-wide randomness source."""
    return _default_rng


def create_mask(passage: str, mode: str, rng: RandomSource | None = None) -> MaskResult:
    """Build the starting mask for passage under mode.

    Separators are always revealed. In "all" and "free" every content position
    starts hidden; in "random" each content position is hidden with probability
    one half and the result is also returned as the snapshot.
    """
    mode = validate_mode(mode)
    if mode != MODE_RANDOM:
        return MaskResult(mask=[char if is_separator(char) else None for char in passage], snapshot=None)

    source = rng or _default_rng
    mask: Mask = []
    for char in passage:
        if is_separator(char):
            mask.append(char)
        else:
            mask.append(None if source.random() >= 0.5 else char)
    return MaskResult(mask=mask, snapshot=list(mask))


def is_pre_revealed(snapshot: Mask | None, index: int) -> bool:
    """Return whether index was revealed when the random mask was created."""
    return snapshot is not None and snapshot[index] is not None
