"""Multiple-choice candidates for one hidden character."""

from __future__ import annotations

from .masking import RandomSource, default_rng
from .text import is_separator

FILLER_CHARS = "之乎者也矣"
OPTION_COUNT = 6


def distractor_pool(passage: str, correct: str) -> list[str]:
    """Return distinct passage characters other than correct, then unused fillers."""
    pool: list[str] = []
    seen = {correct}
    for char in passage:
        if char in seen or is_separator(char):
            continue
        seen.add(char)
        pool.append(char)
    for char in FILLER_CHARS:
        if char not in seen:
            seen.add(char)
            pool.append(char)
    return pool


def generate_options(passage: str, correct: str, rng: RandomSource | None = None) -> tuple[str, ...]:
    """Return correct plus up to five distinct distractors in shuffled order."""
    source = rng or default_rng()
    pool = distractor_pool(passage, correct)
    distractors = source.sample(pool, min(OPTION_COUNT - 1, len(pool)))
    options = [correct, *distractors]
    source.shuffle(options)
    return tuple(options)
