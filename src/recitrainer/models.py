"""Core domain models for passage recitation practice."""

from __future__ import annotations

from dataclasses import dataclass

MODE_RANDOM = "random"
MODE_ALL = "all"
MODE_FREE = "free"
MODES = (MODE_RANDOM, MODE_ALL, MODE_FREE)
CHOICE_MODES = frozenset({MODE_RANDOM, MODE_ALL})

MODE_LABELS = {
    MODE_RANDOM: "随机挖空",
    MODE_ALL: "全部挖空",
    MODE_FREE: "自由练习",
}

DEFAULT_PASSAGE_TITLE = "未命名题目"


class InvalidModeError(ValueError):
    """Raised for a practice mode token outside MODES."""

    def __init__(self, mode: object) -> None:
        super().__init__(f"Unknown practice mode: {mode!r} (expected one of {', '.join(MODES)}).")
        self.mode = mode


def validate_mode(mode: object) -> str:
    """Return mode unchanged if it is a known token, else raise InvalidModeError."""
    if not isinstance(mode, str) or mode not in MODES:
        raise InvalidModeError(mode)
    return mode


@dataclass(frozen=True)
class Passage:
    """One text to recite, addressed by its ordinal inside a bank."""

    index: int
    title: str
    hint: str
    content: str


@dataclass(frozen=True)
class QuestionBank:
    """Ordered collection of passages."""

    id: str
    title: str
    description: str
    passages: list[Passage]


@dataclass(frozen=True)
class CompletionCount:
    """Completion counters of one passage, one per mode."""

    random: int = 0
    all: int = 0
    free: int = 0

    def get(self, mode: str) -> int:
        """Return the counter for one mode."""
        return int(getattr(self, validate_mode(mode)))
