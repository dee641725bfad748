"""Practice session state machines for choice and free-typed modes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .debounce import DEFAULT_INTERVAL_SECONDS, Clock, Debouncer
from .masking import Mask, RandomSource, create_mask, default_rng, is_pre_revealed
from .models import CHOICE_MODES, MODE_FREE, MODE_RANDOM, Passage, validate_mode
from .navigator import (
    find_next_answerable,
    find_prev_answerable,
    last_content_position,
    next_segment_start,
    prev_segment_start,
    segment_bounds,
)
from .options import generate_options
from .text import is_separator

logger = logging.getLogger(__name__)

HIDDEN_PLACEHOLDER = "＿"
NO_POSITION = -1


@dataclass(frozen=True)
class CompletionEvent:
    """Emitted once each time a passage becomes complete under a mode."""

    passage_index: int
    mode: str


CompletionHandler = Callable[[CompletionEvent], None]


class CompletionTracker:
    """Turn a level "is complete" signal into single completion events."""

    def __init__(self, passage_index: int, mode: str, on_complete: CompletionHandler | None = None) -> None:
        self.passage_index = passage_index
        self.mode = mode
        self._on_complete = on_complete
        self._complete = False
        self.fired = 0

    @property
    def complete(self) -> bool:
        return self._complete

    def prime(self, complete: bool) -> None:
        """Record the state at mode entry without emitting anything."""
        self._complete = complete

    def observe(self, complete: bool) -> bool:
        """Record the state after a transition; emit on an incomplete-to-complete edge."""
        edge = complete and not self._complete
        self._complete = complete
        if not edge:
            return False
        self.fired += 1
        logger.info("Passage %s completed in %s mode", self.passage_index, self.mode)
        if self._on_complete is not None:
            self._on_complete(CompletionEvent(passage_index=self.passage_index, mode=self.mode))
        return True


class _Session:
    """State shared by both session families."""

    mode: str
    cursor: int

    def __init__(
        self,
        passage: Passage,
        mode: str,
        rng: RandomSource | None = None,
        on_complete: CompletionHandler | None = None,
    ) -> None:
        self.passage = passage
        self.text = passage.content
        self.mode = validate_mode(mode)
        self._rng = rng or default_rng()
        self.mask: Mask = []
        self.snapshot: Mask | None = None
        self.tracker = CompletionTracker(passage.index, self.mode, on_complete)
        self.redo()

    @property
    def has_content(self) -> bool:
        return any(not is_separator(char) for char in self.text)

    @property
    def hidden_count(self) -> int:
        """Number of content positions currently hidden."""
        return sum(1 for char, cell in zip(self.text, self.mask) if cell is None and not is_separator(char))

    @property
    def is_complete(self) -> bool:
        raise NotImplementedError

    def render(self, placeholder: str = HIDDEN_PLACEHOLDER) -> str:
        """Return the passage with hidden positions replaced by placeholder."""
        return "".join(placeholder if cell is None else cell for cell in self.mask)

    def redo(self) -> None:
        """Restart the passage as if the mode had just been entered."""
        result = create_mask(self.text, self.mode, self._rng)
        self.mask = result.mask
        self.snapshot = result.snapshot
        self._reset_position()
        self.tracker.prime(self.is_complete)

    def _reset_position(self) -> None:
        raise NotImplementedError

    def _after_transition(self) -> bool:
        return self.tracker.observe(self.is_complete)


class ChoiceSession(_Session):
    """Multiple-choice practice for the "random" and "all" modes."""

    def __init__(
        self,
        passage: Passage,
        mode: str,
        rng: RandomSource | None = None,
        on_complete: CompletionHandler | None = None,
    ) -> None:
        if validate_mode(mode) not in CHOICE_MODES:
            raise ValueError(f"ChoiceSession does not support mode {mode!r}.")
        self.cursor = NO_POSITION
        self.options: tuple[str, ...] = ()
        self.incorrect: set[str] = set()
        super().__init__(passage, mode, rng, on_complete)

    @property
    def is_complete(self) -> bool:
        return self.has_content and self.hidden_count == 0

    def is_answerable(self, index: int) -> bool:
        """Return whether index can ever be an answer target in this session."""
        if not 0 <= index < len(self.text):
            return False
        return not is_separator(self.text[index]) and not is_pre_revealed(self.snapshot, index)

    def select(self, index: int) -> bool:
        """Move the cursor to a hidden answerable position the learner tapped."""
        if not self.is_answerable(index) or self.mask[index] is not None:
            return False
        self._move_cursor(index)
        return True

    def choose(self, char: str) -> bool:
        """Answer the cursor position; a wrong pick only tags the option."""
        if self.cursor == NO_POSITION:
            return False
        if char != self.text[self.cursor]:
            self.incorrect.add(char)
            return False
        self.mask[self.cursor] = char
        self._move_cursor(self._next_hidden(self.cursor + 1))
        self._after_transition()
        return True

    def undo_char(self) -> bool:
        """Hide the nearest answered position before the cursor and move there."""
        before = len(self.text) if self.cursor == NO_POSITION else self.cursor
        target = find_prev_answerable(self.text, self.mask, before, self.snapshot)
        if target is None:
            return False
        self.mask[target] = None
        self._move_cursor(target)
        self._after_transition()
        return True

    def undo_segment(self) -> bool:
        """Re-hide the cursor's segment, or the previous one when nothing precedes the cursor in it."""
        anchor = self.cursor if self.cursor != NO_POSITION else last_content_position(self.text)
        if anchor is None:
            return False

        start, _ = segment_bounds(self.text, anchor)
        if self.cursor != NO_POSITION:
            answered = find_prev_answerable(self.text, self.mask, self.cursor, self.snapshot)
            if answered is None or answered < start:
                previous = prev_segment_start(self.text, start)
                if previous is not None:
                    start = previous
        _, end = segment_bounds(self.text, start)

        changed = False
        for index in range(start, end):
            if self.is_answerable(index) and self.mask[index] is not None:
                self.mask[index] = None
                changed = True

        target = self._next_hidden(start)
        if not changed and (NO_POSITION if target is None else target) == self.cursor:
            return False
        self._move_cursor(target)
        self._after_transition()
        return True

    def clear_all(self) -> None:
        """Hide every answerable position again."""
        if self.mode == MODE_RANDOM and self.snapshot is not None:
            self.mask = list(self.snapshot)
        else:
            self.mask = create_mask(self.text, self.mode, self._rng).mask
        self._reset_position()
        self._after_transition()

    def _reset_position(self) -> None:
        self._move_cursor(self._next_hidden(0))

    def _next_hidden(self, start: int) -> int | None:
        """First open position at or after start, wrapping to the earliest one; None only when none is left."""
        found = find_next_answerable(self.text, self.mask, start, self.snapshot)
        if found is None and start > 0:
            found = find_next_answerable(self.text, self.mask, 0, self.snapshot)
        return found

    def _move_cursor(self, index: int | None) -> None:
        self.incorrect = set()
        if index is None:
            self.cursor = NO_POSITION
            self.options = ()
            return
        self.cursor = index
        self.options = generate_options(self.text, self.text[index], self._rng)


class FreeTypedSession(_Session):
    """Free-typed practice: each segment must be typed correctly before the next opens.

    `cursor` is the first content position of the segment being typed and
    reaches len(text) once every segment is confirmed.
    """

    def __init__(
        self,
        passage: Passage,
        rng: RandomSource | None = None,
        on_complete: CompletionHandler | None = None,
        *,
        debounce_seconds: float = DEFAULT_INTERVAL_SECONDS,
        clock: Clock | None = None,
    ) -> None:
        self.cursor = 0
        self.typed = ""
        self.validated = ""
        self.debouncer = Debouncer(debounce_seconds) if clock is None else Debouncer(debounce_seconds, clock)
        super().__init__(passage, MODE_FREE, rng, on_complete)

    @property
    def is_complete(self) -> bool:
        return self.has_content and self.cursor >= len(self.text)

    @property
    def segment(self) -> tuple[int, int]:
        """Bounds of the segment being typed."""
        return segment_bounds(self.text, self.cursor)

    def type_text(self, text: str, now: float | None = None) -> None:
        """Replace the typed buffer and restart the validation delay."""
        self.typed = text
        self.debouncer.submit(self._validate_typed, now)

    def poll(self, now: float | None = None) -> bool:
        """Validate the typed buffer if the quiet interval has elapsed."""
        return self.debouncer.poll(now)

    def flush(self) -> bool:
        """Validate a pending typed buffer immediately."""
        return self.debouncer.flush()

    def _validate_typed(self) -> None:
        self.commit(self.typed)

    def commit(self, text: str) -> bool:
        """Check text against the current segment; return True when it completes the segment."""
        self.debouncer.cancel()
        if self.cursor >= len(self.text):
            return False
        self.typed = text
        self.validated = text

        start, end = self.segment
        position = start
        mismatch = False
        for char in text:
            if position >= end:
                break
            if char == self.text[position]:
                self.mask[position] = char
            else:
                self.mask[position] = None
                mismatch = True
            position += 1
            if mismatch:
                break

        for index in range(position, end):
            self.mask[index] = None

        if mismatch or position < end:
            self._after_transition()
            return False

        self.typed = ""
        self.validated = ""
        self.cursor = next_segment_start(self.text, end)
        logger.debug("Segment %s-%s confirmed; next segment starts at %s", start, end, self.cursor)
        self._after_transition()
        return True

    def character_status(self, offset: int) -> str:
        """Return "correct", "incorrect" or "neutral" for one validated keystroke."""
        if not 0 <= offset < len(self.validated):
            return "neutral"
        target = self.cursor + offset
        if target >= len(self.text) or is_separator(self.text[target]):
            return "neutral"
        return "correct" if self.validated[offset] == self.text[target] else "incorrect"

    def undo_char(self) -> bool:
        """Hide the nearest revealed content position before the segment start."""
        target = find_prev_answerable(self.text, self.mask, self.cursor)
        if target is None:
            return False
        self.mask[target] = None
        self._after_transition()
        return True

    def undo_segment(self) -> bool:
        """Reopen the previous segment, discarding any progress in the current one."""
        changed = bool(self.typed)
        if self.cursor < len(self.text):
            start, end = self.segment
            for index in range(start, end):
                if self.mask[index] is not None:
                    self.mask[index] = None
                    changed = True
        self._clear_typed()

        previous = prev_segment_start(self.text, self.cursor)
        if previous is not None:
            for index in range(previous, min(self.cursor, len(self.text))):
                if not is_separator(self.text[index]):
                    self.mask[index] = None
            self.cursor = previous
            changed = True
        if changed:
            self._after_transition()
        return changed

    def clear_all(self) -> None:
        """Hide everything and return to the first segment."""
        self.mask = create_mask(self.text, MODE_FREE, self._rng).mask
        self._reset_position()
        self._after_transition()

    def _reset_position(self) -> None:
        self.cursor = next_segment_start(self.text, 0)
        self._clear_typed()

    def _clear_typed(self) -> None:
        self.typed = ""
        self.validated = ""
        self.debouncer.cancel()


Session = ChoiceSession | FreeTypedSession


def new_session(
    passage: Passage | str,
    mode: str,
    rng: RandomSource | None = None,
    on_complete: CompletionHandler | None = None,
    *,
    debounce_seconds: float = DEFAULT_INTERVAL_SECONDS,
    clock: Clock | None = None,
) -> Session:
    """Create the session family that handles mode."""
    if isinstance(passage, str):
        passage = Passage(index=0, title="", hint="", content=passage)
    mode = validate_mode(mode)
    if mode == MODE_FREE:
        return FreeTypedSession(passage, rng, on_complete, debounce_seconds=debounce_seconds, clock=clock)
    return ChoiceSession(passage, mode, rng, on_complete)
