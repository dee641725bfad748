"""Application service for question banks, practice sessions and completion counters."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .config import AppConfig
from .content_loader import load_banks, load_banks_from_dir
from .debounce import DEFAULT_INTERVAL_SECONDS, Clock
from .masking import RandomSource
from .models import MODES, CompletionCount, Passage, QuestionBank, validate_mode
from .progress import ProgressStore
from .session import CompletionEvent, Session, new_session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BankSummary:
    """Bank metadata with how many passages were completed in any mode."""

    id: str
    title: str
    description: str
    passage_count: int
    completed_passages: int


@dataclass(frozen=True)
class PassageProgress:
    """One passage row of a bank progress listing."""

    index: int
    title: str
    hint: str
    counts: CompletionCount


@dataclass(eq=False)
class Practice:
    """An active session together with the bank and passage it belongs to."""

    bank: QuestionBank
    passage: Passage
    counts: CompletionCount
    session: Session = field(init=False)
    completions: int = 0

    @property
    def mode(self) -> str:
        return self.session.mode

    @property
    def has_next(self) -> bool:
        return self.passage.index < len(self.bank.passages) - 1

    @property
    def has_prev(self) -> bool:
        return self.passage.index > 0


class TrainerService:
    """Coordinates banks, sessions and the completion store."""

    def __init__(
        self,
        db_path: Path | str,
        banks: dict[str, QuestionBank] | None = None,
        rng: RandomSource | None = None,
        debounce_seconds: float = DEFAULT_INTERVAL_SECONDS,
        clock: Clock | None = None,
    ) -> None:
        """Initialize service with database path and banks (bundled banks by default)."""
        self.banks = load_banks() if banks is None else banks
        self.progress = ProgressStore(db_path)
        self._rng = rng
        self._debounce_seconds = debounce_seconds
        self._clock = clock

    @classmethod
    def from_config(cls, config: AppConfig) -> TrainerService:
        """Build a service from resolved settings."""
        banks = load_banks_from_dir(config.bank_dir) if config.bank_dir is not None else None
        return cls(db_path=config.db_path, banks=banks, debounce_seconds=config.debounce_seconds)

    def list_banks(self) -> list[BankSummary]:
        """Return banks sorted by id."""
        summaries: list[BankSummary] = []
        for bank in sorted(self.banks.values(), key=lambda item: item.id):
            counts = self.progress.all_counts(bank.id, len(bank.passages))
            completed = len([item for item in counts if any(item.get(mode) for mode in MODES)])
            summaries.append(
                BankSummary(
                    id=bank.id,
                    title=bank.title,
                    description=bank.description,
                    passage_count=len(bank.passages),
                    completed_passages=completed,
                )
            )
        return summaries

    def get_bank(self, bank_id: str) -> QuestionBank | None:
        """Get bank by id."""
        return self.banks.get(bank_id)

    def bank_progress(self, bank_id: str) -> list[PassageProgress]:
        """Return completion counters for every passage of a bank."""
        bank = self.banks[bank_id]
        counts = self.progress.all_counts(bank.id, len(bank.passages))
        return [
            PassageProgress(index=passage.index, title=passage.title, hint=passage.hint, counts=count)
            for passage, count in zip(bank.passages, counts)
        ]

    def completion_counts(self, bank_id: str, passage_index: int) -> CompletionCount:
        """Return counters for one passage."""
        return self.progress.counts(bank_id, passage_index)

    def start(self, bank_id: str, passage_index: int, mode: str) -> Practice:
        """Begin practising one passage of a bank under mode."""
        mode = validate_mode(mode)
        bank = self.banks[bank_id]
        if not 0 <= passage_index < len(bank.passages):
            raise IndexError(f"Bank '{bank_id}' has no passage {passage_index}.")
        passage = bank.passages[passage_index]
        practice = Practice(bank=bank, passage=passage, counts=self.progress.counts(bank.id, passage.index))

        def on_complete(event: CompletionEvent) -> None:
            self._record_completion(practice, event)

        practice.session = new_session(
            passage,
            mode,
            self._rng,
            on_complete,
            debounce_seconds=self._debounce_seconds,
            clock=self._clock,
        )
        logger.info("Started %s passage %s in %s mode", bank.id, passage.index, mode)
        return practice

    def change_mode(self, practice: Practice, mode: str) -> Practice:
        """Restart the same passage under another mode."""
        return self.start(practice.bank.id, practice.passage.index, mode)

    def next_passage(self, practice: Practice) -> Practice:
        """Move to the following passage; the same practice when already at the last one."""
        if not practice.has_next:
            return practice
        return self.start(practice.bank.id, practice.passage.index + 1, practice.mode)

    def prev_passage(self, practice: Practice) -> Practice:
        """Move to the preceding passage; the same practice when already at the first one."""
        if not practice.has_prev:
            return practice
        return self.start(practice.bank.id, practice.passage.index - 1, practice.mode)

    def reset_progress(self, bank_id: str) -> int:
        """Forget all completion counters of a bank."""
        if bank_id not in self.banks:
            raise KeyError(bank_id)
        removed = self.progress.reset(bank_id)
        logger.info("Reset %s completion rows for %s", removed, bank_id)
        return removed

    def _record_completion(self, practice: Practice, event: CompletionEvent) -> None:
        practice.counts = self.progress.increment(practice.bank.id, event.passage_index, event.mode)
        practice.completions += 1

    def close(self) -> None:
        """Close resources."""
        self.progress.close()

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort cleanup for test/process teardown."""
        try:
            self.close()
        except Exception:
            pass
