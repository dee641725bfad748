"""SQLite persistence for per-passage completion counters."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from .models import MODES, CompletionCount, validate_mode

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


@dataclass(frozen=True)
class CompletionRow:
    """One stored counter."""

    bank_id: str
    passage_index: int
    mode: str
    count: int
    last_completed_at: str


class ProgressStore:
    """Database access layer for completion counters."""

    def __init__(self, db_path: Path | str) -> None:
        """Open the database and bring its schema up to date."""
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_path)
        else:
            target = db_path
        self._conn = sqlite3.connect(target)
        self._conn.row_factory = sqlite3.Row
        self._apply_migrations()

    def _apply_migrations(self) -> None:
        """Apply forward-only schema migrations to latest version."""
        current = int(self._conn.execute("PRAGMA user_version").fetchone()[0])
        if current > SCHEMA_VERSION:
            raise RuntimeError(f"Database schema version {current} is newer than supported {SCHEMA_VERSION}.")

        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """)

        for version in range(current + 1, SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1()
            with self._conn:
                self._conn.execute(f"PRAGMA user_version = {version}")
                self._conn.execute(
                    "INSERT OR REPLACE INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now(UTC).isoformat()),
                )
            logger.info("Applied progress schema migration %s", version)

    def _migrate_to_v1(self) -> None:
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS completions (
                    bank_id TEXT NOT NULL,
                    passage_index INTEGER NOT NULL,
                    mode TEXT NOT NULL,
                    count INTEGER NOT NULL,
                    last_completed_at TEXT NOT NULL,
                    PRIMARY KEY (bank_id, passage_index, mode)
                )
                """)

    def increment(self, bank_id: str, passage_index: int, mode: str) -> CompletionCount:
        """Add one completion for a passage under mode and return its updated counters."""
        mode = validate_mode(mode)
        now = datetime.now(UTC).isoformat()
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO completions (bank_id, passage_index, mode, count, last_completed_at)
                VALUES (?, ?, ?, 1, ?)
                ON CONFLICT(bank_id, passage_index, mode) DO UPDATE SET
                    count = count + 1,
                    last_completed_at = excluded.last_completed_at
                """,
                (bank_id, passage_index, mode, now),
            )
        return self.counts(bank_id, passage_index)

    def counts(self, bank_id: str, passage_index: int) -> CompletionCount:
        """Return counters for one passage; zeros when it was never completed."""
        rows = self._conn.execute(
            "SELECT mode, count FROM completions WHERE bank_id = ? AND passage_index = ?",
            (bank_id, passage_index),
        ).fetchall()
        return _count_from_rows(rows)

    def all_counts(self, bank_id: str, passage_count: int) -> list[CompletionCount]:
        """Return counters for passages 0..passage_count-1 of a bank."""
        rows = self._conn.execute(
            "SELECT passage_index, mode, count FROM completions WHERE bank_id = ?",
            (bank_id,),
        ).fetchall()
        by_index: dict[int, list[sqlite3.Row]] = {}
        for row in rows:
            by_index.setdefault(int(row["passage_index"]), []).append(row)
        return [_count_from_rows(by_index.get(index, [])) for index in range(passage_count)]

    def list_rows(self, bank_id: str) -> list[CompletionRow]:
        """Return stored counters of a bank ordered by passage and mode."""
        rows = self._conn.execute(
            """
            SELECT bank_id, passage_index, mode, count, last_completed_at
            FROM completions
            WHERE bank_id = ?
            ORDER BY passage_index, mode
            """,
            (bank_id,),
        ).fetchall()
        return [
            CompletionRow(
                bank_id=str(row["bank_id"]),
                passage_index=int(row["passage_index"]),
                mode=str(row["mode"]),
                count=int(row["count"]),
                last_completed_at=str(row["last_completed_at"]),
            )
            for row in rows
        ]

    def reset(self, bank_id: str) -> int:
        """Delete all counters of a bank; return the number of rows removed."""
        with self._conn:
            cursor = self._conn.execute("DELETE FROM completions WHERE bank_id = ?", (bank_id,))
        return cursor.rowcount

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort connection cleanup."""
        try:
            self.close()
        except Exception:
            pass


def _count_from_rows(rows: list[sqlite3.Row]) -> CompletionCount:
    values = {mode: 0 for mode in MODES}
    for row in rows:
        mode = str(row["mode"])
        if mode in values:
            values[mode] = int(row["count"])
    return CompletionCount(**values)
