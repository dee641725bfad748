"""Runtime configuration from command-line flags and environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .debounce import DEFAULT_INTERVAL_SECONDS

DEFAULT_DB_PATH = Path(".recitrainer") / "progress.db"

ENV_DB = "RECITRAINER_DB"
ENV_BANK_DIR = "RECITRAINER_BANK_DIR"
ENV_LOG_FILE = "RECITRAINER_LOG_FILE"
ENV_DEBOUNCE_MS = "RECITRAINER_DEBOUNCE_MS"


@dataclass(frozen=True)
class AppConfig:
    """Resolved settings for one run."""

    db_path: Path = DEFAULT_DB_PATH
    bank_dir: Path | None = None
    log_file: Path | None = None
    debounce_seconds: float = DEFAULT_INTERVAL_SECONDS


def load_config(
    db_path: str | None = None,
    bank_dir: str | None = None,
    log_file: str | None = None,
    debounce_ms: int | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Resolve settings: explicit arguments, then environment, then defaults."""
    env = os.environ if environ is None else environ

    db_text = db_path or env.get(ENV_DB, "").strip()
    bank_text = bank_dir or env.get(ENV_BANK_DIR, "").strip()
    log_text = log_file or env.get(ENV_LOG_FILE, "").strip()

    if debounce_ms is None:
        raw_ms = env.get(ENV_DEBOUNCE_MS, "").strip()
        if raw_ms:
            try:
                debounce_ms = int(raw_ms)
            except ValueError as exc:
                raise ValueError(f"{ENV_DEBOUNCE_MS} must be an integer, got {raw_ms!r}.") from exc
    if debounce_ms is not None and debounce_ms < 0:
        raise ValueError("Debounce interval must not be negative.")

    return AppConfig(
        db_path=Path(db_text) if db_text else DEFAULT_DB_PATH,
        bank_dir=Path(bank_text) if bank_text else None,
        log_file=Path(log_text) if log_text else None,
        debounce_seconds=DEFAULT_INTERVAL_SECONDS if debounce_ms is None else debounce_ms / 1000,
    )
