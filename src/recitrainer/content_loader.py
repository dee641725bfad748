"""Load question banks from bundled or user-supplied JSON files."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any

from .models import DEFAULT_PASSAGE_TITLE, Passage, QuestionBank

CONTENT_PACKAGE = "recitrainer.content.banks"


def _passage_from_dict(bank_id: str, index: int, raw: dict[str, Any]) -> Passage:
    """Build a passage from raw JSON content."""
    if not isinstance(raw, dict):
        raise ValueError(f"Passage {index} in bank '{bank_id}' must be a JSON object.")
    content = str(raw.get("content", "")).strip()
    if not content:
        raise ValueError(f"Passage {index} in bank '{bank_id}' has no content.")
    title = str(raw.get("title", "")).strip() or DEFAULT_PASSAGE_TITLE
    return Passage(index=index, title=title, hint=str(raw.get("hint", "")).strip(), content=content)


def _bank_from_dict(raw: object, fallback_id: str) -> QuestionBank:
    """Build a question bank from raw JSON content."""
    if not isinstance(raw, dict):
        raise ValueError(f"Bank '{fallback_id}' root must be a JSON object.")
    bank_id = str(raw.get("id") or fallback_id)
    raw_passages = raw.get("passages", [])
    if not isinstance(raw_passages, list):
        raise ValueError(f"Bank '{bank_id}' passages must be a list.")
    passages = [_passage_from_dict(bank_id, index, item) for index, item in enumerate(raw_passages)]
    return QuestionBank(
        id=bank_id,
        title=str(raw.get("title") or bank_id),
        description=str(raw.get("description", "")),
        passages=passages,
    )


def load_bank_file(path: Path) -> QuestionBank:
    """Load one bank; the file stem is the id when the file does not name one."""
    raw = json.loads(path.read_text(encoding="utf-8-sig"))
    return _bank_from_dict(raw, path.stem)


def load_banks() -> dict[str, QuestionBank]:
    """Load bundled banks."""
    banks: dict[str, QuestionBank] = {}
    for entry in sorted(resources.files(CONTENT_PACKAGE).iterdir(), key=lambda item: item.name):
        if entry.name.endswith(".json"):
            raw = json.loads(entry.read_text(encoding="utf-8-sig"))
            _add_bank(banks, _bank_from_dict(raw, entry.name.removesuffix(".json")))
    return banks


def load_banks_from_dir(path: Path) -> dict[str, QuestionBank]:
    """Load every *.json bank in a directory."""
    banks: dict[str, QuestionBank] = {}
    for file_path in sorted(path.glob("*.json")):
        _add_bank(banks, load_bank_file(file_path))
    return banks


def _add_bank(banks: dict[str, QuestionBank], bank: QuestionBank) -> None:
    if bank.id in banks:
        raise ValueError(f"Duplicate bank id: {bank.id}")
    banks[bank.id] = bank
