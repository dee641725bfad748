from __future__ import annotations

import random
import shutil
import sys
from collections.abc import Iterator
from pathlib import Path
from uuid import uuid4

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from recitrainer.models import Passage  # noqa: E402

LUNYU = "学而时习之，不亦说乎？"


class FixedRandom:
    """Replays fixed random() values (cycling); sample/shuffle come from a seeded Random."""

    def __init__(self, values: list[float], seed: int = 7) -> None:
        self._values = list(values)
        self._position = 0
        self._inner = random.Random(seed)

    def random(self) -> float:
        value = self._values[self._position % len(self._values)]
        self._position += 1
        return value

    def sample(self, population: list[str], k: int) -> list[str]:
        return self._inner.sample(population, k)

    def shuffle(self, x: list[str]) -> None:
        self._inner.shuffle(x)


def make_passage(content: str, index: int = 0) -> Passage:
    return Passage(index=index, title=f"p{index}", hint="", content=content)


def _tmp_path_fixture() -> Iterator[Path]:
    """Provide a per-test directory under `.tmp_pytest/` in the project root.

    Overrides pytest's builtin ``tmp_path`` so tests never depend on the
    system temp location.
    """
    base = ROOT / ".tmp_pytest"
    base.mkdir(parents=True, exist_ok=True)
    path = base / str(uuid4())
    path.mkdir(parents=True, exist_ok=False)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        try:
            next(base.iterdir())
        except StopIteration:
            base.rmdir()
        except FileNotFoundError:
            pass


tmp_path = pytest.fixture(name="tmp_path")(_tmp_path_fixture)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
