import random
from pathlib import Path

from recitrainer.config import AppConfig
from recitrainer.models import CompletionCount, QuestionBank
from recitrainer.service import TrainerService
from recitrainer.session import ChoiceSession, FreeTypedSession

from conftest import LUNYU, make_passage


def _bank() -> QuestionBank:
    contents = [LUNYU, "不以物喜，不以己悲。", "温故而知新。"]
    passages = [make_passage(content, index) for index, content in enumerate(contents)]
    return QuestionBank(id="t", title="Test", description="", passages=passages)


def _service() -> TrainerService:
    return TrainerService(":memory:", banks={"t": _bank()}, rng=random.Random(5))


def _answer_all(session: ChoiceSession) -> None:
    while session.cursor != -1:
        session.choose(session.text[session.cursor])


def test_default_service_loads_bundled_banks() -> None:
    service = TrainerService(":memory:")
    assert "classics" in service.banks
    summaries = service.list_banks()
    assert [summary.id for summary in summaries] == ["classics"]
    assert summaries[0].passage_count == 4
    assert summaries[0].completed_passages == 0
    service.close()


def test_start_creates_session_for_mode() -> None:
    service = _service()
    practice = service.start("t", 0, "all")
    assert isinstance(practice.session, ChoiceSession)
    assert practice.mode == "all"
    assert practice.passage.index == 0
    assert practice.counts == CompletionCount()
    assert isinstance(service.start("t", 0, "free").session, FreeTypedSession)


def test_start_validates_arguments() -> None:
    service = _service()
    try:
        service.start("t", 0, "dictation")
        raise AssertionError("Expected ValueError.")
    except ValueError:
        pass
    try:
        service.start("missing", 0, "all")
        raise AssertionError("Expected KeyError.")
    except KeyError:
        pass
    try:
        service.start("t", 3, "all")
        raise AssertionError("Expected IndexError.")
    except IndexError as exc:
        assert "no passage 3" in str(exc)


def test_completion_increments_counter() -> None:
    service = _service()
    practice = service.start("t", 0, "all")
    session = practice.session
    assert isinstance(session, ChoiceSession)
    _answer_all(session)
    assert practice.completions == 1
    assert practice.counts == CompletionCount(all=1)
    assert service.completion_counts("t", 0) == CompletionCount(all=1)

    session.redo()
    _answer_all(session)
    assert service.completion_counts("t", 0) == CompletionCount(all=2)
    assert practice.counts.all == 2


def test_free_completion_increments_free_counter() -> None:
    service = _service()
    practice = service.start("t", 2, "free")
    session = practice.session
    assert isinstance(session, FreeTypedSession)
    assert session.commit("温故而知新") is True
    assert practice.counts == CompletionCount(free=1)

    summaries = service.list_banks()
    assert summaries[0].completed_passages == 1
    progress = service.bank_progress("t")
    assert [row.counts.free for row in progress] == [0, 0, 1]
    assert progress[0].title == "p0"


def test_change_mode_restarts_same_passage() -> None:
    service = _service()
    practice = service.start("t", 1, "all")
    switched = service.change_mode(practice, "free")
    assert switched.passage.index == 1
    assert switched.mode == "free"
    assert isinstance(switched.session, FreeTypedSession)


def test_next_and_prev_passage_clamp_at_ends() -> None:
    service = _service()
    first = service.start("t", 0, "random")
    assert first.has_prev is False
    assert service.prev_passage(first) is first

    second = service.next_passage(first)
    assert second.passage.index == 1
    assert second.mode == "random"
    last = service.next_passage(second)
    assert last.passage.index == 2
    assert last.has_next is False
    assert service.next_passage(last) is last
    assert service.prev_passage(last).passage.index == 1


def test_reset_progress() -> None:
    service = _service()
    service.progress.increment("t", 0, "all")
    service.progress.increment("t", 1, "free")
    assert service.reset_progress("t") == 2
    assert service.completion_counts("t", 0) == CompletionCount()
    try:
        service.reset_progress("missing")
        raise AssertionError("Expected KeyError.")
    except KeyError:
        pass


def test_bank_progress_unknown_bank() -> None:
    service = _service()
    try:
        service.bank_progress("missing")
        raise AssertionError("Expected KeyError.")
    except KeyError:
        pass
    assert service.get_bank("missing") is None
    assert service.get_bank("t") is not None


def test_from_config_uses_bank_dir(tmp_path: Path) -> None:
    (tmp_path / "mine.json").write_text('{"passages": [{"content": "学而时习之"}]}', encoding="utf-8")
    config = AppConfig(db_path=tmp_path / "db" / "progress.db", bank_dir=tmp_path, debounce_seconds=0.1)
    service = TrainerService.from_config(config)
    assert list(service.banks) == ["mine"]
    practice = service.start("mine", 0, "free")
    session = practice.session
    assert isinstance(session, FreeTypedSession)
    assert session.debouncer.interval == 0.1
    service.close()
