import random

from recitrainer.session import ChoiceSession, CompletionEvent, FreeTypedSession, new_session

from conftest import LUNYU, FixedRandom, make_passage


def _all_session(events: list[CompletionEvent] | None = None, text: str = LUNYU) -> ChoiceSession:
    handler = events.append if events is not None else None
    session = new_session(make_passage(text), "all", random.Random(3), handler)
    assert isinstance(session, ChoiceSession)
    return session


def _random_session(events: list[CompletionEvent] | None = None) -> ChoiceSession:
    # hidden: 0 2 4 7 9, pre-revealed: 1 3 6 8
    handler = events.append if events is not None else None
    session = new_session(make_passage(LUNYU), "random", FixedRandom([0.9, 0.1]), handler)
    assert isinstance(session, ChoiceSession)
    return session


def _answer(session: ChoiceSession, count: int) -> None:
    for _ in range(count):
        assert session.choose(session.text[session.cursor]) is True


def _answer_all(session: ChoiceSession) -> None:
    while session.cursor != -1:
        assert session.choose(session.text[session.cursor]) is True


def _assert_invariants(session: ChoiceSession) -> None:
    assert len(session.mask) == len(session.text)
    for index, char in enumerate(session.text):
        if char in "，？":
            assert session.mask[index] == char
        if session.snapshot is not None and session.snapshot[index] is not None:
            assert session.mask[index] == char
    if session.cursor != -1:
        assert session.mask[session.cursor] is None
        assert session.text[session.cursor] not in "，？"


def test_new_session_dispatches_on_mode() -> None:
    assert isinstance(new_session(LUNYU, "all"), ChoiceSession)
    assert isinstance(new_session(LUNYU, "random"), ChoiceSession)
    assert isinstance(new_session(LUNYU, "free"), FreeTypedSession)
    try:
        new_session(LUNYU, "dictation")
        raise AssertionError("Expected ValueError.")
    except ValueError as exc:
        assert "dictation" in str(exc)


def test_fresh_all_session_awaits_first_character() -> None:
    session = _all_session()
    assert session.cursor == 0
    assert len(session.options) == 6
    assert session.options.count("学") == 1
    assert session.hidden_count == 9
    assert session.render() == "＿＿＿＿＿，＿＿＿＿？"
    assert session.is_complete is False


def test_wrong_option_only_tags_it() -> None:
    session = _all_session()
    wrong = next(option for option in session.options if option != "学")
    before = list(session.mask)
    assert session.choose(wrong) is False
    assert session.incorrect == {wrong}
    assert session.mask == before
    assert session.cursor == 0

    assert session.choose("学") is True
    assert session.incorrect == set()
    assert session.cursor == 1
    assert "而" in session.options


def test_correct_answers_skip_separators_and_complete() -> None:
    events: list[CompletionEvent] = []
    session = _all_session(events)
    _answer(session, 5)
    assert session.cursor == 6
    _answer_all(session)
    assert session.mask == list(LUNYU)
    assert session.options == ()
    assert session.is_complete is True
    assert events == [CompletionEvent(passage_index=0, mode="all")]


def test_completion_fires_once_and_not_on_later_no_ops() -> None:
    events: list[CompletionEvent] = []
    session = _all_session(events)
    _answer(session, 8)
    assert session.hidden_count == 1
    assert events == []
    _answer(session, 1)
    assert session.hidden_count == 0
    assert len(events) == 1

    assert session.choose("学") is False
    assert session.select(0) is False
    assert session.undo_segment() is True
    _answer_all(session)
    assert len(events) == 2


def test_select_moves_cursor_only_to_open_positions() -> None:
    session = _all_session()
    assert session.select(5) is False
    assert session.select(99) is False
    assert session.select(-1) is False
    assert session.select(7) is True
    assert session.cursor == 7
    assert "亦" in session.options
    _answer(session, 1)
    assert session.select(7) is False


def test_cursor_wraps_to_earlier_gaps_after_tail_is_done() -> None:
    session = _all_session()
    assert session.select(6) is True
    _answer(session, 4)
    assert session.cursor == 0
    _answer_all(session)
    assert session.is_complete is True


def test_undo_char_hides_previous_answer() -> None:
    session = _all_session()
    assert session.undo_char() is False
    _answer(session, 2)
    assert session.undo_char() is True
    assert session.mask[1] is None
    assert session.cursor == 1
    assert session.options.count("而") == 1


def test_undo_char_crosses_separator_and_reopens_completed_passage() -> None:
    events: list[CompletionEvent] = []
    session = _all_session(events)
    _answer(session, 5)
    assert session.undo_char() is True
    assert session.cursor == 4
    _answer_all(session)
    assert len(events) == 1

    assert session.undo_char() is True
    assert session.cursor == 9
    assert session.is_complete is False
    _answer(session, 1)
    assert len(events) == 2


def test_undo_segment_inside_segment_rehides_it() -> None:
    session = _all_session()
    _answer(session, 3)
    assert session.undo_segment() is True
    assert session.mask[:5] == [None] * 5
    assert session.cursor == 0


def test_undo_segment_at_segment_start_goes_back_one_segment() -> None:
    session = _all_session()
    _answer(session, 5)
    assert session.cursor == 6
    assert session.undo_segment() is True
    assert session.mask == [None] * 5 + ["，"] + [None] * 4 + ["？"]
    assert session.cursor == 0


def test_undo_segment_on_fully_hidden_first_segment_is_no_op() -> None:
    session = _all_session()
    before = list(session.mask)
    assert session.undo_segment() is False
    assert session.mask == before
    assert session.cursor == 0


def test_undo_segment_after_tap_keeps_cursor_in_segment() -> None:
    session = _all_session()
    assert session.select(2) is True
    before = list(session.mask)
    session.undo_segment()
    assert session.mask == before
    assert 0 <= session.cursor < 5


def test_undo_segment_on_completed_passage_rehides_last_segment() -> None:
    session = _all_session()
    _answer_all(session)
    assert session.undo_segment() is True
    assert session.mask[:6] == list(LUNYU[:6])
    assert session.mask[6:10] == [None] * 4
    assert session.cursor == 6


def test_clear_all_is_idempotent() -> None:
    session = _all_session()
    _answer(session, 7)
    session.clear_all()
    once = list(session.mask)
    session.clear_all()
    assert session.mask == once
    assert session.cursor == 0
    assert session.hidden_count == 9


def test_redo_then_answer_everything_round_trips() -> None:
    session = _all_session()
    _answer(session, 4)
    session.redo()
    assert session.hidden_count == 9
    _answer_all(session)
    assert session.mask == list(LUNYU)


def test_random_mode_skips_pre_revealed_positions() -> None:
    session = _random_session()
    assert session.mask == [None, "而", None, "习", None, "，", "不", None, "说", None, "？"]
    assert session.cursor == 0
    assert session.select(1) is False
    _answer(session, 1)
    assert session.cursor == 2
    _answer(session, 2)
    assert session.cursor == 7


def test_random_undo_char_never_hides_pre_revealed() -> None:
    session = _random_session()
    _answer(session, 2)
    assert session.cursor == 4
    assert session.undo_char() is True
    assert session.cursor == 2
    assert session.undo_char() is True
    assert session.cursor == 0
    assert session.undo_char() is False
    assert session.mask[1] == "而"
    assert session.mask[3] == "习"


def test_random_undo_segment_respects_snapshot() -> None:
    session = _random_session()
    _answer(session, 3)
    assert session.cursor == 7
    assert session.undo_segment() is True
    assert session.cursor == 0
    assert session.mask == session.snapshot


def test_random_clear_all_restores_snapshot() -> None:
    session = _random_session()
    _answer(session, 4)
    session.clear_all()
    assert session.mask == session.snapshot
    session.clear_all()
    assert session.mask == session.snapshot
    assert session.cursor == 0


def test_random_completion_event() -> None:
    events: list[CompletionEvent] = []
    session = _random_session(events)
    _answer_all(session)
    assert session.mask == list(LUNYU)
    assert events == [CompletionEvent(passage_index=0, mode="random")]


def test_random_mask_revealing_everything_does_not_count_on_load() -> None:
    events: list[CompletionEvent] = []
    session = new_session(make_passage(LUNYU), "random", FixedRandom([0.1]), events.append)
    assert session.is_complete is True
    assert session.cursor == -1
    assert session.undo_char() is False
    assert session.undo_segment() is False
    assert events == []


def test_empty_passage_is_never_complete() -> None:
    events: list[CompletionEvent] = []
    session = _all_session(events, text="")
    assert session.mask == []
    assert session.cursor == -1
    assert session.is_complete is False
    assert session.undo_char() is False
    assert session.undo_segment() is False
    session.clear_all()
    assert events == []


def test_invariants_hold_under_random_operations() -> None:
    actions = random.Random(2024)
    for mode in ("all", "random"):
        for seed in range(5):
            session = new_session(make_passage(LUNYU), mode, random.Random(seed))
            assert isinstance(session, ChoiceSession)
            for _ in range(60):
                roll = actions.random()
                if roll < 0.5 and session.cursor != -1:
                    session.choose(session.text[session.cursor])
                elif roll < 0.6 and session.options:
                    session.choose(actions.choice(session.options))
                elif roll < 0.7:
                    session.select(actions.randrange(-1, len(LUNYU) + 1))
                elif roll < 0.8:
                    session.undo_char()
                elif roll < 0.9:
                    session.undo_segment()
                elif roll < 0.95:
                    session.clear_all()
                else:
                    session.redo()
                _assert_invariants(session)
