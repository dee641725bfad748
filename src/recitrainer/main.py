"""CLI entrypoint for the recitation trainer."""

from __future__ import annotations

import argparse
from collections.abc import Callable

from .config import AppConfig, load_config
from .logger import setup_logging
from .models import MODE_FREE, MODE_LABELS, MODES, CompletionCount, InvalidModeError, validate_mode
from .service import Practice, TrainerService
from .session import ChoiceSession, FreeTypedSession

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
MENU_QUIT_COMMANDS = {"q"}
MENU_BACK_COMMANDS = {"b"}
FLOW_BACK_COMMANDS = {":b", ":back"}
FLOW_EXIT_COMMANDS = {":q", ":quit", ":exit"}
STATUS_MARKS = {"correct": "o", "incorrect": "x", "neutral": "-"}
PRACTICE_HELP = (
    ":u undo character, :s undo segment, :c clear, :r redo, :m change mode, "
    ":n next passage, :p previous passage, :b back, :q quit"
)


class QuitApp(Exception):
    """Signal immediate app exit from nested menu flows."""


def _service(config: AppConfig) -> TrainerService:
    """Create app service from resolved settings."""
    return TrainerService.from_config(config)


def run(argv: list[str] | None = None) -> int:
    """Run the CLI application."""
    parser = argparse.ArgumentParser(prog="recitrainer", description="Classical text recitation practice")
    parser.add_argument("command", nargs="?", default="play", choices=["play"])
    parser.add_argument("--db", help="progress database path")
    parser.add_argument("--bank-dir", help="directory of question bank JSON files")
    parser.add_argument("--log-file", help="write a rotating log to this file")
    parser.add_argument("--debounce-ms", type=int, help="typing validation delay in milliseconds")
    args = parser.parse_args(argv)
    try:
        config = load_config(
            db_path=args.db,
            bank_dir=args.bank_dir,
            log_file=args.log_file,
            debounce_ms=args.debounce_ms,
        )
    except ValueError as exc:
        parser.error(str(exc))
    setup_logging(config.log_file)
    return play_shell(config=config)


def play_shell(input_fn: InputFn = input, print_fn: PrintFn = print, config: AppConfig | None = None) -> int:
    """Run persistent menu-driven shell."""
    service = _service(config or load_config())
    try:
        bank_id = _select_bank(service, input_fn, print_fn)
        if bank_id is None:
            return 0
        try:
            while True:
                bank = service.banks[bank_id]
                print_fn("\n=== Recitation Practice ===")
                print_fn(f"Bank: {bank.title}")
                print_fn("1) Practise a passage")
                print_fn("2) Progress")
                print_fn("3) Reset progress")
                print_fn("b) Back")
                print_fn("q) Quit")
                choice = input_fn("Choose: ").strip().lower()

                if choice == "1":
                    _practice_flow(service, bank_id, input_fn, print_fn)
                elif choice == "2":
                    _progress_flow(service, bank_id, print_fn)
                elif choice == "3":
                    _reset_flow(service, bank_id, input_fn, print_fn)
                elif choice in MENU_BACK_COMMANDS:
                    switched = _select_bank(service, input_fn, print_fn)
                    if switched is None:
                        return 0
                    bank_id = switched
                elif choice in MENU_QUIT_COMMANDS:
                    return 0
                else:
                    print_fn("Invalid choice.")
        except QuitApp:
            return 0
    finally:
        service.close()


def _select_bank(service: TrainerService, input_fn: InputFn, print_fn: PrintFn) -> str | None:
    """Select a question bank; a single bank is selected without asking."""
    banks = service.list_banks()
    if not banks:
        print_fn("No question banks found.")
        return None
    if len(banks) == 1:
        return banks[0].id
    while True:
        print_fn("\n=== Question Banks ===")
        for idx, bank in enumerate(banks, start=1):
            print_fn(f"{idx}) {bank.title} ({bank.completed_passages}/{bank.passage_count} practised)")
        print_fn("q) Quit")
        choice = input_fn("Select bank: ").strip().lower()
        if choice in MENU_QUIT_COMMANDS:
            return None
        if choice.isdigit():
            index = int(choice) - 1
            if 0 <= index < len(banks):
                return banks[index].id
        print_fn("Invalid bank selection.")


def _format_counts(counts: CompletionCount) -> str:
    return " ".join(f"{MODE_LABELS[mode]}:{counts.get(mode)}" for mode in MODES)


def _progress_flow(service: TrainerService, bank_id: str, print_fn: PrintFn) -> None:
    """Print per-passage completion counters."""
    rows = service.bank_progress(bank_id)
    print_fn("\n=== Progress ===")
    if not rows:
        print_fn("This bank has no passages.")
        return
    title_width = max(len("Title"), max(len(row.title) for row in rows))
    header = f"{'#':>2} {'Title':<{title_width}} {'Random':>6} {'All':>4} {'Free':>4}"
    print_fn(header)
    print_fn("-" * len(header))
    for row in rows:
        print_fn(
            f"{row.index + 1:>2} "
            f"{row.title:<{title_width}} "
            f"{row.counts.random:>6} "
            f"{row.counts.all:>4} "
            f"{row.counts.free:>4}"
        )


def _reset_flow(service: TrainerService, bank_id: str, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Reset bank counters with explicit confirmation."""
    print_fn("WARNING: This permanently deletes every completion count for this bank.")
    confirm = input_fn("Type YES to confirm: ").strip()
    if confirm != "YES":
        print_fn("Reset cancelled.")
        return
    removed = service.reset_progress(bank_id)
    print_fn(f"Removed {removed} counter rows.")


def _choose_mode(input_fn: InputFn, print_fn: PrintFn) -> str | None:
    """Ask for a practice mode."""
    print_fn("\nModes:")
    for idx, mode in enumerate(MODES, start=1):
        print_fn(f"{idx}) {MODE_LABELS[mode]} ({mode})")
    print_fn("b) Back")
    choice = input_fn("Choose mode: ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return None
    if choice.isdigit() and 1 <= int(choice) <= len(MODES):
        return MODES[int(choice) - 1]
    try:
        return validate_mode(choice)
    except InvalidModeError as exc:
        print_fn(str(exc))
        return None


def _practice_flow(service: TrainerService, bank_id: str, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Pick a passage and a mode, then practise."""
    rows = service.bank_progress(bank_id)
    if not rows:
        print_fn("This bank has no passages.")
        return
    print_fn("\n=== Passages ===")
    for row in rows:
        hint = f" - {row.hint}" if row.hint else ""
        print_fn(f"{row.index + 1}) {row.title}{hint}  [{_format_counts(row.counts)}]")
    print_fn("b) Back")
    print_fn("q) Quit")
    choice = input_fn("Choose passage: ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return
    if choice in MENU_QUIT_COMMANDS:
        raise QuitApp()
    if not choice.isdigit() or not (1 <= int(choice) <= len(rows)):
        print_fn("Invalid choice.")
        return

    mode = _choose_mode(input_fn, print_fn)
    if mode is None:
        return
    practice = service.start(bank_id, int(choice) - 1, mode)
    _run_practice(service, practice, input_fn, print_fn)


def _show_practice(practice: Practice, print_fn: PrintFn) -> None:
    """Print the masked passage and, in choice modes, the current options."""
    passage = practice.passage
    session = practice.session
    hint = f" ({passage.hint})" if passage.hint else ""
    position = f"{passage.index + 1}/{len(practice.bank.passages)}"
    print_fn(f"\n[{position}] {passage.title}{hint} - {MODE_LABELS[session.mode]}")
    print_fn(session.render())
    if session.is_complete:
        return
    if isinstance(session, ChoiceSession):
        labels = []
        for idx, option in enumerate(session.options, start=1):
            mark = " x" if option in session.incorrect else ""
            labels.append(f"{idx}) {option}{mark}")
        print_fn(f"Position {session.cursor + 1}: " + "  ".join(labels))
    else:
        start, end = session.segment
        print_fn(f"Type characters {start + 1}-{end} ({end - start} characters).")


def _run_practice(service: TrainerService, practice: Practice, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Practice loop for one passage; returns to the passage menu on :b."""
    print_fn(PRACTICE_HELP)
    while True:
        _show_practice(practice, print_fn)
        session = practice.session
        prompt = "Type segment: " if session.mode == MODE_FREE else "Choose option (or @N to jump): "
        raw = input_fn(prompt)
        command = raw.strip().lower()
        completions_before = practice.completions

        if command in FLOW_BACK_COMMANDS:
            return
        if command in FLOW_EXIT_COMMANDS:
            raise QuitApp()
        if command == ":u":
            if not session.undo_char():
                print_fn("Nothing to undo.")
        elif command == ":s":
            if not session.undo_segment():
                print_fn("Nothing to undo.")
        elif command == ":c":
            session.clear_all()
        elif command == ":r":
            session.redo()
        elif command == ":m":
            mode = _choose_mode(input_fn, print_fn)
            if mode is not None:
                practice = service.change_mode(practice, mode)
        elif command == ":n":
            if not practice.has_next:
                print_fn("Already at the last passage.")
            practice = service.next_passage(practice)
        elif command == ":p":
            if not practice.has_prev:
                print_fn("Already at the first passage.")
            practice = service.prev_passage(practice)
        elif isinstance(session, FreeTypedSession):
            _answer_free(session, raw.strip(), print_fn)
        else:
            _answer_choice(session, command, print_fn)

        if practice.completions > completions_before:
            print_fn(f"Passage complete! {_format_counts(practice.counts)}")
            print_fn("Use :r to practise again or :n for the next passage.")


def _answer_choice(session: ChoiceSession, command: str, print_fn: PrintFn) -> None:
    """Handle an option number or an @N position jump."""
    if command.startswith("@"):
        target = command[1:]
        if not target.isdigit() or not session.select(int(target) - 1):
            print_fn("That position is not open.")
        return
    if session.cursor == -1:
        print_fn("Nothing left to answer.")
        return
    if not command.isdigit() or not (1 <= int(command) <= len(session.options)):
        print_fn("Invalid choice.")
        return
    if session.choose(session.options[int(command) - 1]):
        print_fn("Correct.")
    else:
        print_fn("Not quite. Try again.")


def _answer_free(session: FreeTypedSession, text: str, print_fn: PrintFn) -> None:
    """Validate one typed line against the current segment."""
    if session.is_complete:
        print_fn("Nothing left to type.")
        return
    session.type_text(text)
    session.flush()
    if not session.validated:
        if text:
            print_fn("Correct.")
        return
    statuses = [session.character_status(offset) for offset in range(len(session.validated))]
    print_fn("Checked: " + "".join(STATUS_MARKS[status] for status in statuses))
    if "incorrect" in statuses:
        print_fn("Not quite. Fix the first x and retype the segment.")
    else:
        print_fn("So far so good. Retype the segment with the remaining characters.")


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
