"""
solver/solver_cli.py

Command line front end.

  solve                 guess a random answer by self-play
  simulate --target W   self-play against a word you choose
  assist                human-in-the-loop: you play, paste the feedback, get suggestions
  explain WORD          score breakdown for WORD given --guess/--feedback pairs
  live --target W       run the live loop against an in-process puzzle board
  meta                  counts and digests of the loaded word lists

Feedback is accepted as 'gybby', '21001', or a Python-like list '[0, 0, 2, 2, 2]'.

Run:
  python -m solver.solver_cli --csv word_list.csv solve
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import re
import sys
from typing import List, Optional

from wordsolve.constraints import derive_constraints, filter_candidates
from wordsolve.data_utils import load_corpus
from wordsolve.env import solve
from wordsolve.errors import InvalidWordError
from wordsolve.events import Event, StepEvent
from wordsolve.feedback import Pattern, as_pattern, is_solved, pattern_to_key, validate_word
from wordsolve.history import CsvHistoryRecorder, HistoryRecorder, record_summary
from wordsolve.live import LiveConfig, LiveSolver, run_live
from wordsolve.logger import configure_logging
from wordsolve.models import SolveSummary
from wordsolve.scoring import explain_guess
from wordsolve.selector import build_pool, pick_next_guess, rank_pool
from wordsolve.surface import SimulatedSurface, simulated_session
from wordsolve.vocab import WordCorpus, corpus_meta

QUIT_WORDS = {"q", "quit", "exit"}


def parse_feedback(s: str) -> Pattern:
    """Parse a 5-char feedback into a pattern.
    Accepted forms:
      - letters: g/y/b  (green/yellow/black)
      - digits:  2/1/0
      - list:   [0, 1, 2, 2, 0]
    Raises InvalidWordError (a ValueError) on invalid input.
    """
    s = s.strip().lower()
    # List-like form: [0,1,2,2,0]
    if s.startswith("[") and s.endswith("]"):
        nums = re.findall(r"[012]", s)
        if len(nums) != 5:
            raise InvalidWordError("list form must contain exactly five 0/1/2 values")
        return as_pattern([int(x) for x in nums])

    # letters or digits
    mapping = {"g": 2, "y": 1, "b": 0, "2": 2, "1": 1, "0": 0}
    if len(s) != 5:
        raise InvalidWordError("feedback must be length 5 (gybgy / 21001 / [0,1,2,2,0])")
    try:
        return as_pattern([mapping[ch] for ch in s])
    except KeyError as e:
        raise InvalidWordError("feedback must use only g/y/b or 2/1/0") from e


def _print_summary(summary: SolveSummary) -> None:
    for i, step in enumerate(summary.steps, 1):
        print(f"  {i}. {step.guess}  {pattern_to_key(step.pattern)}  remaining={step.remaining}")
    if summary.success:
        print(f"Solved {summary.answer} in {len(summary.steps)} guesses")
    else:
        print(f"Failed on {summary.answer}: {summary.reason}")


# ---------------------------
# Subcommands
# ---------------------------

def cmd_solve(corpus: WordCorpus, args: argparse.Namespace, recorder: Optional[HistoryRecorder]) -> int:
    summary = solve(corpus, args.target)
    _print_summary(summary)
    record_summary(recorder, summary, "simulate" if args.target else "solve")
    return 0 if summary.success else 1


def cmd_explain(corpus: WordCorpus, args: argparse.Namespace, recorder: Optional[HistoryRecorder]) -> int:
    word = validate_word(args.word.lower(), name="word")
    if len(args.guess) != len(args.feedback):
        raise InvalidWordError("--guess and --feedback must be given the same number of times")
    history = [(validate_word(g.lower(), name="guess"), parse_feedback(f)) for g, f in zip(args.guess, args.feedback)]
    candidates = filter_candidates(corpus.answers, history)
    breakdown = explain_guess(word, candidates, history)
    print(json.dumps(breakdown.to_dict(), indent=2))
    print(f"candidates remaining: {len(candidates)}; solver pick: {pick_next_guess(candidates, history, corpus.snapshot())}")
    return 0


def cmd_meta(corpus: WordCorpus, args: argparse.Namespace, recorder: Optional[HistoryRecorder]) -> int:
    print(json.dumps(corpus_meta(corpus.snapshot()), indent=2))
    return 0


def cmd_live(corpus: WordCorpus, args: argparse.Namespace, recorder: Optional[HistoryRecorder]) -> int:
    target = validate_word(args.target, name="target")
    surface = SimulatedSurface(
        target,
        accepted=None if args.accept_any else corpus.allowed,
        broken_strategies=["primary"] if args.break_primary else [],
    )
    solver = LiveSolver(simulated_session(surface), corpus, LiveConfig(adapter_timeout=args.timeout))

    def _show(event: Event) -> None:
        if isinstance(event, StepEvent):
            flag = "  (unverified)" if event.flagged else ""
            print(f"step  {event.guess}  {pattern_to_key(event.pattern)}  remaining={event.remaining}{flag}")
        else:
            print(f"{event.kind:<5} {json.dumps(event.to_dict())}")

    summary = asyncio.run(run_live(solver, _show))
    if summary is None:
        return 1
    record_summary(recorder, summary, "live")
    return 0 if summary.success else 1


def cmd_assist(corpus: WordCorpus, args: argparse.Namespace, recorder: Optional[HistoryRecorder]) -> int:
    lists = corpus.snapshot()
    history: List[tuple] = []
    candidates: List[str] = list(lists.answers)

    print("\nWordle helper: after EACH guess you make in the game, paste the feedback here.")
    print("Accepted: g/y/b, 2/1/0, or [0,1,2,2,0]. Type 'quit' to exit.\n")

    while True:
        if history:
            constraints = derive_constraints(history)
            top = rank_pool(build_pool(candidates, lists, constraints), candidates, constraints)[:3]
            pick = pick_next_guess(candidates, history, lists, constraints)
            print(f"Solver pick: {pick}")
            if top:
                print("Top scores:")
                for i, r in enumerate(top, 1):
                    print(f"  {i}. {r.word}  (score={r.score:.3f}, H={r.entropy:.3f}, cov={r.coverage:.2f})")
        else:
            pick = None

        prompt = "Enter your guess word" + (f" (Enter for {pick})" if pick else "") + ": "
        guess = input(prompt).strip().lower()
        if guess in QUIT_WORDS:
            print("bye!")
            return 0
        if not guess and pick:
            guess = pick
        try:
            validate_word(guess, name="guess")
        except InvalidWordError:
            print("Please enter a 5-letter alphabetic word.")
            continue

        while True:
            fb = input("Feedback for that guess (g/y/b or 2/1/0 or [..]): ").strip()
            if fb.lower() in QUIT_WORDS:
                print("bye!")
                return 0
            try:
                patt = parse_feedback(fb)
                break
            except InvalidWordError as e:
                print("Invalid feedback:", e)

        history.append((guess, patt))
        if is_solved(patt):
            print("Solved!")
            return 0

        candidates = filter_candidates(candidates, history)
        print(f"Remaining candidates: {len(candidates)}")
        if 0 < len(candidates) <= 10:
            print("Candidates:", ", ".join(candidates))
        if not candidates:
            print("No tracked answer fits; suggestions now explore the allowed list.")


COMMANDS = {
    "solve": cmd_solve,
    "simulate": cmd_solve,
    "assist": cmd_assist,
    "explain": cmd_explain,
    "live": cmd_live,
    "meta": cmd_meta,
}


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Adaptive five-letter word puzzle solver")
    ap.add_argument("--csv", default="word_list.csv", help="Path to word_list.csv (or a directory with answers.json/allowed.json)")
    ap.add_argument("--history", default=None, help="CSV file to append finished attempts to")
    ap.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    ap.set_defaults(target=None)
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("solve", help="Solve a random answer")

    p = sub.add_parser("simulate", help="Solve a target you choose")
    p.add_argument("--target", required=True)

    sub.add_parser("assist", help="Interactive helper for a game you are playing")

    p = sub.add_parser("explain", help="Score breakdown for a word")
    p.add_argument("word")
    p.add_argument("--guess", action="append", default=[], help="Earlier guess (repeatable)")
    p.add_argument("--feedback", action="append", default=[], help="Feedback for the matching --guess")

    p = sub.add_parser("live", help="Run the live loop against an in-process board")
    p.add_argument("--target", required=True)
    p.add_argument("--accept-any", action="store_true", help="Board accepts any 5-letter word")
    p.add_argument("--break-primary", action="store_true", help="Primary feedback reader always fails")
    p.add_argument("--timeout", type=float, default=15.0, help="Seconds to wait on each board call")

    sub.add_parser("meta", help="Word list counts and digests")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    if args.target is not None:
        args.target = args.target.strip().lower()

    corpus = load_corpus(args.csv)
    recorder = CsvHistoryRecorder(args.history) if args.history else None
    try:
        return COMMANDS[args.command](corpus, args, recorder)
    except InvalidWordError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
