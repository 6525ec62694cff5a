"""
env.py

Self-play against a known target.

WordleEnv holds one attempt: reset() fixes the target, step() plays a guess,
scores it, narrows the candidates and records a GuessResult. solve() drives it
with the selector: a fixed opener on turn 0, the selector afterwards.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from wordsolve.constraints import filter_candidates
from wordsolve.feedback import pattern_to_key, score_pattern, validate_word
from wordsolve.logger import get_logger
from wordsolve.models import GuessResult, SolveSummary
from wordsolve.sampler import WordSampler
from wordsolve.selector import pick_next_guess
from wordsolve.vocab import WordCorpus, WordLists

LOGGER = get_logger(__name__)

OPENER = "roate"
MAX_TURNS = 6
TURN_BUDGET_EXHAUSTED = "turn budget exhausted"


class WordleEnv:
    """
    One attempt against a known target.

    API
    ---
    reset(target) -> list[str]
        Starts a new attempt and returns the initial candidate list.

    step(guess) -> tuple[GuessResult, bool]
        Plays a guess. Returns (result, done).

    The corpus is snapshotted on reset, so a concurrent `WordCorpus.replace`
    does not affect an attempt already in progress.
    """

    def __init__(self, corpus: WordCorpus, *, max_turns: int = MAX_TURNS) -> None:
        if max_turns <= 0:
            raise ValueError("max_turns must be positive")
        self.corpus = corpus
        self.max_turns = int(max_turns)

        # Attempt state
        self._lists: Optional[WordLists] = None
        self._target: Optional[str] = None
        self._history: List[GuessResult] = []
        self._candidates: List[str] = []
        self._solved = False

    # -------------------------
    # Core env API
    # -------------------------
    def reset(self, target: str) -> List[str]:
        self._target = validate_word(target, name="target")
        self._lists = self.corpus.snapshot()
        self._history = []
        self._candidates = list(self._lists.answers)
        self._solved = False
        return list(self._candidates)

    def step(self, guess: str) -> Tuple[GuessResult, bool]:
        if self._target is None or self._lists is None:
            raise RuntimeError("call reset() before step()")
        if self.done:
            raise RuntimeError("attempt already finished")
        validate_word(guess, name="guess")

        pattern = score_pattern(guess, self._target)
        remaining = filter_candidates(self._lists.answers, [*self._history, (guess, pattern)])
        result = GuessResult(guess, pattern, len(remaining))
        self._history.append(result)
        self._candidates = remaining
        self._solved = guess == self._target
        return result, self.done

    # -------------------------
    # Introspection helpers
    # -------------------------
    @property
    def done(self) -> bool:
        return self._solved or len(self._history) >= self.max_turns

    @property
    def solved(self) -> bool:
        return self._solved

    @property
    def history(self) -> List[GuessResult]:
        return list(self._history)

    @property
    def candidates(self) -> List[str]:
        return list(self._candidates)

    @property
    def lists(self) -> Optional[WordLists]:
        return self._lists

    @property
    def target(self) -> Optional[str]:
        return self._target

    def summary(self) -> SolveSummary:
        return SolveSummary(
            success=self._solved,
            answer=self._target,
            steps=tuple(self._history),
            reason=None if self._solved else TURN_BUDGET_EXHAUSTED,
        )


def solve(
    corpus: WordCorpus,
    target: Optional[str] = None,
    *,
    sampler: Optional[WordSampler] = None,
    opener: str = OPENER,
    max_turns: int = MAX_TURNS,
) -> SolveSummary:
    """
    Play one attempt and return its summary.

    Without `target`, one is drawn from the current answers (via `sampler`
    if given). A user-supplied target is validated but need not be a tracked
    answer; the selector falls back to exploration when the candidates run out.
    """
    validate_word(opener, name="opener")
    if target is None:
        sampler = sampler or WordSampler(corpus.answers)
        target = sampler.choice_word()

    env = WordleEnv(corpus, max_turns=max_turns)
    candidates = env.reset(target)
    lists = env.lists
    if lists is None:
        raise RuntimeError("reset() did not load a corpus snapshot")

    turn = 0
    while not env.done:
        guess = opener if turn == 0 else pick_next_guess(candidates, env.history, lists)
        result, _ = env.step(guess)
        LOGGER.debug("turn %d: %s -> %s (%d left)", turn + 1, guess, pattern_to_key(result.pattern), result.remaining)
        candidates = env.candidates
        turn += 1

    summary = env.summary()
    LOGGER.info(
        "Attempt on %s %s in %d guesses",
        summary.answer,
        "solved" if summary.success else "failed",
        len(summary.steps),
    )
    return summary
