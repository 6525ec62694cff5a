"""
constraints.py

Derives the cumulative letter constraints implied by a guess history and
filters candidate words against it.

Constraints are rebuilt from the full history on every call. The
duplicate-letter handling is approximate: `min_count` is the
largest CORRECT+PRESENT tally a single guess showed for a letter, and a letter
is excluded only if no guess ever marked it CORRECT or PRESENT.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple, Union

from wordsolve.feedback import WORD_LENGTH, Mark, Pattern, as_pattern, consistent_with
from wordsolve.models import GuessResult

HistoryItem = Union[GuessResult, Tuple[str, Sequence[int]]]


def as_pair(step: HistoryItem) -> Tuple[str, Pattern]:
    """Accept either a GuessResult or a plain (guess, pattern) tuple."""
    if isinstance(step, GuessResult):
        return step.guess, step.pattern
    guess, pattern = step
    return guess, as_pattern(pattern)


@dataclass(frozen=True)
class Constraints:
    fixed: Tuple[Optional[str], ...] = (None,) * WORD_LENGTH
    forbidden_pos: Dict[str, FrozenSet[int]] = field(default_factory=dict)
    min_count: Dict[str, int] = field(default_factory=dict)
    excluded: FrozenSet[str] = frozenset()
    seen_letters: FrozenSet[str] = frozenset()
    prev_guesses: FrozenSet[str] = frozenset()

    @property
    def required_letters(self) -> List[str]:
        """Letters known present and not excluded, in first-seen order."""
        return [ch for ch in self.min_count if ch not in self.excluded]

    def to_dict(self) -> Dict[str, object]:
        return {
            "fixed": list(self.fixed),
            "forbidden_pos": {ch: sorted(pos) for ch, pos in self.forbidden_pos.items()},
            "min_count": dict(self.min_count),
            "excluded": sorted(self.excluded),
        }


def derive_constraints(history: Iterable[HistoryItem]) -> Constraints:
    fixed: List[Optional[str]] = [None] * WORD_LENGTH
    forbidden: Dict[str, Set[int]] = {}
    min_count: Dict[str, int] = {}
    positive: Set[str] = set()
    absent_only: Set[str] = set()
    seen: Set[str] = set()
    prev: Set[str] = set()

    for step in history:
        guess, pattern = as_pair(step)
        prev.add(guess)
        tally: Counter = Counter()
        for i, (ch, mark) in enumerate(zip(guess, pattern)):
            seen.add(ch)
            if mark == Mark.CORRECT:
                fixed[i] = ch  # last write wins
                tally[ch] += 1
                positive.add(ch)
            elif mark == Mark.PRESENT:
                forbidden.setdefault(ch, set()).add(i)
                tally[ch] += 1
                positive.add(ch)
            else:
                tally.setdefault(ch, 0)
        for ch, need in tally.items():
            if need > 0:
                min_count[ch] = max(min_count.get(ch, 0), need)
            else:
                absent_only.add(ch)

    return Constraints(
        fixed=tuple(fixed),
        forbidden_pos={ch: frozenset(pos) for ch, pos in forbidden.items()},
        min_count=min_count,
        excluded=frozenset(absent_only - positive),
        seen_letters=frozenset(seen),
        prev_guesses=frozenset(prev),
    )


def fits_constraints(word: str, c: Constraints) -> bool:
    for i, ch in enumerate(c.fixed):
        if ch is not None and word[i] != ch:
            return False
    for ch, positions in c.forbidden_pos.items():
        if any(word[i] == ch for i in positions):
            return False
    if any(ch in c.excluded for ch in word):
        return False
    counts = Counter(word)
    return all(counts[ch] >= need for ch, need in c.min_count.items())


def filter_candidates(words: Sequence[str], history: Sequence[HistoryItem]) -> List[str]:
    """
    Keep only the words that match *all* (guess, pattern) pairs in history,
    preserving the order of `words`.
    """
    pairs = [as_pair(step) for step in history]
    return [w for w in words if all(consistent_with(w, g, p) for g, p in pairs)]
