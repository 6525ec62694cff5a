"""
scoring.py

Scores a guess against the current candidate pool.

total = entropy + 1.1*coverage + 0.2*new_letters + positional - penalty

- entropy:     Shannon entropy (bits) of the feedback-pattern partition the
               guess induces over the candidates
- coverage:    fraction of required letters the guess contains
- new_letters: distinct letters never used in an earlier guess
- positional:  +0.6 per known green reused in place, +0.15 per required letter
               placed somewhere it is not already known to be wrong
- penalty:     +1.5 per excluded letter used, +0.4 if any letter repeats

The weights decide which word gets picked; changing them changes solver play.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from math import log2
from typing import Dict, Sequence

from wordsolve.constraints import Constraints, HistoryItem, derive_constraints
from wordsolve.feedback import pattern_to_int, score_pattern

COVERAGE_WEIGHT = 1.1
NEW_LETTER_WEIGHT = 0.2
FIXED_REUSE_BONUS = 0.6
REQUIRED_PLACEMENT_BONUS = 0.15
EXCLUDED_LETTER_PENALTY = 1.5
REPEATED_LETTER_PENALTY = 0.4


@dataclass(frozen=True)
class ScoreBreakdown:
    word: str
    entropy: float
    coverage: float
    new_letter_bonus: int
    positional: float
    penalty: float
    score: float
    constraints: Constraints

    def to_dict(self) -> Dict[str, object]:
        return {
            "word": self.word,
            "entropy": self.entropy,
            "coverage": self.coverage,
            "new_letter_bonus": self.new_letter_bonus,
            "positional": self.positional,
            "penalty": self.penalty,
            "score": self.score,
            "constraints": self.constraints.to_dict(),
        }


def pattern_histogram(guess: str, targets: Sequence[str]) -> Dict[int, int]:
    counts: Dict[int, int] = defaultdict(int)
    for t in targets:
        counts[pattern_to_int(score_pattern(guess, t))] += 1
    return counts


def entropy_for_guess(guess: str, candidates: Sequence[str]) -> float:
    """Bits of information `guess` is expected to reveal over `candidates`."""
    total = len(candidates)
    if total == 0:
        return 0.0
    entropy = 0.0
    for c in pattern_histogram(guess, candidates).values():
        p = c / total
        entropy -= p * log2(p)
    # a single bucket gives -0.0
    return entropy + 0.0


def score_guess(word: str, candidates: Sequence[str], constraints: Constraints) -> ScoreBreakdown:
    entropy = entropy_for_guess(word, candidates)
    required = constraints.required_letters
    unique = set(word)

    coverage = 0.0 if not required else sum(1 for r in required if r in unique) / len(required)
    new_letter_bonus = sum(1 for ch in unique if ch not in constraints.seen_letters)

    positional = 0.0
    for i, ch in enumerate(word):
        if constraints.fixed[i] == ch:
            positional += FIXED_REUSE_BONUS
        if ch in required and i not in constraints.forbidden_pos.get(ch, ()):
            positional += REQUIRED_PLACEMENT_BONUS

    penalty = EXCLUDED_LETTER_PENALTY * sum(1 for ch in unique if ch in constraints.excluded)
    if len(unique) < len(word):
        penalty += REPEATED_LETTER_PENALTY

    score = (
        entropy
        + coverage * COVERAGE_WEIGHT
        + new_letter_bonus * NEW_LETTER_WEIGHT
        + positional
        - penalty
    )
    return ScoreBreakdown(
        word=word,
        entropy=entropy,
        coverage=coverage,
        new_letter_bonus=new_letter_bonus,
        positional=positional,
        penalty=penalty,
        score=score,
        constraints=constraints,
    )


def explain_guess(word: str, candidates: Sequence[str], history: Sequence[HistoryItem]) -> ScoreBreakdown:
    """Score `word` with constraints derived from `history`; used to explain a pick."""
    return score_guess(word, candidates, derive_constraints(history))
