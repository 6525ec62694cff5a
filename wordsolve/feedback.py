"""
Feedback utilities.

A pattern is a 5-tuple of `Mark` values, one per guessed letter:
- ABSENT  (0) letter not present, or over-used relative to the target counts
- PRESENT (1) letter present but in a different position
- CORRECT (2) letter matches the target at that position

`Mark` is an IntEnum so plain ``[0, 1, 2, ...]`` lists compare equal to patterns.
"""

from __future__ import annotations

from collections import Counter
from enum import IntEnum
from typing import Sequence, Tuple

from wordsolve.errors import InvalidWordError

WORD_LENGTH = 5
ALPHABET = "abcdefghijklmnopqrstuvwxyz"


class Mark(IntEnum):
    ABSENT = 0
    PRESENT = 1
    CORRECT = 2


Pattern = Tuple[Mark, Mark, Mark, Mark, Mark]

SOLVED: Pattern = (Mark.CORRECT,) * WORD_LENGTH
ALL_ABSENT: Pattern = (Mark.ABSENT,) * WORD_LENGTH

_KEY_CHARS = {Mark.ABSENT: "b", Mark.PRESENT: "y", Mark.CORRECT: "g"}


def validate_word(word: str, *, name: str = "word") -> str:
    """Return `word` unchanged if it is exactly 5 lowercase ASCII letters, else raise."""
    if not isinstance(word, str):
        raise InvalidWordError(f"{name} must be a string, got {type(word).__name__}")
    if len(word) != WORD_LENGTH:
        raise InvalidWordError(f"{name} must be length {WORD_LENGTH}: {word!r}")
    if any(ch not in ALPHABET for ch in word):
        raise InvalidWordError(f"{name} must be lowercase a-z only: {word!r}")
    return word


def as_pattern(values: Sequence[int]) -> Pattern:
    """Coerce a sequence of five 0/1/2 values into a Pattern; raise on anything else."""
    if not isinstance(values, (list, tuple)):
        raise InvalidWordError("pattern must be a list or tuple of 5 integers in {0,1,2}")
    if len(values) != WORD_LENGTH:
        raise InvalidWordError("pattern must have length 5")
    out = []
    for v in values:
        if isinstance(v, bool) or not isinstance(v, int) or v not in (0, 1, 2):
            raise InvalidWordError("pattern elements must be integers in {0,1,2}")
        out.append(Mark(v))
    return tuple(out)  # type: ignore[return-value]


def score_pattern(guess: str, target: str) -> Pattern:
    """
    Compute the 5-position feedback for `guess` against `target`.

    Two passes over a letter counter built from the target only:
    1) mark CORRECT where letters align and consume that letter;
    2) left to right over the rest of the guess, mark PRESENT while the
       letter still has unconsumed target occurrences, else ABSENT.

    So a repeated guess letter is credited PRESENT at most as many times as
    the target has occurrences left after the CORRECT matches.
    """
    validate_word(guess, name="guess")
    validate_word(target, name="target")

    pattern = [Mark.ABSENT] * WORD_LENGTH
    remaining = Counter(target)

    # Pass 1: greens
    for i, (g, t) in enumerate(zip(guess, target)):
        if g == t:
            pattern[i] = Mark.CORRECT
            remaining[g] -= 1

    # Pass 2: yellows where counts allow (else gray)
    for i, g in enumerate(guess):
        if pattern[i] == Mark.ABSENT and remaining[g] > 0:
            pattern[i] = Mark.PRESENT
            remaining[g] -= 1

    return tuple(pattern)  # type: ignore[return-value]


def pattern_to_int(pattern: Sequence[int]) -> int:
    """Encode a pattern as a base-3 integer in [0, 242]."""
    value = 0
    for p in as_pattern(pattern):
        value = value * 3 + int(p)
    return value


def pattern_to_key(pattern: Sequence[int]) -> str:
    """Render a pattern as its g/y/b key, e.g. ``"gbybb"``."""
    return "".join(_KEY_CHARS[p] for p in as_pattern(pattern))


def is_solved(pattern: Sequence[int]) -> bool:
    return tuple(pattern) == SOLVED


def consistent_with(word: str, guess: str, pattern: Sequence[int]) -> bool:
    """
    True iff `word`, taken as the target, would have produced `pattern` for `guess`.

    Delegates to `score_pattern` and requires equality on all five slots.
    """
    expected = as_pattern(pattern)
    return score_pattern(guess, word) == expected
