"""Records passed between the solver, the loops and their consumers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from wordsolve.feedback import Pattern, as_pattern, is_solved, pattern_to_key, validate_word


@dataclass(frozen=True)
class GuessResult:
    """One guess, the feedback it got, and how many candidates survived it."""

    guess: str
    pattern: Pattern
    remaining: int
    flagged: bool = False

    def __post_init__(self) -> None:
        validate_word(self.guess, name="guess")
        object.__setattr__(self, "pattern", as_pattern(self.pattern))
        if self.remaining < 0:
            raise ValueError("remaining must be non-negative")

    @property
    def solved(self) -> bool:
        return not self.flagged and is_solved(self.pattern)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "guess": self.guess,
            "pattern": pattern_to_key(self.pattern),
            "remaining": self.remaining,
            "flagged": self.flagged,
        }


@dataclass(frozen=True)
class SolveSummary:
    success: bool
    answer: Optional[str]
    steps: Tuple[GuessResult, ...] = field(default_factory=tuple)
    reason: Optional[str] = None

    @property
    def guesses(self) -> Tuple[str, ...]:
        return tuple(s.guess for s in self.steps)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "success": self.success,
            "answer": self.answer,
            "steps": [s.to_dict() for s in self.steps],
        }
        if self.reason is not None:
            out["reason"] = self.reason
        return out
