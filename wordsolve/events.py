"""Events streamed by the live solve loop, and their Server-Sent-Events framing."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

from wordsolve.feedback import Pattern, pattern_to_key
from wordsolve.models import GuessResult


@dataclass(frozen=True)
class LogEvent:
    kind: ClassVar[str] = "log"
    message: str
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "timestamp": self.timestamp}


@dataclass(frozen=True)
class StepEvent:
    kind: ClassVar[str] = "step"
    guess: str
    pattern: Pattern
    remaining: int
    flagged: bool = False

    @classmethod
    def from_result(cls, result: GuessResult) -> "StepEvent":
        return cls(result.guess, result.pattern, result.remaining, result.flagged)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "guess": self.guess,
            "pattern": pattern_to_key(self.pattern),
            "remaining": self.remaining,
            "flagged": self.flagged,
        }


@dataclass(frozen=True)
class CompleteEvent:
    kind: ClassVar[str] = "complete"
    success: bool
    steps: Tuple[GuessResult, ...] = field(default_factory=tuple)
    answer: Optional[str] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "success": self.success,
            "steps": [s.to_dict() for s in self.steps],
        }
        if self.answer is not None:
            out["answer"] = self.answer
        if self.reason is not None:
            out["error"] = self.reason
        return out


@dataclass(frozen=True)
class ErrorEvent:
    kind: ClassVar[str] = "error"
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


Event = Union[LogEvent, StepEvent, CompleteEvent, ErrorEvent]
TERMINAL_KINDS = frozenset({CompleteEvent.kind, ErrorEvent.kind})


def format_sse(event: Event) -> str:
    """Render one event as an SSE frame."""
    return f"event: {event.kind}\ndata: {json.dumps(event.to_dict())}\n\n"
