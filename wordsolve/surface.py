"""
surface.py

The contract a live puzzle surface must satisfy, plus an in-process
implementation of it.

An adapter drives one puzzle board. The live loop only ever calls:
  reset()                          navigate, clear persisted state, dismiss intros
  submit_guess(word)               type and enter a word; report accept/reject
  read_pattern(row, strategy)      read a row's feedback, or UNAVAILABLE
  close()                          release the session
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Collection, Dict, List, Mapping, Optional, Protocol, Union

from wordsolve.errors import ExtractionFailure, SessionFault
from wordsolve.feedback import Pattern, score_pattern, validate_word
from wordsolve.logger import get_logger

LOGGER = get_logger(__name__)

PRIMARY = "primary"
SECONDARY = "secondary"
STRATEGIES = (PRIMARY, SECONDARY)


class Unavailable(Enum):
    UNAVAILABLE = "unavailable"


UNAVAILABLE = Unavailable.UNAVAILABLE

PatternRead = Union[Pattern, Unavailable]


@dataclass(frozen=True)
class Submission:
    accepted: bool
    reason: Optional[str] = None


class AutomationAdapter(Protocol):
    async def reset(self) -> None: ...

    async def submit_guess(self, word: str) -> Submission: ...

    async def read_pattern(self, turn_index: int, strategy: str = PRIMARY) -> PatternRead: ...

    async def close(self) -> None: ...


SessionFactory = Callable[[], Awaitable[AutomationAdapter]]


class SimulatedSurface:
    """
    A puzzle board held in memory, with knobs to reproduce what a real page does.

    target : the hidden word
    accepted : words the board accepts; anything else is rejected with
        "Not in word list". None accepts every well-formed word.
    broken_strategies : extraction strategies that always come back UNAVAILABLE
    unreadable_rows : rows whose feedback no strategy can read
    fault_after_submissions : raise SessionFault on this submission number (1-based)
    latency : seconds each call sleeps, to exercise timeouts
    method_latency : per-method override of `latency`, e.g. {"submit_guess": 1.0}
    """

    rows = 6

    def __init__(
        self,
        target: str,
        accepted: Optional[Collection[str]] = None,
        *,
        broken_strategies: Collection[str] = (),
        unreadable_rows: Collection[int] = (),
        fault_after_submissions: Optional[int] = None,
        latency: float = 0.0,
        method_latency: Optional[Mapping[str, float]] = None,
    ) -> None:
        self.target = validate_word(target, name="target")
        self.accepted = None if accepted is None else frozenset(accepted)
        self.broken_strategies = frozenset(broken_strategies)
        self.unreadable_rows = frozenset(unreadable_rows)
        self.fault_after_submissions = fault_after_submissions
        self.latency = latency
        self.method_latency = dict(method_latency or {})

        self.board: List[str] = []
        self.submissions = 0
        self.reset_count = 0
        self.close_count = 0
        self.reads: Dict[int, List[str]] = {}

    async def _tick(self, method: str) -> None:
        if self.close_count:
            raise SessionFault("session already closed")
        delay = self.method_latency.get(method, self.latency)
        if delay:
            await asyncio.sleep(delay)

    async def reset(self) -> None:
        await self._tick("reset")
        self.board = []
        self.reset_count += 1

    async def submit_guess(self, word: str) -> Submission:
        await self._tick("submit_guess")
        self.submissions += 1
        if self.fault_after_submissions is not None and self.submissions >= self.fault_after_submissions:
            raise SessionFault("board stopped responding")
        if len(self.board) >= self.rows:
            raise SessionFault("board is full")
        if len(word) != 5:
            return Submission(False, "Not enough letters")
        if self.accepted is not None and word not in self.accepted:
            return Submission(False, "Not in word list")
        self.board.append(word)
        return Submission(True)

    async def read_pattern(self, turn_index: int, strategy: str = PRIMARY) -> PatternRead:
        self.reads.setdefault(turn_index, []).append(strategy)
        await self._tick("read_pattern")
        if strategy not in STRATEGIES:
            raise ExtractionFailure(f"unknown extraction strategy: {strategy}")
        if strategy in self.broken_strategies or turn_index in self.unreadable_rows:
            return UNAVAILABLE
        if turn_index >= len(self.board):
            return UNAVAILABLE
        return score_pattern(self.board[turn_index], self.target)

    async def close(self) -> None:
        self.close_count += 1


def simulated_session(surface: SimulatedSurface) -> SessionFactory:
    """Session factory handing out `surface` (one attempt per surface)."""

    async def _open() -> AutomationAdapter:
        LOGGER.debug("Opening simulated session for a %d-row board", surface.rows)
        return surface

    return _open
