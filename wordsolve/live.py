"""
live.py

Solves a puzzle rendered somewhere else, through an AutomationAdapter.

The attempt moves through
  opening session -> resetting surface -> turn 0..5 -> solved | failed | aborted
and streams events as it goes: any number of `log` / `step` events, then
exactly one `complete` or `error`. After `cancel()` (or once the consumer
closes the stream) nothing more is emitted. The session is closed exactly
once however the attempt ends.

Rejected guesses go into a per-attempt `blocked` set and the same turn is
retried. Feedback that neither extraction strategy can read is recorded as
an all-absent step flagged as unverified, and left out of candidate filtering.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import aclosing
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Sequence, Set, TypeVar

from wordsolve.constraints import derive_constraints, filter_candidates
from wordsolve.env import MAX_TURNS, OPENER, TURN_BUDGET_EXHAUSTED
from wordsolve.errors import InvalidWordError, SessionFault
from wordsolve.events import CompleteEvent, ErrorEvent, Event, LogEvent, StepEvent
from wordsolve.feedback import ALL_ABSENT, Pattern, as_pattern, pattern_to_key, validate_word
from wordsolve.logger import get_logger
from wordsolve.models import GuessResult, SolveSummary
from wordsolve.selector import pick_next_guess, rank_pool
from wordsolve.surface import STRATEGIES, UNAVAILABLE, AutomationAdapter, SessionFactory, Submission
from wordsolve.vocab import WordCorpus, WordLists

LOGGER = get_logger(__name__)

T = TypeVar("T")


class AttemptCancelled(Exception):
    """Raised inside the attempt when cancel() interrupts a pending adapter call."""


@dataclass(frozen=True)
class LiveConfig:
    max_turns: int = MAX_TURNS
    opener: str = OPENER
    adapter_timeout: float = 15.0
    read_timeout: float = 15.0
    max_rejections: int = 25
    blocked_candidate_sample: int = 150
    blocked_allowed_sample: int = 300

    def __post_init__(self) -> None:
        validate_word(self.opener, name="opener")
        if self.max_turns <= 0:
            raise ValueError("max_turns must be positive")
        if self.adapter_timeout <= 0 or self.read_timeout <= 0:
            raise ValueError("timeouts must be positive")


class LiveSolver:
    """
    One live attempt. Iterate `events()` once; create a new LiveSolver (and so
    a new session) to try again.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        corpus: WordCorpus,
        config: Optional[LiveConfig] = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._factory = session_factory
        self.corpus = corpus
        self.config = config or LiveConfig()
        self._clock = clock

        self._session: Optional[AutomationAdapter] = None
        self._started = False
        self._released = False
        self._cancel_event = asyncio.Event()

    # -------------------------
    # Public API
    # -------------------------
    def cancel(self) -> None:
        """Stop the attempt; no further events are emitted and a pending adapter call is abandoned."""
        if not self._cancel_event.is_set():
            LOGGER.info("Live attempt cancelled")
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def released(self) -> bool:
        return self._released

    async def events(self) -> AsyncIterator[Event]:
        if self._started:
            raise RuntimeError("a LiveSolver runs a single attempt")
        self._started = True
        try:
            async with aclosing(self._attempt()) as stream:
                async for event in stream:
                    if self.cancelled:
                        return
                    yield event
        finally:
            await self._release()

    # -------------------------
    # State machine
    # -------------------------
    async def _attempt(self) -> AsyncIterator[Event]:
        cfg = self.config
        lists = self.corpus.snapshot()
        try:
            yield self._log("Opening puzzle session")
            self._session = await self._call(self._open_session(), "open session")
            yield self._log("Resetting puzzle surface")
            await self._call(self._session.reset(), "reset surface")

            steps: List[GuessResult] = []
            candidates: List[str] = list(lists.answers)
            blocked: Set[str] = set()
            rejections = 0
            turn = 0

            while turn < cfg.max_turns:
                if self.cancelled:
                    return
                reliable = [s for s in steps if not s.flagged]
                guess = self._select_guess(turn, candidates, reliable, blocked, lists)

                submission = await self._call(self._session.submit_guess(guess), f"submit {guess!r}")
                if not isinstance(submission, Submission):
                    raise SessionFault(f"submit {guess!r} returned {type(submission).__name__}, not a Submission")
                if not submission.accepted:
                    blocked.add(guess)
                    rejections += 1
                    yield self._log(
                        f'Guess "{guess}" not accepted ({submission.reason or "unknown"}). Selecting alternative...'
                    )
                    if rejections > cfg.max_rejections:
                        raise SessionFault(f"surface rejected {rejections} guesses in one attempt")
                    continue

                pattern = await self._read_pattern(turn)
                if pattern is None:
                    blocked.add(guess)
                    result = GuessResult(guess, ALL_ABSENT, len(candidates), flagged=True)
                    yield self._log(f"Could not read feedback for row {turn + 1}; step recorded as unverified")
                else:
                    candidates = filter_candidates(lists.answers, [*reliable, (guess, pattern)])
                    result = GuessResult(guess, pattern, len(candidates))
                steps.append(result)
                turn += 1
                yield StepEvent.from_result(result)

                if result.solved:
                    yield self._log("Solved!")
                    await self._release()
                    yield CompleteEvent(True, tuple(steps), answer=guess)
                    return
                if not result.flagged and not candidates:
                    yield self._log("Candidate list exhausted; the answer is not in the tracked word list")

            yield self._log(f"No solve within {cfg.max_turns} guesses")
            await self._release()
            yield CompleteEvent(False, tuple(steps), reason=TURN_BUDGET_EXHAUSTED)
        except AttemptCancelled:
            LOGGER.debug("Pending adapter call abandoned after cancel()")
        except SessionFault as exc:
            LOGGER.error("Live attempt aborted: %s", exc)
            await self._release()
            yield ErrorEvent(str(exc))
        except Exception as exc:
            LOGGER.exception("Live attempt failed unexpectedly")
            await self._release()
            yield ErrorEvent(f"unexpected failure: {exc}")

    def _select_guess(
        self,
        turn: int,
        candidates: Sequence[str],
        history: Sequence[GuessResult],
        blocked: Set[str],
        lists: WordLists,
    ) -> str:
        cfg = self.config
        guess = cfg.opener if turn == 0 else pick_next_guess(candidates, history, lists)
        if guess not in blocked:
            return guess

        # re-rank a wider pool, skipping everything the surface already refused or saw
        tried = {s.guess for s in history}
        pool = list(dict.fromkeys([
            *candidates[: cfg.blocked_candidate_sample],
            *lists.allowed[: cfg.blocked_allowed_sample],
        ]))
        ranked = rank_pool(pool, candidates, derive_constraints(history), exclude=blocked | tried)
        if ranked:
            return ranked[0].word
        for w in lists.allowed:
            if w not in blocked and w not in tried:
                return w
        raise SessionFault("every allowed word has been refused")

    # -------------------------
    # Adapter plumbing
    # -------------------------
    async def _open_session(self) -> AutomationAdapter:
        return await self._factory()

    async def _bounded(self, awaitable: Awaitable[T], timeout: float) -> T:
        """
        Await an adapter call, giving up after `timeout` seconds or as soon as
        cancel() is called. The abandoned call is cancelled either way.
        """
        call = asyncio.ensure_future(awaitable)
        if self.cancelled:
            call.cancel()
            raise AttemptCancelled()
        stop = asyncio.ensure_future(self._cancel_event.wait())
        try:
            done, _ = await asyncio.wait({call, stop}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop.cancel()
            if not call.done():
                call.cancel()
        if call in done:
            return call.result()
        if self.cancelled:
            raise AttemptCancelled()
        raise asyncio.TimeoutError()

    async def _call(self, awaitable: Awaitable[T], what: str) -> T:
        timeout = self.config.adapter_timeout
        try:
            return await self._bounded(awaitable, timeout)
        except (SessionFault, AttemptCancelled):
            raise
        except asyncio.TimeoutError as exc:
            raise SessionFault(f"{what} timed out after {timeout:g}s") from exc
        except Exception as exc:
            raise SessionFault(f"{what} failed: {exc}") from exc

    async def _read_pattern(self, turn: int) -> Optional[Pattern]:
        """Try each extraction strategy in order; None when none of them can read the row."""
        if self._session is None:
            raise SessionFault("no open session to read feedback from")
        for strategy in STRATEGIES:
            try:
                raw = await self._bounded(
                    self._session.read_pattern(turn, strategy),
                    self.config.read_timeout,
                )
            except (SessionFault, AttemptCancelled):
                raise
            except asyncio.TimeoutError:
                LOGGER.warning("%s extraction timed out on row %d", strategy, turn + 1)
                continue
            except Exception as exc:
                LOGGER.warning("%s extraction failed on row %d: %s", strategy, turn + 1, exc)
                continue
            if raw is UNAVAILABLE:
                LOGGER.info("%s extraction unavailable on row %d", strategy, turn + 1)
                continue
            try:
                pattern = as_pattern(raw)
            except InvalidWordError as exc:
                LOGGER.warning("%s extraction returned a malformed pattern on row %d: %s", strategy, turn + 1, exc)
                continue
            LOGGER.debug("row %d read via %s: %s", turn + 1, strategy, pattern_to_key(pattern))
            return pattern
        return None

    async def _release(self) -> None:
        if self._released:
            return
        self._released = True
        session, self._session = self._session, None
        if session is None:
            return
        try:
            await asyncio.wait_for(session.close(), timeout=self.config.adapter_timeout)
        except Exception as exc:
            LOGGER.warning("Closing the puzzle session failed: %s", exc)
        else:
            LOGGER.debug("Puzzle session closed")

    def _log(self, message: str) -> LogEvent:
        LOGGER.info(message)
        return LogEvent(message, self._clock())


async def run_live(
    solver: LiveSolver,
    on_event: Optional[Callable[[Event], None]] = None,
) -> Optional[SolveSummary]:
    """
    Drain `solver.events()`, passing each event to `on_event`.

    Returns the attempt's summary, or None if it was aborted or cancelled.
    """
    summary: Optional[SolveSummary] = None
    async for event in solver.events():
        if on_event is not None:
            on_event(event)
        if isinstance(event, CompleteEvent):
            summary = SolveSummary(
                success=event.success,
                answer=event.answer,
                steps=event.steps,
                reason=event.reason,
            )
    return summary
