import asyncio
import json

import pytest

from wordsolve.env import TURN_BUDGET_EXHAUSTED
from wordsolve.errors import SessionFault
from wordsolve.events import CompleteEvent, ErrorEvent, LogEvent, StepEvent, TERMINAL_KINDS, format_sse
from wordsolve.feedback import ALL_ABSENT
from wordsolve.live import LiveConfig, LiveSolver, run_live
from wordsolve.surface import SimulatedSurface, simulated_session


async def _collect(solver):
    return [event async for event in solver.events()]


def _assert_well_ordered(events):
    kinds = [e.kind for e in events]
    terminals = [k for k in kinds if k in TERMINAL_KINDS]
    assert len(terminals) == 1
    assert kinds[-1] in TERMINAL_KINDS
    assert sum(1 for k in kinds if k == "step") <= 6


@pytest.mark.asyncio
async def test_solves_and_releases_session(tiny_corpus):
    surface = SimulatedSurface("sissy", tiny_corpus.allowed)
    solver = LiveSolver(simulated_session(surface), tiny_corpus, clock=lambda: 1.0)
    events = await _collect(solver)

    _assert_well_ordered(events)
    steps = [e for e in events if isinstance(e, StepEvent)]
    assert [s.guess for s in steps] == ["roate", "sissy"]
    final = events[-1]
    assert isinstance(final, CompleteEvent)
    assert final.success and final.answer == "sissy"
    assert [s.guess for s in final.steps] == ["roate", "sissy"]
    assert all(e.timestamp == 1.0 for e in events if isinstance(e, LogEvent))
    assert surface.reset_count == 1
    assert surface.close_count == 1
    assert solver.released


@pytest.mark.asyncio
async def test_rejected_guess_is_blocked_and_turn_retried(tiny_corpus):
    surface = SimulatedSurface("sissy", ["cigar", "rebut", "sissy"])
    solver = LiveSolver(simulated_session(surface), tiny_corpus)
    events = await _collect(solver)

    _assert_well_ordered(events)
    logs = [e.message for e in events if isinstance(e, LogEvent)]
    assert any('"roate" not accepted (Not in word list)' in m for m in logs)
    steps = [e for e in events if isinstance(e, StepEvent)]
    assert "roate" not in [s.guess for s in steps]
    assert [s.guess for s in steps] == ["cigar", "sissy"]
    assert surface.board == ["cigar", "sissy"]
    assert events[-1].success


@pytest.mark.asyncio
async def test_secondary_extraction_used_when_primary_fails(tiny_corpus):
    surface = SimulatedSurface("sissy", tiny_corpus.allowed, broken_strategies=["primary"])
    solver = LiveSolver(simulated_session(surface), tiny_corpus)
    events = await _collect(solver)

    assert surface.reads[0] == ["primary", "secondary"]
    steps = [e for e in events if isinstance(e, StepEvent)]
    assert not any(s.flagged for s in steps)
    assert events[-1].success


@pytest.mark.asyncio
async def test_unreadable_row_is_flagged_not_trusted(tiny_corpus):
    surface = SimulatedSurface("sissy", tiny_corpus.allowed, unreadable_rows=[0])
    solver = LiveSolver(simulated_session(surface), tiny_corpus)
    events = await _collect(solver)

    _assert_well_ordered(events)
    steps = [e for e in events if isinstance(e, StepEvent)]
    first = steps[0]
    assert first.guess == "roate"
    assert first.flagged
    assert first.pattern == ALL_ABSENT
    assert first.remaining == 3  # nothing was filtered on it
    assert [s.guess for s in steps] == ["roate", "cigar", "sissy"]
    assert any("Could not read feedback for row 1" in e.message for e in events if isinstance(e, LogEvent))
    final = events[-1]
    assert final.success
    assert final.steps[0].flagged


@pytest.mark.asyncio
async def test_session_fault_ends_with_error(tiny_corpus):
    surface = SimulatedSurface("sissy", tiny_corpus.allowed, fault_after_submissions=1)
    solver = LiveSolver(simulated_session(surface), tiny_corpus)
    events = await _collect(solver)

    _assert_well_ordered(events)
    assert isinstance(events[-1], ErrorEvent)
    assert "stopped responding" in events[-1].message
    assert not any(isinstance(e, CompleteEvent) for e in events)
    assert surface.close_count == 1


@pytest.mark.asyncio
async def test_slow_surface_times_out(tiny_corpus):
    surface = SimulatedSurface("sissy", tiny_corpus.allowed, latency=0.5)
    config = LiveConfig(adapter_timeout=0.05, read_timeout=0.05)
    solver = LiveSolver(simulated_session(surface), tiny_corpus, config)
    events = await _collect(solver)

    assert isinstance(events[-1], ErrorEvent)
    assert "reset surface timed out" in events[-1].message
    assert surface.close_count == 1


@pytest.mark.asyncio
async def test_failed_session_open_reports_error(tiny_corpus):
    async def broken_factory():
        raise ConnectionError("browser did not start")

    solver = LiveSolver(broken_factory, tiny_corpus)
    events = await _collect(solver)

    assert isinstance(events[-1], ErrorEvent)
    assert "open session failed" in events[-1].message
    assert solver.released


@pytest.mark.asyncio
async def test_turn_budget_exhausted(tiny_corpus):
    surface = SimulatedSurface("zzzzz")
    solver = LiveSolver(simulated_session(surface), tiny_corpus)
    events = await _collect(solver)

    _assert_well_ordered(events)
    steps = [e for e in events if isinstance(e, StepEvent)]
    assert len(steps) == 6
    final = events[-1]
    assert isinstance(final, CompleteEvent)
    assert not final.success
    assert final.answer is None
    assert final.reason == TURN_BUDGET_EXHAUSTED
    assert any("Candidate list exhausted" in e.message for e in events if isinstance(e, LogEvent))
    assert surface.close_count == 1


@pytest.mark.asyncio
async def test_too_many_rejections_is_a_fault(tiny_corpus):
    surface = SimulatedSurface("sissy", accepted=[])
    solver = LiveSolver(simulated_session(surface), tiny_corpus, LiveConfig(max_rejections=2))
    events = await _collect(solver)

    assert isinstance(events[-1], ErrorEvent)
    rejections = [e for e in events if isinstance(e, LogEvent) and "not accepted" in e.message]
    assert len(rejections) == 3
    assert surface.close_count == 1


@pytest.mark.asyncio
async def test_cancel_stops_events_and_releases_once(tiny_corpus):
    surface = SimulatedSurface("sissy", tiny_corpus.allowed)
    solver = LiveSolver(simulated_session(surface), tiny_corpus)

    seen = []
    async for event in solver.events():
        seen.append(event)
        if isinstance(event, StepEvent):
            solver.cancel()

    assert isinstance(seen[-1], StepEvent)
    assert sum(1 for e in seen if isinstance(e, StepEvent)) == 1
    assert not any(e.kind in TERMINAL_KINDS for e in seen)
    assert surface.submissions == 1
    assert surface.close_count == 1


@pytest.mark.asyncio
async def test_consumer_disconnect_releases_once(tiny_corpus):
    surface = SimulatedSurface("sissy", tiny_corpus.allowed)
    solver = LiveSolver(simulated_session(surface), tiny_corpus)

    stream = solver.events()
    await stream.__anext__()  # opening session
    await stream.__anext__()  # resetting surface (session now held)
    await stream.aclose()

    assert surface.close_count == 1
    assert solver.released


@pytest.mark.asyncio
async def test_task_cancellation_releases_session(tiny_corpus):
    surface = SimulatedSurface("sissy", tiny_corpus.allowed, latency=0.2)
    solver = LiveSolver(simulated_session(surface), tiny_corpus)
    task = asyncio.create_task(_collect(solver))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert surface.close_count == 1


@pytest.mark.asyncio
async def test_solver_runs_a_single_attempt(tiny_corpus):
    solver = LiveSolver(simulated_session(SimulatedSurface("sissy")), tiny_corpus)
    await _collect(solver)
    with pytest.raises(RuntimeError):
        await _collect(solver)


@pytest.mark.asyncio
async def test_run_live_returns_summary(tiny_corpus):
    seen = []
    solver = LiveSolver(simulated_session(SimulatedSurface("sissy")), tiny_corpus)
    summary = await run_live(solver, seen.append)
    assert summary is not None and summary.success
    assert summary.guesses == ("roate", "sissy")
    assert seen[-1].kind == "complete"


def test_sse_frames():
    frame = format_sse(LogEvent("hello", 12.5))
    assert frame == 'event: log\ndata: {"message": "hello", "timestamp": 12.5}\n\n'
    step = format_sse(StepEvent("roate", (2, 0, 1, 0, 2), 4))
    payload = json.loads(step.split("data: ", 1)[1])
    assert payload == {"guess": "roate", "pattern": "gbybg", "remaining": 4, "flagged": False}
    assert format_sse(ErrorEvent("boom")).startswith("event: error\n")


def test_config_validation():
    with pytest.raises(ValueError):
        LiveConfig(opener="ROATE")
    with pytest.raises(ValueError):
        LiveConfig(adapter_timeout=0)


@pytest.mark.asyncio
async def test_read_errors_fall_through_to_next_strategy(tiny_corpus):
    class FlakySurface(SimulatedSurface):
        async def read_pattern(self, turn_index, strategy="primary"):
            if strategy == "primary":
                self.reads.setdefault(turn_index, []).append(strategy)
                raise RuntimeError("selector not found")
            return await super().read_pattern(turn_index, strategy)

    surface = FlakySurface("sissy", tiny_corpus.allowed)
    events = await _collect(LiveSolver(simulated_session(surface), tiny_corpus))
    assert surface.reads[0] == ["primary", "secondary"]
    assert events[-1].success


@pytest.mark.asyncio
async def test_adapter_session_fault_during_read_aborts(tiny_corpus):
    class DeadSurface(SimulatedSurface):
        async def read_pattern(self, turn_index, strategy="primary"):
            raise SessionFault("page crashed")

    surface = DeadSurface("sissy", tiny_corpus.allowed)
    events = await _collect(LiveSolver(simulated_session(surface), tiny_corpus))
    assert isinstance(events[-1], ErrorEvent)
    assert events[-1].message == "page crashed"
    assert surface.close_count == 1


@pytest.mark.asyncio
async def test_malformed_submission_ends_with_error(tiny_corpus):
    class SilentSurface(SimulatedSurface):
        async def submit_guess(self, word):
            await super().submit_guess(word)
            return None

    surface = SilentSurface("sissy", tiny_corpus.allowed)
    events = await _collect(LiveSolver(simulated_session(surface), tiny_corpus))

    _assert_well_ordered(events)
    assert isinstance(events[-1], ErrorEvent)
    assert "not a Submission" in events[-1].message
    assert surface.close_count == 1


@pytest.mark.asyncio
async def test_unexpected_failure_still_ends_with_error(tiny_corpus):
    def broken_selection(*args):
        raise KeyError("score table")

    surface = SimulatedSurface("sissy", tiny_corpus.allowed)
    solver = LiveSolver(simulated_session(surface), tiny_corpus)
    solver._select_guess = broken_selection
    events = await _collect(solver)

    _assert_well_ordered(events)
    assert isinstance(events[-1], ErrorEvent)
    assert events[-1].message.startswith("unexpected failure")
    assert surface.close_count == 1


@pytest.mark.asyncio
async def test_cancel_interrupts_pending_submission(tiny_corpus):
    surface = SimulatedSurface("sissy", tiny_corpus.allowed, method_latency={"submit_guess": 5.0})
    solver = LiveSolver(simulated_session(surface), tiny_corpus)
    loop = asyncio.get_running_loop()
    task = asyncio.create_task(_collect(solver))

    await asyncio.sleep(0.05)  # the opener is now waiting on submit_guess
    cancelled_at = loop.time()
    solver.cancel()
    events = await asyncio.wait_for(task, timeout=1.0)

    assert loop.time() - cancelled_at < 0.5
    assert not any(e.kind in TERMINAL_KINDS for e in events)
    assert surface.submissions == 0
    assert surface.reads == {}
    assert surface.close_count == 1
    assert solver.released


@pytest.mark.asyncio
async def test_submit_timeout_is_fatal(tiny_corpus):
    surface = SimulatedSurface("sissy", tiny_corpus.allowed, method_latency={"submit_guess": 0.5})
    solver = LiveSolver(simulated_session(surface), tiny_corpus, LiveConfig(adapter_timeout=0.05))
    events = await _collect(solver)

    _assert_well_ordered(events)
    assert isinstance(events[-1], ErrorEvent)
    assert events[-1].message == "submit 'roate' timed out after 0.05s"
    assert not any(isinstance(e, StepEvent) for e in events)
    assert surface.close_count == 1


@pytest.mark.asyncio
async def test_read_timeouts_fall_through_and_flag_steps(corpus):
    surface = SimulatedSurface("sissy", method_latency={"read_pattern": 0.5})
    solver = LiveSolver(simulated_session(surface), corpus, LiveConfig(read_timeout=0.02))
    events = await _collect(solver)

    _assert_well_ordered(events)
    assert surface.reads[0] == ["primary", "secondary"]
    steps = [e for e in events if isinstance(e, StepEvent)]
    assert len(steps) == 6
    assert all(s.flagged for s in steps)
    assert len({s.guess for s in steps}) == 6
    final = events[-1]
    assert isinstance(final, CompleteEvent)
    assert not final.success
    assert final.reason == TURN_BUDGET_EXHAUSTED
    assert surface.close_count == 1
