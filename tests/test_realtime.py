"""Tests for the real-time tick path: asyncio scheduling and the foreground run loop."""

import asyncio
import io

import pytest
from rich.console import Console

from pomocycle.app import PomodoroApp
from pomocycle.cli import main as cli
from pomocycle.core import events as ev
from pomocycle.core.clock import MonotonicClock
from pomocycle.core.config import Config
from pomocycle.schemas import SessionType
from pomocycle.storage.kv import MemoryStore
from pomocycle.timer.engine import TimerEngine
from pomocycle.timer.scheduler import AsyncioScheduler

# One configured minute lasts 6ms
FAST = 0.0001


def make_config(tmp_path) -> Config:
    return Config(
        data_dir=tmp_path / "data",
        log_dir=tmp_path / "logs",
        config_dir=tmp_path / "conf",
        timer={"tick_interval_ms": 10, "auto_start_delay_seconds": 0},
    )


@pytest.fixture
def output(monkeypatch) -> io.StringIO:
    buffer = io.StringIO()
    monkeypatch.setattr(cli, "console", Console(file=buffer, width=120))
    return buffer


def test_engine_completes_on_event_loop():
    async def scenario():
        done = asyncio.Event()
        engine = TimerEngine(MonotonicClock(), AsyncioScheduler(), tick_interval_ms=10)
        engine.on_complete = done.set
        engine.start(100)
        await asyncio.wait_for(done.wait(), timeout=5)
        return engine

    engine = asyncio.run(scenario())

    assert engine.completed
    assert engine.remaining_ms == 0
    assert not engine.running


def test_paused_engine_stops_ticking_on_event_loop():
    async def scenario():
        ticks = []
        engine = TimerEngine(MonotonicClock(), AsyncioScheduler(), tick_interval_ms=10)
        engine.on_tick = lambda remaining, total: ticks.append(remaining)
        engine.start(10_000)
        await asyncio.sleep(0.05)
        engine.pause()
        seen = len(ticks)
        await asyncio.sleep(0.05)
        return engine, ticks, seen

    engine, ticks, seen = asyncio.run(scenario())

    assert len(ticks) == seen
    assert 0 < engine.remaining_ms < 10_000


def test_cancelled_handle_never_fires():
    async def scenario():
        fired = []
        scheduler = AsyncioScheduler()
        handle = scheduler.call_later(10, lambda: fired.append("cancelled"))
        handle.cancel()
        scheduler.call_later(-5, lambda: fired.append("due"))
        await asyncio.sleep(0.05)
        return fired

    assert asyncio.run(scenario()) == ["due"]


def test_scaled_work_session_completes_on_event_loop():
    async def scenario():
        pomo = PomodoroApp(MemoryStore(), tick_interval_ms=10, minutes_scale=FAST)
        completed = asyncio.Event()
        pomo.events.subscribe(ev.SESSION_COMPLETED, lambda record: completed.set())
        pomo.start_timer()
        await asyncio.wait_for(completed.wait(), timeout=5)
        pomo.close()
        return pomo

    pomo = asyncio.run(scenario())

    record = next(iter(pomo.sessions.all()))
    assert record.type is SessionType.WORK
    assert record.duration_minutes == 25
    assert pomo.state.session_type is SessionType.SHORT_BREAK
    assert not pomo.state.running


def test_run_loop_completes_work_and_auto_starts_break(tmp_path, output):
    config = make_config(tmp_path)
    setup = PomodoroApp.from_config(config)
    setup.add_task("fix [/] parser")
    setup.close()

    async def scenario():
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(
                cli._run_timer(config, 1, True, False, minutes_scale=FAST),
                timeout=1.5,
            )

    asyncio.run(scenario())

    pomo = PomodoroApp.from_config(config)
    records = list(pomo.sessions.all())
    pomo.close()

    # The break started on its own; the next work session waited
    assert [r.type for r in records] == [SessionType.SHORT_BREAK, SessionType.WORK]
    assert records[1].task_name == "fix [/] parser"
    assert "Work complete (25 min) - fix [/] parser" in output.getvalue()
    assert "Short Break complete" in output.getvalue()


def test_run_loop_without_auto_breaks_waits_after_work(tmp_path, output):
    config = make_config(tmp_path)

    async def scenario():
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(
                cli._run_timer(config, None, False, False, minutes_scale=FAST),
                timeout=1.0,
            )

    asyncio.run(scenario())

    pomo = PomodoroApp.from_config(config)
    assert [r.type for r in pomo.sessions.all()] == [SessionType.WORK]
    pomo.close()
