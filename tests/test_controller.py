"""Tests for the focus controller wiring."""

import pytest
import pytest_asyncio

from nudge.core.config import FocusConfig
from nudge.focus.controller import FocusController
from nudge.focus.state import FocusMode
from nudge.focus.stats import StatsRecorder
from nudge.notifications.scheduler import NullNotificationScheduler
from nudge.storage.database import init_database


@pytest.fixture
def make_controller(store, ticks, notifier, clock):
    def make(**kwargs):
        kwargs.setdefault("notifier", notifier)
        return FocusController(store, ticks=ticks, clock=clock, **kwargs)

    return make


@pytest_asyncio.fixture
async def recorder(tmp_path):
    db = await init_database(tmp_path / "nudge.db")
    yield StatsRecorder(db)
    await db.close()


def test_bootstrap_without_persisted_session(make_controller):
    controller = make_controller()
    assert controller.bootstrap() is None
    assert controller.timer.mode == FocusMode.IDLE


def test_bootstrap_resumes_previous_run(make_controller, clock, ticks):
    first = make_controller()
    first.start_focus(10)
    clock.advance(200)
    first.timer.tick()
    first.pause()

    # A new process reading the same store
    second = make_controller()
    restored = second.bootstrap()

    assert restored is not None
    assert restored.mode == FocusMode.PAUSED
    assert restored.remaining_ms == 400_000

    second.resume()
    assert second.timer.mode == FocusMode.FOCUS
    assert second.timer.remaining_ms == 400_000


def test_bootstrap_does_not_subtract_downtime(make_controller, clock):
    first = make_controller()
    first.start_focus(25)
    clock.advance(60)
    first.timer.tick()

    clock.advance(3600)
    second = make_controller()
    restored = second.bootstrap()

    assert restored.mode == FocusMode.FOCUS
    assert restored.remaining_ms == 1_440_000


def test_start_break_from_focus_stops_first(make_controller, persistence):
    controller = make_controller()
    completed = []
    controller.timer.on_focus_complete = completed.append

    controller.start_focus(25)
    controller.start_break()

    assert controller.timer.mode == FocusMode.BREAK_TIME
    assert controller.timer.total_ms == 5 * 60_000
    assert completed == []
    assert persistence.load().is_break is True


def test_toggle_pause(make_controller):
    controller = make_controller()
    controller.start_focus(25)

    controller.toggle_pause()
    assert controller.timer.mode == FocusMode.PAUSED

    controller.toggle_pause()
    assert controller.timer.mode == FocusMode.FOCUS


def test_stop_is_manual(make_controller, persistence):
    controller = make_controller()
    controller.start_focus(25)
    controller.stop()

    assert controller.timer.mode == FocusMode.IDLE
    assert persistence.was_manually_stopped() is True


def test_config_defaults_are_used(make_controller):
    controller = make_controller(config=FocusConfig(default_focus_minutes=50, default_break_minutes=10))

    controller.start_focus()
    assert controller.timer.total_ms == 50 * 60_000

    controller.start_break()
    assert controller.timer.total_ms == 10 * 60_000


def test_preset_is_used_for_next_start(make_controller):
    controller = make_controller()
    controller.set_preset(45)
    controller.start_focus()
    assert controller.timer.total_ms == 45 * 60_000
    assert controller.get_status()["preset_minutes"] == 45


def test_notifications_disabled(make_controller):
    controller = make_controller(config=FocusConfig(notifications_enabled=False))
    assert isinstance(controller.timer.notifier, NullNotificationScheduler)
    controller.start_focus(25)
    assert controller.timer.mode == FocusMode.FOCUS


def test_auto_start_break_after_focus(make_controller, clock):
    controller = make_controller(config=FocusConfig(auto_start_breaks=True, default_break_minutes=5))

    controller.start_focus(1)
    clock.advance(60)
    controller.timer.tick()

    assert controller.timer.mode == FocusMode.BREAK_TIME
    assert controller.timer.remaining_ms == 5 * 60_000
    assert controller.completed_this_run == 1


def test_no_auto_break_by_default(make_controller, clock):
    controller = make_controller()
    controller.start_focus(1)
    clock.advance(60)
    controller.timer.tick()

    assert controller.timer.mode == FocusMode.IDLE
    assert controller.completed_this_run == 1


def test_completion_without_event_loop_is_not_fatal(make_controller, clock):
    controller = make_controller(stats=StatsRecorder(db=None))
    controller.start_focus(1)
    clock.advance(60)
    controller.timer.tick()

    assert controller.timer.mode == FocusMode.IDLE
    assert controller.completed_this_run == 1


@pytest.mark.asyncio
async def test_completed_focus_is_recorded(make_controller, clock, recorder):
    controller = make_controller(stats=recorder)

    controller.start_focus(25)
    clock.advance(25 * 60)
    controller.timer.tick()
    await controller.drain()

    stats = await recorder.get_stats()
    assert stats.sessions_completed == 1
    assert stats.total_focus_minutes == 25


@pytest.mark.asyncio
async def test_stopped_focus_is_not_recorded(make_controller, recorder):
    controller = make_controller(stats=recorder)

    controller.start_focus(25)
    controller.stop()
    await controller.drain()

    stats = await recorder.get_stats()
    assert stats.sessions_completed == 0


def test_get_status(make_controller, clock):
    controller = make_controller()
    controller.start_focus(25)
    clock.advance(60)
    controller.timer.tick()

    status = controller.get_status()

    assert status["mode"] == "focus"
    assert status["remaining"] == "24:00"
    assert status["remaining_ms"] == 1_440_000
    assert status["completed_this_run"] == 0
