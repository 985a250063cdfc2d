from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from weather_app.core import config as app_config
from weather_app.scheduler import Scheduler, next_tick
from weather_app.tasks import weather_updates

HOUR = timedelta(hours=1)


def test_next_tick_truncates_to_interval_boundary():
    now = datetime(2026, 3, 1, 10, 42, 17, tzinfo=timezone.utc)
    assert next_tick(now, HOUR) == datetime(2026, 3, 1, 11, 0, tzinfo=timezone.utc)
    assert next_tick(now, timedelta(minutes=15)) == datetime(2026, 3, 1, 10, 45, tzinfo=timezone.utc)


def test_next_tick_on_boundary_moves_forward():
    now = datetime(2026, 3, 1, 11, 0, tzinfo=timezone.utc)
    assert next_tick(now, HOUR) == datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_next_tick_treats_naive_as_utc():
    assert next_tick(datetime(2026, 3, 1, 23, 30), HOUR) == datetime(2026, 3, 2, 0, 0, tzinfo=timezone.utc)


def test_next_tick_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        next_tick(datetime.now(timezone.utc), timedelta(0))


def _almost(tick: datetime) -> datetime:
    return tick - timedelta(milliseconds=10)


def test_run_invokes_task_at_tick_then_stops():
    boundary = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    ticks: list[datetime] = []

    def task(tick):
        ticks.append(tick)
        scheduler.stop()

    scheduler = Scheduler(HOUR, task, clock=lambda: _almost(boundary))
    scheduler.run()

    assert ticks == [boundary]
    assert scheduler.stopped


def test_task_failure_does_not_stop_scheduler():
    boundary = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    calls: list[datetime] = []

    def task(tick):
        calls.append(tick)
        if len(calls) == 1:
            raise RuntimeError("boom")
        scheduler.stop()

    scheduler = Scheduler(HOUR, task, clock=lambda: _almost(boundary))
    scheduler.run()

    assert len(calls) == 2


def test_stop_cancels_pending_wait():
    calls: list[datetime] = []
    clock = lambda: datetime(2026, 3, 1, 12, 1, tzinfo=timezone.utc)  # noqa: E731

    scheduler = Scheduler(HOUR, calls.append, clock=clock)
    thread = scheduler.start()
    scheduler.stop(timeout=2)

    assert not thread.is_alive()
    assert calls == []


@pytest.fixture()
def enqueued(monkeypatch):
    calls: list[str] = []
    monkeypatch.setattr(weather_updates, "enqueue", lambda task, frequency: calls.append(frequency))
    return calls


def test_dispatch_tick_runs_hourly_every_tick(enqueued):
    weather_updates.dispatch_tick(datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))
    assert enqueued == ["hourly"]


def test_dispatch_tick_adds_daily_at_configured_hour(enqueued):
    app_config.settings.DAILY_UPDATE_HOUR = 12
    weather_updates.dispatch_tick(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))
    assert enqueued == ["hourly", "daily"]


def test_dispatch_tick_daily_requires_top_of_hour(enqueued):
    app_config.settings.DAILY_UPDATE_HOUR = 12
    weather_updates.dispatch_tick(datetime(2026, 3, 1, 12, 30, tzinfo=timezone.utc))
    assert enqueued == ["hourly"]


def test_dispatch_tick_continues_after_enqueue_failure(monkeypatch):
    app_config.settings.DAILY_UPDATE_HOUR = 12
    calls: list[str] = []

    def _enqueue(task, frequency):
        calls.append(frequency)
        if frequency == "hourly":
            raise RuntimeError("broker down")

    monkeypatch.setattr(weather_updates, "enqueue", _enqueue)
    weather_updates.dispatch_tick(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))

    assert calls == ["hourly", "daily"]
