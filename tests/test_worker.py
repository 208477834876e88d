"""Tests for the schedule, worker loop and health endpoint."""

import asyncio
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo
import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError
from dcwatch.api import app
from dcwatch.config import Settings
from dcwatch.models.items import CycleStats
from dcwatch.workflows import scheduler
from dcwatch.workflows.scheduler import Schedule, run_forever

EASTERN = ZoneInfo("America/New_York")


def et(hour, minute=0, day=19):
    return datetime(2026, 10, day, hour, minute, tzinfo=EASTERN)


class TestHourSchedule:

    def test_runs_only_in_scheduled_hours(self):
        schedule = Schedule(hours=[6, 12, 18, 0], tz="America/New_York")
        assert schedule.should_run(et(6, 5))
        assert not schedule.should_run(et(7, 0))
        assert schedule.should_run(et(0, 30))

    def test_once_per_hour(self):
        schedule = Schedule(hours=[12], tz="America/New_York")
        schedule.mark_ran(et(12, 0))
        assert not schedule.should_run(et(12, 55))
        assert schedule.should_run(et(12, 1, day=20))

    def test_sleeps_check_interval(self):
        assert Schedule(hours=[6], check_interval_seconds=300).seconds_until_next_check() == 300

    @pytest.mark.parametrize("hours", [[24], [6, -1]])
    def test_out_of_range_hours_rejected(self, hours):
        with pytest.raises(ValidationError):
            Settings(SCHEDULE_HOURS=hours)


class TestIntervalSchedule:

    def test_first_run_immediate(self):
        assert Schedule(interval_minutes=30).should_run()

    def test_waits_for_interval(self):
        schedule = Schedule(interval_minutes=30)
        start = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
        schedule.mark_ran(start)
        assert not schedule.should_run(start + timedelta(minutes=29))
        assert schedule.should_run(start + timedelta(minutes=30))
        assert schedule.seconds_until_next_check(start + timedelta(minutes=10)) == 20 * 60


class _StopLoop(Exception):
    pass


def test_worker_survives_cycle_errors(monkeypatch):
    class FlakyPipeline:
        def __init__(self):
            self.calls = 0

        async def run_cycle(self):
            self.calls += 1
            if self.calls == 1:
                raise RuntimeError("store locked")
            return CycleStats()

    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)
        if len(sleeps) >= 3:
            raise _StopLoop()

    monkeypatch.setattr(scheduler.asyncio, "sleep", fake_sleep)
    pipeline = FlakyPipeline()
    schedule = Schedule(interval_minutes=1)
    schedule.should_run = lambda now=None: True

    with pytest.raises(_StopLoop):
        asyncio.run(run_forever(pipeline, schedule))
    assert pipeline.calls == 3


def test_health_endpoint():
    client = TestClient(app)
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.text == "ok"
    assert client.get("/api/status").json()["status"] == "ok"
