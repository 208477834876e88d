import asyncio
from datetime import datetime, timedelta, timezone
from typing import Iterable
from zoneinfo import ZoneInfo
from dcwatch.services.logger import logger

class Schedule:
    """
    Either a fixed poll interval, or specific hours of the day in a named
    timezone (at most one run per matching hour).
    """

    def __init__(self, interval_minutes: int | None = None, hours: Iterable[int] = (0, 6, 12, 18),
                 tz: str = "America/New_York", check_interval_seconds: int = 300):
        self.interval = timedelta(minutes=interval_minutes) if interval_minutes else None
        self.hours = set(hours)
        self.tz = ZoneInfo(tz)
        self.check_interval_seconds = check_interval_seconds
        self.last_run: datetime | None = None
        self.last_run_slot: tuple | None = None

    def describe(self) -> str:
        if self.interval:
            return f"every {int(self.interval.total_seconds() // 60)} minutes"
        hours = ", ".join(f"{h}:00" for h in sorted(self.hours))
        return f"at {hours} {self.tz.key}"

    def _slot(self, now: datetime) -> tuple:
        local = now.astimezone(self.tz)
        return (local.date(), local.hour)

    def should_run(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        if self.interval:
            return self.last_run is None or now - self.last_run >= self.interval
        slot = self._slot(now)
        return slot[1] in self.hours and slot != self.last_run_slot

    def mark_ran(self, now: datetime | None = None):
        now = now or datetime.now(timezone.utc)
        self.last_run = now
        self.last_run_slot = self._slot(now)

    def seconds_until_next_check(self, now: datetime | None = None) -> float:
        if self.interval and self.last_run is not None:
            now = now or datetime.now(timezone.utc)
            return max(0.0, (self.last_run + self.interval - now).total_seconds())
        return float(self.check_interval_seconds)

async def run_forever(pipeline, schedule: Schedule):
    """Runs ingestion cycles on schedule until the process is stopped."""
    logger.info(f"Worker started, running {schedule.describe()}")
    while True:
        try:
            if schedule.should_run():
                schedule.mark_ran()
                await pipeline.run_cycle()
        except Exception as e:
            logger.exception(f"Worker error: {e}")
        await asyncio.sleep(schedule.seconds_until_next_check())
