"""Cron-driven cycle scheduler that never runs two cycles at once."""

import asyncio
from datetime import datetime, timezone as dt_timezone
from typing import Awaitable, Callable, Optional
from zoneinfo import ZoneInfo

from croniter import croniter

from release_notifier.logging_config import get_logger

logger = get_logger(__name__)


class CycleScheduler:
    """Fire ``job`` on a cron expression evaluated in a time zone.

    A trigger that arrives while the previous cycle is still running is
    dropped, not queued. ``stop()`` ends the loop after the running cycle,
    if any, has finished.
    """

    def __init__(
        self,
        cron: str,
        timezone: str,
        job: Callable[[], Awaitable[None]],
        run_on_start: bool = True,
    ) -> None:
        self.cron = cron
        self.tz = ZoneInfo(timezone)
        self.job = job
        self.run_on_start = run_on_start
        self._stop = asyncio.Event()
        self._current: Optional[asyncio.Task] = None

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    @property
    def running(self) -> bool:
        return self._current is not None and not self._current.done()

    def stop(self) -> None:
        """Request shutdown. Safe to call from a signal handler."""
        if not self._stop.is_set():
            logger.info("scheduler_stop_requested", cycle_running=self.running)
        self._stop.set()

    def next_fire_time(self, now: Optional[datetime] = None) -> datetime:
        """Next trigger strictly after ``now``, in the scheduler's zone."""
        base = (now or datetime.now(self.tz)).astimezone(self.tz)
        return croniter(self.cron, base).get_next(datetime)

    @staticmethod
    def seconds_until(fire_at: datetime, now: Optional[datetime] = None) -> float:
        """Real seconds until ``fire_at``, never negative.

        Both sides go through UTC: subtracting datetimes that share a
        tzinfo yields wall-clock time and is off by an hour across DST.
        """
        now_utc = (now or datetime.now(dt_timezone.utc)).astimezone(dt_timezone.utc)
        return max(0.0, (fire_at.astimezone(dt_timezone.utc) - now_utc).total_seconds())

    def _next_base(
        self, last_fire_at: Optional[datetime], now: Optional[datetime] = None
    ) -> datetime:
        # The loop clock may wake us slightly before the wall clock reaches
        # the fire time; never schedule the same slot twice.
        now = now or datetime.now(self.tz)
        if last_fire_at is not None and self.seconds_until(last_fire_at, now) > 0:
            return last_fire_at
        return now

    async def run_forever(self) -> None:
        """Trigger cycles until stopped."""
        logger.info("scheduler_started", cron=self.cron, timezone=str(self.tz))

        if self.run_on_start:
            self.trigger()

        last_fire_at: Optional[datetime] = None
        while not self.stopping:
            fire_at = self.next_fire_time(self._next_base(last_fire_at))
            delay = self.seconds_until(fire_at)
            logger.debug("next_cycle_scheduled", at=fire_at.isoformat())

            try:
                await asyncio.wait_for(self._stop.wait(), timeout=delay)
            except asyncio.TimeoutError:
                last_fire_at = fire_at
                self.trigger()

        await self.wait_idle()
        logger.info("scheduler_stopped")

    def trigger(self) -> bool:
        """Start a cycle unless one is running. Returns whether it started."""
        if self.stopping:
            return False
        if self.running:
            logger.warning("cycle_skipped_overlap")
            return False
        self._current = asyncio.create_task(self._run_job())
        return True

    async def wait_idle(self) -> None:
        """Wait for the running cycle, if any."""
        if self._current is not None:
            await asyncio.shield(self._current)

    async def _run_job(self) -> None:
        started = datetime.now(dt_timezone.utc)
        logger.info("cycle_started", at=started.isoformat())
        try:
            await self.job()
        except Exception:
            logger.exception("cycle_crashed")
        elapsed = (datetime.now(dt_timezone.utc) - started).total_seconds()
        logger.info("cycle_completed", seconds=round(elapsed, 2))
