import asyncio
import logging
from datetime import datetime, time, timedelta, timezone
from typing import Callable, Optional

from daily_wisdom.pipeline.daily_content_coordinator import DailyContentCoordinator


class DailyScheduler:
    """
    Runs the coordinator once per UTC calendar day at ``run_at`` (00:00 by default).
    """

    def __init__(
        self,
        coordinator: DailyContentCoordinator,
        run_at: time = time(0, 0),
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.coordinator = coordinator
        self.run_at = run_at
        self._clock = clock
        self.logger = logging.getLogger(__name__)
        self.shutdown_event = asyncio.Event()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        self.shutdown_event.set()

    def calculate_next_run_time(self) -> datetime:
        now = self._clock()
        next_run = now.replace(hour=self.run_at.hour, minute=self.run_at.minute, second=0, microsecond=0)
        if next_run <= now:
            next_run = (now + timedelta(days=1)).replace(
                hour=self.run_at.hour, minute=self.run_at.minute, second=0, microsecond=0
            )
        return next_run

    async def run_once(self, next_run: Optional[datetime] = None) -> None:
        """Run the daily job for the UTC day of ``next_run`` (defaults to now)."""
        today = (next_run or self._clock()).strftime("%Y-%m-%d")
        self.logger.info(f"[Scheduler] Starting daily article generation for {today}")
        try:
            report = await self.coordinator.ensure_article_for_date(today)
            self.logger.info(f"[Scheduler] Daily generation completed for {today}: {report.summary()}")
        except Exception as e:
            self.logger.error(f"[Scheduler] Error during daily generation for {today}: {e}", exc_info=True)

    async def run_forever(self) -> None:
        if self._running:
            self.logger.info("[Scheduler] Already running, skipping setup")
            return
        self._running = True
        self.logger.info(f"[Scheduler] Daily article generation scheduled at {self.run_at:%H:%M} UTC")
        try:
            while not self.shutdown_event.is_set():
                next_run = self.calculate_next_run_time()
                await self._wait_until(next_run)
                if self.shutdown_event.is_set():
                    break
                await self.run_once(next_run)
        finally:
            self._running = False
            self.logger.info("[Scheduler] Stopped")

    async def _wait_until(self, target: datetime) -> None:
        while not self.shutdown_event.is_set():
            delay = (target - self._clock()).total_seconds()
            if delay <= 0:
                break
            try:
                await asyncio.wait_for(self.shutdown_event.wait(), timeout=min(delay, 60.0))
            except asyncio.TimeoutError:
                continue
