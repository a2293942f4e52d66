"""
MARKET SCHEDULER

Owns the APScheduler instance that drives market ticks.
Scheduler is orchestration-only and contains no business logic.
"""

import logging
from typing import Any, Dict, Optional

import pytz
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from finedu.domain.errors import InvalidMarketConfigError
from finedu.domain.models.market import MAX_INTERVAL_MS, MIN_INTERVAL_MS
from finedu.services.market_simulator import MarketSimulator

logger = logging.getLogger(__name__)

JOB_ID = "market_tick"


class MarketScheduler:
    """
    Market Scheduler
    start(interval) / stop / status around a single interval job
    """

    def __init__(self, simulator: MarketSimulator, timezone: str = "UTC"):
        """Initialize scheduler (not started)"""
        self.simulator = simulator
        self.scheduler = AsyncIOScheduler(timezone=pytz.timezone(timezone))
        self.interval_ms: Optional[int] = None

    @property
    def is_running(self) -> bool:
        return self.scheduler.running and self.scheduler.get_job(JOB_ID) is not None

    def start(self, interval_ms: int) -> None:
        """
        Start ticking every ``interval_ms`` (restarts with the new interval
        if already running). Must be called from inside the event loop.
        """
        if interval_ms < MIN_INTERVAL_MS or interval_ms > MAX_INTERVAL_MS:
            raise InvalidMarketConfigError(
                f"Simulation interval must be between {MIN_INTERVAL_MS} and {MAX_INTERVAL_MS} ms"
            )

        self.scheduler.add_job(
            self.simulator.run_tick_safely,
            IntervalTrigger(seconds=interval_ms / 1000),
            id=JOB_ID,
            name="Market Simulator Tick",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        if not self.scheduler.running:
            self.scheduler.start()

        self.interval_ms = interval_ms
        logger.info("🚀 Market simulator started | interval=%sms", interval_ms)

    def stop(self) -> None:
        """Stop ticking (in-flight tick finishes)"""
        if self.scheduler.get_job(JOB_ID) is not None:
            self.scheduler.remove_job(JOB_ID)
            logger.info("🛑 Market simulator stopped")
        self.interval_ms = None

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    def status(self) -> Dict[str, Any]:
        job = self.scheduler.get_job(JOB_ID) if self.scheduler.running else None
        return {
            "is_running": job is not None,
            "interval_ms": self.interval_ms if job is not None else None,
            "next_run_at": job.next_run_time.isoformat() if job and job.next_run_time else None,
            "tick_count": self.simulator.tick_count,
            "failed_ticks": self.simulator.failed_ticks,
            "last_tick_at": (
                self.simulator.last_tick_at.isoformat() if self.simulator.last_tick_at else None
            ),
        }
