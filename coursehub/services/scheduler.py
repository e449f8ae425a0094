"""
Background subscription lifecycle task.

Runs one lifecycle pass at start-up and then every ``interval`` for the
life of the process. A failing pass is logged and the loop keeps going.
The clock, the sleep function and the notification sink are injectable
so tests can drive passes without waiting on wall-clock time.
"""
import asyncio
import logging
from datetime import timedelta
from typing import Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from coursehub.clock import Clock, utcnow
from coursehub.schemas.enrollment import LifecycleResult
from coursehub.services import subscription_service
from coursehub.services.notification_service import DatabaseNotificationSink, NotificationSink

logger = logging.getLogger(__name__)

SinkFactory = Callable[[AsyncSession], NotificationSink]


class SubscriptionLifecycleScheduler:

    def __init__(
        self,
        session_factory: async_sessionmaker,
        interval: timedelta = timedelta(hours=24),
        clock: Clock = utcnow,
        sink_factory: SinkFactory = DatabaseNotificationSink,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.session_factory = session_factory
        self.interval = interval
        self.clock = clock
        self.sink_factory = sink_factory
        self.sleep = sleep
        self.runs = 0
        self.failures = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> Optional[LifecycleResult]:
        """One pass; returns None when the pass failed"""
        self.runs += 1
        try:
            async with self.session_factory() as db:
                result = await subscription_service.run_lifecycle_pass(
                    db, self.sink_factory(db), self.clock()
                )
        except Exception:
            self.failures += 1
            logger.exception("[Subscription Scheduler] Lifecycle pass failed")
            return None

        logger.info(
            "[Subscription Scheduler] %s expired, %s notified",
            result.expired_count, result.notified_count
        )
        return result

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await self.sleep(self.interval.total_seconds())

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "[Subscription Scheduler] Started - will run every %s hours",
            self.interval.total_seconds() / 3600
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("[Subscription Scheduler] Stopped")
