import asyncio
from datetime import timedelta

from sqlalchemy import select

from conftest import NOW, RecordingSink
from coursehub import models
from coursehub.services.scheduler import SubscriptionLifecycleScheduler


class BrokenSessionFactory:
    def __call__(self):
        raise RuntimeError("database unavailable")


class SinkPerSession:
    def __init__(self):
        self.sink = RecordingSink()

    def __call__(self, db):
        return self.sink


async def test_run_once_uses_injected_clock(factory, session_factory, clock):
    user = await factory.user()
    course = await factory.course()
    sub = await factory.subscription(user, course, end_date=NOW + timedelta(days=3))
    sinks = SinkPerSession()
    scheduler = SubscriptionLifecycleScheduler(session_factory, clock=clock, sink_factory=sinks)

    result = await scheduler.run_once()
    assert (result.notified_count, result.expired_count) == (1, 0)

    clock.advance(days=3)
    result = await scheduler.run_once()
    assert result.expired_count == 1

    async with session_factory() as db:
        stored = await db.scalar(select(models.Subscription.status).where(models.Subscription.id == sub.id))
    assert stored == "expired"
    assert scheduler.runs == 2


async def test_failed_pass_is_logged_and_swallowed(clock, caplog):
    scheduler = SubscriptionLifecycleScheduler(BrokenSessionFactory(), clock=clock)

    assert await scheduler.run_once() is None
    assert await scheduler.run_once() is None

    assert scheduler.failures == 2
    assert "Lifecycle pass failed" in caplog.text


async def test_loop_runs_immediately_then_every_interval(clock):
    sleeps = []
    third_run = asyncio.Event()

    async def fake_sleep(seconds):
        sleeps.append(seconds)
        if len(sleeps) >= 3:
            third_run.set()
        await asyncio.sleep(0)

    scheduler = SubscriptionLifecycleScheduler(
        BrokenSessionFactory(), interval=timedelta(hours=24), clock=clock, sleep=fake_sleep
    )
    scheduler.start()
    assert scheduler.running

    await asyncio.wait_for(third_run.wait(), timeout=5)
    await scheduler.stop()

    assert not scheduler.running
    # failures do not stop the loop
    assert scheduler.runs >= 3
    assert scheduler.failures == scheduler.runs
    assert set(sleeps) == {24 * 3600}


async def test_stop_without_start_is_harmless(session_factory):
    scheduler = SubscriptionLifecycleScheduler(session_factory)
    await scheduler.stop()
    assert not scheduler.running
