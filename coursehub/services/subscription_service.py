"""
Subscription lifecycle: expiry warnings, the expiry sweep, and the
administrative extend/cancel operations.

State machine per subscription: active -> expired, one way.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from typing import List, Optional, Tuple
from datetime import datetime, timedelta
import logging
import math

from coursehub.clock import utcnow
from coursehub.config import get_settings
from coursehub.exceptions import InvalidTransitionError, NotFoundError
from coursehub.models.course import Course
from coursehub.models.enrollment import Subscription
from coursehub.schemas.enrollment import LifecycleResult
from coursehub.services.notification_service import NotificationSink

settings = get_settings()
logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def days_remaining(end_date: datetime, now: datetime) -> int:
    """Whole days left, rounded up: 2.5 days left counts as 3"""
    return math.ceil((end_date - now) / ONE_DAY)


async def get_subscription(db: AsyncSession, subscription_id: int) -> Subscription:
    result = await db.execute(select(Subscription).where(Subscription.id == subscription_id))
    subscription = result.scalar_one_or_none()
    if not subscription:
        raise NotFoundError(f"Subscription {subscription_id} not found")
    return subscription


async def create_subscription(
    db: AsyncSession,
    user_id: int,
    course_id: int,
    duration_days: int,
    plan_id: Optional[int] = None,
    enrollment_id: Optional[int] = None,
    now: Optional[datetime] = None
) -> Subscription:
    """Add an active subscription to the session; the caller commits"""
    if duration_days < 1:
        raise ValueError("duration_days must be at least 1")

    start_date = now or utcnow()
    subscription = Subscription(
        user_id=user_id,
        course_id=course_id,
        plan_id=plan_id,
        enrollment_id=enrollment_id,
        status="active",
        start_date=start_date,
        end_date=start_date + timedelta(days=duration_days)
    )
    db.add(subscription)
    return subscription


async def get_expiring_subscriptions(
    db: AsyncSession,
    within_days: int,
    now: Optional[datetime] = None
) -> List[Tuple[Subscription, Course]]:
    """Active subscriptions whose end date falls in (now, now + within_days]"""
    now = now or utcnow()
    result = await db.execute(
        select(Subscription, Course)
        .join(Course, Course.id == Subscription.course_id)
        .where(
            Subscription.status == "active",
            Subscription.end_date > now,
            Subscription.end_date <= now + timedelta(days=within_days)
        )
        .order_by(Subscription.end_date)
    )
    return [(row[0], row[1]) for row in result.all()]


async def notify_expiring_subscriptions(
    db: AsyncSession,
    sink: NotificationSink,
    now: Optional[datetime] = None
) -> int:
    """
    Warn subscribers whose subscription ends in exactly one of the
    configured checkpoints (7, 3 and 1 days by default).

    Returns:
        int: number of notifications sent
    """
    now = now or utcnow()
    checkpoints = set(settings.EXPIRY_NOTIFICATION_DAYS)
    sent = 0

    for subscription, course in await get_expiring_subscriptions(db, settings.EXPIRY_LOOKAHEAD_DAYS, now):
        remaining = days_remaining(subscription.end_date, now)
        if remaining not in checkpoints:
            continue

        await sink.notify(
            subscription.user_id,
            "warning",
            "Subscription ending soon",
            f"Your subscription to {course.title} ends in {remaining} day(s). "
            f"Contact your instructor to renew it.",
            str(subscription.id)
        )
        sent += 1
        logger.info(
            "Sent %s-day expiry warning to user %s for subscription %s",
            remaining, subscription.user_id, subscription.id
        )

    return sent


async def expire_overdue_subscriptions(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """
    Flip every active subscription whose end date has passed to expired.

    Access checks never depend on this having run; it only keeps the
    stored status in line with end_date.

    Returns:
        int: number of subscriptions expired
    """
    now = now or utcnow()
    result = await db.execute(
        update(Subscription)
        .where(
            Subscription.status == "active",
            Subscription.end_date <= now
        )
        .values(status="expired")
    )
    return result.rowcount or 0


async def run_lifecycle_pass(
    db: AsyncSession,
    sink: NotificationSink,
    now: Optional[datetime] = None
) -> LifecycleResult:
    """Expiry warnings first, then the sweep, committed together"""
    now = now or utcnow()
    notified = await notify_expiring_subscriptions(db, sink, now)
    expired = await expire_overdue_subscriptions(db, now)
    await db.commit()
    return LifecycleResult(expired_count=expired, notified_count=notified)


async def extend_subscription(
    db: AsyncSession,
    subscription_id: int,
    additional_days: int,
    sink: NotificationSink
) -> Subscription:
    if additional_days < 1:
        raise ValueError("additional_days must be at least 1")

    subscription = await get_subscription(db, subscription_id)
    if subscription.status != "active":
        raise InvalidTransitionError(f"Subscription {subscription_id} is {subscription.status} and cannot be extended")

    subscription.end_date = subscription.end_date + timedelta(days=additional_days)
    await sink.notify(
        subscription.user_id,
        "info",
        "Subscription extended",
        f"Your subscription has been extended by {additional_days} day(s).",
        str(subscription.id)
    )
    await db.commit()
    await db.refresh(subscription)
    return subscription


async def cancel_subscription(
    db: AsyncSession,
    subscription_id: int,
    sink: NotificationSink
) -> Subscription:
    subscription = await get_subscription(db, subscription_id)
    if subscription.status != "active":
        raise InvalidTransitionError(f"Subscription {subscription_id} is already {subscription.status}")

    subscription.status = "expired"
    await sink.notify(
        subscription.user_id,
        "warning",
        "Subscription cancelled",
        "Your subscription has been cancelled. Contact the administrator for details.",
        str(subscription.id)
    )
    await db.commit()
    await db.refresh(subscription)
    return subscription


async def get_user_subscriptions(db: AsyncSession, user_id: int) -> List[Subscription]:
    result = await db.execute(
        select(Subscription)
        .where(Subscription.user_id == user_id)
        .order_by(Subscription.end_date.desc())
    )
    return list(result.scalars().all())
