"""
Lesson access decisions.

``resolve_access`` is a pure function over the caller, lesson, enrollment
and subscription plus the current time. It is evaluated on every request
and never cached: a subscription can lapse between two requests without
any write happening, so freshness is always derived from ``end_date``
rather than from the stored ``status``.
"""
from dataclasses import dataclass
from enum import Enum
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Iterable, List, Optional, Tuple
from datetime import datetime

from coursehub.clock import utcnow
from coursehub.config import get_settings
from coursehub.exceptions import NotFoundError
from coursehub.models.course import Course, Lesson
from coursehub.models.enrollment import Enrollment, Subscription
from coursehub.models.user import User

settings = get_settings()

PREVIEW_ROLES = ("instructor", "admin")


class LockReason(str, Enum):
    NEVER_ENROLLED = "never_enrolled"
    PAYMENT_PENDING = "payment_pending"
    SUBSCRIPTION_EXPIRED = "subscription_expired"


LOCK_MESSAGES = {
    LockReason.NEVER_ENROLLED: "Enroll in this course to unlock its lessons.",
    LockReason.PAYMENT_PENDING: "Your payment is awaiting confirmation. The lesson unlocks once it is approved.",
    LockReason.SUBSCRIPTION_EXPIRED: "Your subscription for this course has expired. Renew it to continue learning.",
}


@dataclass(frozen=True)
class AccessDecision:
    unlocked: bool
    reason: Optional[LockReason] = None

    @property
    def message(self) -> Optional[str]:
        return LOCK_MESSAGES[self.reason] if self.reason else None


UNLOCKED = AccessDecision(unlocked=True)


def has_active_subscription(subscription: Optional[Subscription], now: datetime) -> bool:
    return (
        subscription is not None
        and subscription.status == "active"
        and subscription.end_date > now
    )


def resolve_access(
    lesson: Lesson,
    caller: Optional[User],
    enrollment: Optional[Enrollment],
    subscription: Optional[Subscription],
    now: datetime
) -> AccessDecision:
    """First matching rule wins; see LockReason for the locked outcomes"""
    if caller is not None and caller.role in PREVIEW_ROLES:
        return UNLOCKED
    if lesson.is_demo:
        return UNLOCKED
    if caller is None or enrollment is None:
        return AccessDecision(unlocked=False, reason=LockReason.NEVER_ENROLLED)
    if enrollment.payment_status not in settings.PAID_PAYMENT_STATUSES:
        return AccessDecision(unlocked=False, reason=LockReason.PAYMENT_PENDING)
    # A paid enrollment with no subscription row looks the same as an expired one
    if not has_active_subscription(subscription, now):
        return AccessDecision(unlocked=False, reason=LockReason.SUBSCRIPTION_EXPIRED)
    return UNLOCKED


async def get_lesson(db: AsyncSession, lesson_id: int) -> Lesson:
    result = await db.execute(select(Lesson).where(Lesson.id == lesson_id))
    lesson = result.scalar_one_or_none()
    if not lesson:
        raise NotFoundError(f"Lesson {lesson_id} not found")
    return lesson


async def get_enrollment(db: AsyncSession, user_id: int, course_id: int) -> Optional[Enrollment]:
    result = await db.execute(
        select(Enrollment)
        .where(
            Enrollment.user_id == user_id,
            Enrollment.course_id == course_id
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_current_subscription(db: AsyncSession, user_id: int, course_id: int) -> Optional[Subscription]:
    """The subscription reaching furthest into the future, preferring active rows"""
    result = await db.execute(
        select(Subscription)
        .where(
            Subscription.user_id == user_id,
            Subscription.course_id == course_id
        )
    )
    subscriptions = list(result.scalars().all())
    if not subscriptions:
        return None
    return max(subscriptions, key=lambda s: (s.status == "active", s.end_date))


async def _load_state(
    db: AsyncSession,
    caller: Optional[User],
    course_id: int
) -> Tuple[Optional[Enrollment], Optional[Subscription]]:
    if caller is None or caller.role in PREVIEW_ROLES:
        return None, None
    enrollment = await get_enrollment(db, caller.id, course_id)
    subscription = await get_current_subscription(db, caller.id, course_id)
    return enrollment, subscription


async def resolve_lesson_access(
    db: AsyncSession,
    lesson_id: int,
    caller: Optional[User],
    now: Optional[datetime] = None
) -> Tuple[Lesson, AccessDecision]:
    """
    Load the lesson and the caller's enrollment state, then decide.

    Raises:
        NotFoundError: the lesson does not exist
    """
    lesson = await get_lesson(db, lesson_id)
    enrollment, subscription = await _load_state(db, caller, lesson.course_id)
    return lesson, resolve_access(lesson, caller, enrollment, subscription, now or utcnow())


async def resolve_course_access(
    db: AsyncSession,
    course_id: int,
    caller: Optional[User],
    now: Optional[datetime] = None
) -> List[Tuple[Lesson, AccessDecision]]:
    """
    Every lesson of a course, in order, each with its own decision.

    Raises:
        NotFoundError: the course does not exist
    """
    result = await db.execute(select(Course).where(Course.id == course_id))
    if not result.scalar_one_or_none():
        raise NotFoundError(f"Course {course_id} not found")

    result = await db.execute(
        select(Lesson)
        .where(Lesson.course_id == course_id)
        .order_by(Lesson.module_id, Lesson.order, Lesson.id)
    )
    lessons: Iterable[Lesson] = result.scalars().all()
    enrollment, subscription = await _load_state(db, caller, course_id)
    now = now or utcnow()
    return [
        (lesson, resolve_access(lesson, caller, enrollment, subscription, now))
        for lesson in lessons
    ]
