"""
Enrollment payment workflow.

payment_status moves forward only: pending -> approved | confirmed | rejected.
Approval (by an administrator) or confirmation (by a verified payment
provider callback) also opens the subscription for the requested number
of days.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional, Tuple
from datetime import datetime
import logging

from coursehub.exceptions import InvalidTransitionError, NotFoundError
from coursehub.models.course import Course
from coursehub.models.enrollment import Enrollment, Subscription
from coursehub.services import subscription_service
from coursehub.services.notification_service import NotificationSink

logger = logging.getLogger(__name__)


async def get_enrollment(db: AsyncSession, enrollment_id: int) -> Enrollment:
    result = await db.execute(select(Enrollment).where(Enrollment.id == enrollment_id))
    enrollment = result.scalar_one_or_none()
    if not enrollment:
        raise NotFoundError(f"Enrollment {enrollment_id} not found")
    return enrollment


async def enroll(
    db: AsyncSession,
    user_id: int,
    course_id: int,
    payment_method: str,
    payment_proof_url: Optional[str] = None,
    plan_id: Optional[int] = None
) -> Enrollment:
    """Create a pending enrollment awaiting payment approval"""
    result = await db.execute(select(Course).where(Course.id == course_id))
    if not result.scalar_one_or_none():
        raise NotFoundError(f"Course {course_id} not found")

    result = await db.execute(
        select(Enrollment).where(
            Enrollment.user_id == user_id,
            Enrollment.course_id == course_id
        )
    )
    if result.scalar_one_or_none():
        raise ValueError("Already enrolled in this course")

    enrollment = Enrollment(
        user_id=user_id,
        course_id=course_id,
        plan_id=plan_id,
        payment_method=payment_method,
        payment_proof_url=payment_proof_url,
        payment_status="pending"
    )
    db.add(enrollment)
    await db.commit()
    await db.refresh(enrollment)
    return enrollment


async def _settle(
    db: AsyncSession,
    enrollment_id: int,
    status: str,
    duration_days: int,
    sink: NotificationSink,
    now: Optional[datetime]
) -> Tuple[Enrollment, Subscription]:
    enrollment = await get_enrollment(db, enrollment_id)
    if enrollment.payment_status != "pending":
        raise InvalidTransitionError(
            f"Enrollment {enrollment_id} is already {enrollment.payment_status}"
        )

    enrollment.payment_status = status
    subscription = await subscription_service.create_subscription(
        db,
        user_id=enrollment.user_id,
        course_id=enrollment.course_id,
        duration_days=duration_days,
        plan_id=enrollment.plan_id,
        enrollment_id=enrollment.id,
        now=now
    )
    await sink.notify(
        enrollment.user_id,
        "info",
        f"Payment {status}",
        f"Your payment was {status}. Access is open for {duration_days} day(s).",
        str(enrollment.id)
    )
    await db.commit()
    await db.refresh(enrollment)
    await db.refresh(subscription)
    logger.info("Enrollment %s %s, subscription %s opened", enrollment.id, status, subscription.id)
    return enrollment, subscription


async def approve_enrollment(
    db: AsyncSession,
    enrollment_id: int,
    duration_days: int,
    sink: NotificationSink,
    now: Optional[datetime] = None
) -> Tuple[Enrollment, Subscription]:
    return await _settle(db, enrollment_id, "approved", duration_days, sink, now)


async def confirm_external_payment(
    db: AsyncSession,
    enrollment_id: int,
    duration_days: int,
    sink: NotificationSink,
    now: Optional[datetime] = None
) -> Tuple[Enrollment, Subscription]:
    """Called after the payment provider's charge callback has been verified"""
    return await _settle(db, enrollment_id, "confirmed", duration_days, sink, now)


async def reject_enrollment(
    db: AsyncSession,
    enrollment_id: int,
    sink: NotificationSink
) -> Enrollment:
    enrollment = await get_enrollment(db, enrollment_id)
    if enrollment.payment_status != "pending":
        raise InvalidTransitionError(
            f"Enrollment {enrollment_id} is already {enrollment.payment_status}"
        )

    enrollment.payment_status = "rejected"
    await sink.notify(
        enrollment.user_id,
        "warning",
        "Payment rejected",
        "Your payment could not be verified. Contact the administrator.",
        str(enrollment.id)
    )
    await db.commit()
    await db.refresh(enrollment)
    return enrollment


async def get_pending_enrollments(db: AsyncSession) -> List[Enrollment]:
    result = await db.execute(
        select(Enrollment)
        .where(Enrollment.payment_status == "pending")
        .order_by(Enrollment.enrolled_at.desc())
    )
    return list(result.scalars().all())
