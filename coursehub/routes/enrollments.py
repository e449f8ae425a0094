from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from coursehub.clock import Clock, get_clock
from coursehub.database import get_db
from coursehub.exceptions import NotFoundError
from coursehub.models.user import User
from coursehub.routes.deps import get_current_user, require_admin
from coursehub.schemas.enrollment import (
    EnrollmentApproval,
    EnrollmentCreate,
    EnrollmentResponse,
    SubscriptionResponse,
)
from coursehub.services import enrollment_service
from coursehub.services.notification_service import DatabaseNotificationSink

router = APIRouter(tags=["enrollments"])


@router.post("/api/courses/{course_id}/enroll", response_model=EnrollmentResponse)
async def enroll(
    course_id: int,
    payload: EnrollmentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Sign up for a course; access opens once the payment is approved"""
    try:
        return await enrollment_service.enroll(
            db,
            user_id=user.id,
            course_id=course_id,
            payment_method=payload.payment_method,
            payment_proof_url=payload.payment_proof_url,
            plan_id=payload.plan_id
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/api/admin/pending-payments", response_model=List[EnrollmentResponse])
async def pending_payments(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await enrollment_service.get_pending_enrollments(db)


@router.patch("/api/admin/payments/{enrollment_id}/approve")
async def approve_payment(
    enrollment_id: int,
    payload: EnrollmentApproval,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    try:
        enrollment, subscription = await enrollment_service.approve_enrollment(
            db, enrollment_id, payload.duration_days, DatabaseNotificationSink(db), clock()
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "enrollment": EnrollmentResponse.model_validate(enrollment),
        "subscription": SubscriptionResponse.model_validate(subscription)
    }


@router.patch("/api/admin/payments/{enrollment_id}/reject", response_model=EnrollmentResponse)
async def reject_payment(
    enrollment_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await enrollment_service.reject_enrollment(
            db, enrollment_id, DatabaseNotificationSink(db)
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
