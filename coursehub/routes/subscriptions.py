from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from coursehub.clock import Clock, get_clock
from coursehub.database import get_db
from coursehub.exceptions import NotFoundError
from coursehub.models.user import User
from coursehub.routes.deps import get_current_user, require_admin
from coursehub.schemas.enrollment import LifecycleResult, SubscriptionExtend, SubscriptionResponse
from coursehub.services import subscription_service
from coursehub.services.notification_service import DatabaseNotificationSink

router = APIRouter(tags=["subscriptions"])


@router.get("/api/student/subscriptions", response_model=List[SubscriptionResponse])
async def my_subscriptions(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await subscription_service.get_user_subscriptions(db, user.id)


@router.get("/api/admin/subscriptions/expiring", response_model=List[SubscriptionResponse])
async def expiring_subscriptions(
    days: int = Query(7, ge=1),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    rows = await subscription_service.get_expiring_subscriptions(db, days, clock())
    return [subscription for subscription, _ in rows]


@router.put("/api/admin/subscriptions/{subscription_id}/extend", response_model=SubscriptionResponse)
async def extend_subscription(
    subscription_id: int,
    payload: SubscriptionExtend,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await subscription_service.extend_subscription(
            db, subscription_id, payload.additional_days, DatabaseNotificationSink(db)
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/api/admin/subscriptions/{subscription_id}", response_model=SubscriptionResponse)
async def cancel_subscription(
    subscription_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await subscription_service.cancel_subscription(
            db, subscription_id, DatabaseNotificationSink(db)
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/api/admin/subscriptions/check-expired", response_model=LifecycleResult)
async def check_expired(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Run one lifecycle pass on demand"""
    return await subscription_service.run_lifecycle_pass(db, DatabaseNotificationSink(db), clock())
