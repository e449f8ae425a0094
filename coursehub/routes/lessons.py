from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from coursehub.clock import Clock, get_clock
from coursehub.database import get_db
from coursehub.exceptions import NotFoundError
from coursehub.models.course import Lesson
from coursehub.models.user import User
from coursehub.routes.deps import get_optional_user
from coursehub.schemas.lesson import AccessResponse, LessonListItem, LessonResponse
from coursehub.services import entitlement_service
from coursehub.services.entitlement_service import AccessDecision

router = APIRouter(tags=["lessons"])


def to_access_response(lesson: Lesson, decision: AccessDecision) -> AccessResponse:
    return AccessResponse(
        lesson_id=lesson.id,
        unlocked=decision.unlocked,
        reason=decision.reason,
        message=decision.message
    )


@router.get("/api/lessons/{lesson_id}/access", response_model=AccessResponse)
async def lesson_access(
    lesson_id: int,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Whether the caller may open this lesson right now, and why not"""
    try:
        lesson, decision = await entitlement_service.resolve_lesson_access(db, lesson_id, user, clock())
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return to_access_response(lesson, decision)


@router.get("/api/lessons/{lesson_id}", response_model=LessonResponse)
async def get_lesson(
    lesson_id: int,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Lesson content; locked lessons answer 403 with the lock reason"""
    try:
        lesson, decision = await entitlement_service.resolve_lesson_access(db, lesson_id, user, clock())
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    if not decision.unlocked:
        raise HTTPException(
            status_code=403,
            detail={"reason": decision.reason.value, "message": decision.message}
        )
    return lesson


@router.get("/api/courses/{course_id}/lessons", response_model=List[LessonListItem])
async def course_lessons(
    course_id: int,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Course outline with a lock state per lesson"""
    try:
        decisions = await entitlement_service.resolve_course_access(db, course_id, user, clock())
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return [
        LessonListItem(
            lesson=LessonResponse.model_validate(lesson),
            access=to_access_response(lesson, decision)
        )
        for lesson, decision in decisions
    ]
