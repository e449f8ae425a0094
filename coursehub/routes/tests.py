from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from coursehub.clock import Clock, get_clock
from coursehub.database import get_db
from coursehub.exceptions import NotFoundError
from coursehub.models.user import User
from coursehub.routes.deps import get_current_user
from coursehub.schemas.question import LearnerQuestion
from coursehub.schemas.test import (
    AttemptView,
    SubmissionResult,
    TestAttemptsResponse,
    TestSubmission,
)
from coursehub.services import attempt_service, question_bank, test_service

router = APIRouter(tags=["tests"])


@router.get("/api/tests/{test_id}/questions", response_model=List[LearnerQuestion])
async def get_test_questions(
    test_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Questions for taking a test, without correct answers"""
    try:
        return await test_service.get_learner_questions(db, test_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/api/tests/{test_id}/submit", response_model=SubmissionResult)
async def submit_test(
    test_id: int,
    submission: TestSubmission,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Grade a submission and record it as a new attempt"""
    try:
        return await test_service.submit_test_attempt(
            db, test_id, user.id, submission.answers, now=clock()
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/api/tests/{test_id}/attempts", response_model=TestAttemptsResponse)
async def get_test_attempts(
    test_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """The caller's attempts at a test with best and worst result"""
    try:
        await question_bank.get_test(db, test_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    attempts = await attempt_service.list_attempts(db, user.id, test_id)
    return TestAttemptsResponse(
        attempts=[attempt_service.to_view(a) for a in attempts],
        summary=attempt_service.summarize(attempts)
    )


@router.get("/api/student/test-attempts", response_model=List[AttemptView])
async def get_my_attempts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    attempts = await attempt_service.list_user_attempts(db, user.id)
    return [attempt_service.to_view(a) for a in attempts]
