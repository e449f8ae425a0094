"""
Append-only ledger of graded test attempts.

No update or delete is offered: every submission becomes a new row, and
percentages are always derived from the attempt's own total_points.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Any, Dict, List, Optional, Sequence
from datetime import datetime

from coursehub.clock import utcnow
from coursehub.models.attempt import TestAttempt
from coursehub.schemas.test import AttemptSummary, AttemptView, TestAttemptResponse
from coursehub.services.grading_service import compute_percentage


async def record_attempt(
    db: AsyncSession,
    test_id: int,
    user_id: int,
    answers: Dict[str, Any],
    score: int,
    total_points: int,
    is_passed: bool,
    needs_manual_review: bool = False,
    now: Optional[datetime] = None
) -> TestAttempt:
    """Insert one attempt row and commit"""
    if not 0 <= score <= total_points:
        raise ValueError(f"Score {score} outside 0..{total_points}")

    attempt = TestAttempt(
        test_id=test_id,
        user_id=user_id,
        answers=answers,
        score=score,
        total_points=total_points,
        is_passed=is_passed,
        needs_manual_review=needs_manual_review,
        created_at=now or utcnow()
    )
    db.add(attempt)
    await db.commit()
    await db.refresh(attempt)
    return attempt


async def list_attempts(db: AsyncSession, user_id: int, test_id: int) -> List[TestAttempt]:
    """All attempts of one learner at one test, newest first"""
    result = await db.execute(
        select(TestAttempt)
        .where(
            TestAttempt.user_id == user_id,
            TestAttempt.test_id == test_id
        )
        .order_by(TestAttempt.created_at.desc(), TestAttempt.id.desc())
    )
    return list(result.scalars().all())


async def list_user_attempts(db: AsyncSession, user_id: int, limit: int = 50) -> List[TestAttempt]:
    result = await db.execute(
        select(TestAttempt)
        .where(TestAttempt.user_id == user_id)
        .order_by(TestAttempt.created_at.desc(), TestAttempt.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


def to_view(attempt: TestAttempt) -> AttemptView:
    return AttemptView(
        attempt=TestAttemptResponse.model_validate(attempt),
        percentage=round(compute_percentage(attempt.score, attempt.total_points), 2)
    )


def summarize(attempts: Sequence[TestAttempt]) -> AttemptSummary:
    """Best and worst attempt by raw score; ties keep the first seen"""
    if not attempts:
        return AttemptSummary(count=0)

    best = max(attempts, key=lambda a: a.score)
    worst = min(attempts, key=lambda a: a.score)
    return AttemptSummary(count=len(attempts), best=to_view(best), worst=to_view(worst))
