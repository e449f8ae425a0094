from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List, Optional
from datetime import datetime
import logging

from coursehub.schemas.question import LearnerQuestion
from coursehub.schemas.test import SubmissionResult
from coursehub.services import attempt_service, grading_service, question_bank

logger = logging.getLogger(__name__)


async def get_learner_questions(db: AsyncSession, test_id: int) -> List[LearnerQuestion]:
    """Questions of a test with every correct answer removed"""
    await question_bank.get_test(db, test_id)
    questions = await question_bank.load_questions(db, test_id)
    return [question_bank.sanitize_for_learner(q) for q in questions]


async def submit_test_attempt(
    db: AsyncSession,
    test_id: int,
    user_id: int,
    answers: Dict[str, Any],
    now: Optional[datetime] = None
) -> SubmissionResult:
    """
    Grade a submission and store it as a new attempt

    Grading runs completely before anything is written, so a malformed
    answer leaves no attempt row behind.

    Raises:
        NotFoundError: the test does not exist
        MalformedAnswerError, UnexpectedQuestionTypeError: rejected submission
    """
    test = await question_bank.get_test(db, test_id)
    questions = await question_bank.load_questions(db, test_id)

    graded = grading_service.grade(questions, answers)
    outcome = grading_service.evaluate_outcome(
        graded.score,
        graded.total_points,
        test.passing_score,
        graded.needs_manual_review
    )

    attempt = await attempt_service.record_attempt(
        db,
        test_id=test_id,
        user_id=user_id,
        answers={str(k): v for k, v in answers.items()},
        score=graded.score,
        total_points=graded.total_points,
        is_passed=outcome.is_passed,
        needs_manual_review=graded.needs_manual_review,
        now=now
    )
    logger.info(
        "User %s attempt %s on test %s: %s/%s (%s)",
        user_id, attempt.id, test_id, graded.score, graded.total_points, outcome.status
    )

    return SubmissionResult(
        attempt_id=attempt.id,
        test_id=test_id,
        score=graded.score,
        total_points=graded.total_points,
        percentage=outcome.percentage,
        is_passed=outcome.is_passed,
        status=outcome.status,
        needs_manual_review=graded.needs_manual_review
    )
