from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime

OutcomeStatus = Literal["passed", "failed", "pending_review"]


class TestSubmission(BaseModel):
    answers: Dict[str, Any] = Field(default_factory=dict)  # questionId -> answer


class QuestionResult(BaseModel):
    question_id: int
    question_type: str
    answered: bool
    is_correct: Optional[bool] = None  # None for essays awaiting manual grading
    points_awarded: int = 0
    points_possible: int


class GradeResult(BaseModel):
    score: int
    total_points: int
    needs_manual_review: bool = False
    results: List[QuestionResult] = Field(default_factory=list)


class Outcome(BaseModel):
    percentage: float
    is_passed: bool
    status: OutcomeStatus


class SubmissionResult(BaseModel):
    attempt_id: int
    test_id: int
    score: int
    total_points: int
    percentage: float
    is_passed: bool
    status: OutcomeStatus
    needs_manual_review: bool


class TestAttemptResponse(BaseModel):
    id: int
    test_id: int
    user_id: int
    answers: Dict[str, Any]
    score: int
    total_points: int
    is_passed: bool
    needs_manual_review: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AttemptView(BaseModel):
    attempt: TestAttemptResponse
    percentage: float


class AttemptSummary(BaseModel):
    count: int
    best: Optional[AttemptView] = None
    worst: Optional[AttemptView] = None


class TestAttemptsResponse(BaseModel):
    attempts: List[AttemptView]
    summary: AttemptSummary
