from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, Boolean, DateTime, ForeignKey, JSON
from datetime import datetime
from coursehub.clock import utcnow
from coursehub.database import Base


class TestAttempt(Base):
    """One graded submission. Rows are only ever inserted."""
    __tablename__ = 'test_attempts'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    test_id: Mapped[int] = mapped_column(Integer, ForeignKey('tests.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    answers: Mapped[dict] = mapped_column(JSON, nullable=False)  # {questionId: answer}
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_passed: Mapped[bool] = mapped_column(Boolean, default=False)
    needs_manual_review: Mapped[bool] = mapped_column(Boolean, default=False)  # test contains essay questions
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
