from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, DateTime, ForeignKey, Text, UniqueConstraint
from datetime import datetime
from typing import Optional
from coursehub.clock import utcnow
from coursehub.database import Base


class Enrollment(Base):
    __tablename__ = 'enrollments'
    __table_args__ = (
        UniqueConstraint('user_id', 'course_id', name='uix_user_course'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey('courses.id'), nullable=False, index=True)
    plan_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)  # cash, card, stripe
    payment_proof_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payment_status: Mapped[str] = mapped_column(String(20), nullable=False, default='pending')  # pending, approved, confirmed, rejected
    enrolled_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class Subscription(Base):
    __tablename__ = 'subscriptions'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey('courses.id'), nullable=False, index=True)
    plan_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    enrollment_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey('enrollments.id'), nullable=True)
    # Cached view of end_date; readers must still compare end_date with now
    status: Mapped[str] = mapped_column(String(20), nullable=False, default='active', index=True)  # active, expired
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
