from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class EnrollmentCreate(BaseModel):
    plan_id: Optional[int] = None
    payment_method: str = Field(min_length=1, max_length=20)
    payment_proof_url: Optional[str] = None


class EnrollmentApproval(BaseModel):
    duration_days: int = Field(gt=0)


class EnrollmentResponse(BaseModel):
    id: int
    user_id: int
    course_id: int
    plan_id: Optional[int] = None
    payment_method: Optional[str] = None
    payment_proof_url: Optional[str] = None
    payment_status: str
    enrolled_at: datetime

    class Config:
        from_attributes = True


class SubscriptionResponse(BaseModel):
    id: int
    user_id: int
    course_id: int
    plan_id: Optional[int] = None
    enrollment_id: Optional[int] = None
    status: str
    start_date: datetime
    end_date: datetime

    class Config:
        from_attributes = True


class SubscriptionExtend(BaseModel):
    additional_days: int = Field(gt=0)


class LifecycleResult(BaseModel):
    expired_count: int
    notified_count: int
