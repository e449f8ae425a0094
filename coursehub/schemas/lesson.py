from pydantic import BaseModel
from typing import Optional

from coursehub.services.entitlement_service import LockReason


class AccessResponse(BaseModel):
    lesson_id: int
    unlocked: bool
    reason: Optional[LockReason] = None
    message: Optional[str] = None


class LessonResponse(BaseModel):
    id: int
    course_id: int
    module_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    video_url: Optional[str] = None
    order: int
    duration: Optional[int] = None
    is_demo: bool

    class Config:
        from_attributes = True


class LessonListItem(BaseModel):
    lesson: LessonResponse
    access: AccessResponse
