from coursehub.models.user import User, UserSession
from coursehub.models.course import Course, Lesson
from coursehub.models.quiz import Test, Question, QuestionOption
from coursehub.models.attempt import TestAttempt
from coursehub.models.enrollment import Enrollment, Subscription
from coursehub.models.notification import Notification

__all__ = [
    'User',
    'UserSession',
    'Course',
    'Lesson',
    'Test',
    'Question',
    'QuestionOption',
    'TestAttempt',
    'Enrollment',
    'Subscription',
    'Notification'
]
