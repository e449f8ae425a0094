"""
Database initialization script
Creates the schema and seeds a demo course with one user per role
"""
import asyncio
from datetime import timedelta
from pathlib import Path

from coursehub.clock import utcnow
from coursehub.database import AsyncSessionLocal, Base, engine
from coursehub.models import Course, Enrollment, Lesson, Question, QuestionOption, Test, User
from coursehub.services import subscription_service
from coursehub.services.auth_service import get_password_hash

DEMO_PASSWORD = "password123"


async def create_database():
    """Drop and recreate every table"""
    import coursehub.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    print("Created tables")


async def seed(session):
    users = {
        role: User(username=role, password_hash=get_password_hash(DEMO_PASSWORD), role=role)
        for role in ("student", "instructor", "admin")
    }
    session.add_all(users.values())
    await session.flush()
    print(f"Created users: {', '.join(users)} (password: {DEMO_PASSWORD})")

    course = Course(
        title="Python Foundations",
        description="From variables to packages",
        instructor_id=users["instructor"].id,
        status="published"
    )
    session.add(course)
    await session.flush()

    lessons = [
        Lesson(course_id=course.id, module_id=1, title="Welcome", order=1, is_demo=True,
               video_url="https://videos.example.com/welcome.mp4"),
        Lesson(course_id=course.id, module_id=1, title="Variables and types", order=2,
               video_url="https://videos.example.com/variables.mp4"),
        Lesson(course_id=course.id, module_id=2, title="Functions", order=1,
               video_url="https://videos.example.com/functions.mp4"),
    ]
    session.add_all(lessons)
    await session.flush()
    print(f"Created course '{course.title}' with {len(lessons)} lessons")

    test = Test(course_id=course.id, lesson_id=lessons[1].id, title="Basics check",
                passing_score=60, is_draft=False)
    session.add(test)
    await session.flush()

    mc = Question(test_id=test.id, type="multiple_choice", order=1, points=2,
                  question_text="Which of these are immutable?")
    session.add(mc)
    await session.flush()
    session.add_all([
        QuestionOption(question_id=mc.id, option_text="tuple", is_correct=True, order=1),
        QuestionOption(question_id=mc.id, option_text="str", is_correct=True, order=2),
        QuestionOption(question_id=mc.id, option_text="list", is_correct=False, order=3),
    ])
    session.add_all([
        Question(test_id=test.id, type="true_false", order=2, points=1,
                 question_text="None is falsy.", correct_answer="true"),
        Question(test_id=test.id, type="fill_blanks", order=3, points=1,
                 question_text="The keyword to define a function is ___.", correct_answer="def"),
        Question(test_id=test.id, type="short_answer", order=4, points=2,
                 question_text="Name the built-in sequence types.", correct_answer="list,tuple,range"),
        Question(test_id=test.id, type="matching", order=5, points=2,
                 question_text="Match the literal to its type.",
                 config={
                     "leftColumn": ["[]", "{}"],
                     "rightColumn": ["list", "dict"],
                     "correctPairs": [[0, 0], [1, 1]],
                 }),
        Question(test_id=test.id, type="essay", order=6, points=3,
                 question_text="Explain the difference between a module and a package."),
    ])
    print(f"Created test '{test.title}' with 6 questions")

    enrollment = Enrollment(user_id=users["student"].id, course_id=course.id,
                            payment_method="card", payment_status="approved")
    session.add(enrollment)
    await session.flush()
    await subscription_service.create_subscription(
        session, users["student"].id, course.id, duration_days=30,
        enrollment_id=enrollment.id, now=utcnow() - timedelta(days=1)
    )
    print("Enrolled 'student' with a 30-day subscription")

    await session.commit()


async def main():
    await create_database()
    async with AsyncSessionLocal() as session:
        await seed(session)
    await engine.dispose()
    print(f"\nDatabase ready in {Path.cwd()}")


if __name__ == "__main__":
    asyncio.run(main())
