"""
Read-only access to test definitions.

Rows from ``questions`` / ``question_options`` are converted into the
tagged variants of ``coursehub.schemas.question`` so the grader never
has to interpret the raw ``config`` blob itself.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from pydantic import TypeAdapter
from typing import Any, Dict, List

from coursehub.exceptions import NotFoundError, UnexpectedQuestionTypeError
from coursehub.models.quiz import Test, Question, QuestionOption
from coursehub.schemas.question import (
    QUESTION_TYPES,
    GradableQuestion,
    LearnerOption,
    LearnerQuestion,
    MatchingQuestion,
    MultipleChoiceQuestion,
)

gradable_adapter = TypeAdapter(GradableQuestion)


async def get_test(db: AsyncSession, test_id: int) -> Test:
    result = await db.execute(select(Test).where(Test.id == test_id))
    test = result.scalar_one_or_none()
    if not test:
        raise NotFoundError(f"Test {test_id} not found")
    return test


async def get_question_rows(db: AsyncSession, test_id: int) -> List[Question]:
    result = await db.execute(
        select(Question)
        .where(Question.test_id == test_id)
        .order_by(Question.order, Question.id)
    )
    return list(result.scalars().all())


async def get_options_by_question(
    db: AsyncSession,
    question_ids: List[int]
) -> Dict[int, List[QuestionOption]]:
    """Options for several questions in one round trip, grouped by question id"""
    if not question_ids:
        return {}
    result = await db.execute(
        select(QuestionOption)
        .where(QuestionOption.question_id.in_(question_ids))
        .order_by(QuestionOption.order, QuestionOption.id)
    )
    grouped: Dict[int, List[QuestionOption]] = {}
    for option in result.scalars().all():
        grouped.setdefault(option.question_id, []).append(option)
    return grouped


def to_gradable(question: Question, options: List[QuestionOption]) -> GradableQuestion:
    """
    Build the typed variant for one stored question.

    The row is validated through the ``type`` discriminator, so a broken
    payload (say, a matching pair that is not two indexes) is rejected here.

    Raises:
        UnexpectedQuestionTypeError: the stored type is not one of the six known types
        pydantic.ValidationError: the stored payload does not fit its type
    """
    if question.type not in QUESTION_TYPES:
        raise UnexpectedQuestionTypeError(question.id, question.type)

    data: Dict[str, Any] = {
        "type": question.type,
        "id": question.id,
        "test_id": question.test_id,
        "question_text": question.question_text,
        "points": question.points,
        "order": question.order,
    }
    config = question.config or {}

    if question.type == "multiple_choice":
        data["options"] = [
            {
                "id": o.id,
                "option_text": o.option_text,
                "is_correct": bool(o.is_correct),
                "order": o.order,
            }
            for o in options
        ]
    elif question.type == "matching":
        data["left_column"] = config.get("leftColumn", [])
        data["right_column"] = config.get("rightColumn", [])
        data["correct_pairs"] = config.get("correctPairs", [])
    elif question.type != "essay":
        data["correct_answer"] = question.correct_answer

    return gradable_adapter.validate_python(data)


async def load_questions(db: AsyncSession, test_id: int) -> List[GradableQuestion]:
    """All questions of a test as gradable variants, in display order"""
    rows = await get_question_rows(db, test_id)
    options = await get_options_by_question(
        db, [q.id for q in rows if q.type == "multiple_choice"]
    )
    return [to_gradable(q, options.get(q.id, [])) for q in rows]


def sanitize_for_learner(question: GradableQuestion) -> LearnerQuestion:
    """Strip everything that would reveal the answer"""
    view = LearnerQuestion(
        id=question.id,
        test_id=question.test_id,
        type=question.type,
        question_text=question.question_text,
        points=question.points,
        order=question.order,
    )
    if isinstance(question, MultipleChoiceQuestion):
        view.options = [
            LearnerOption(id=o.id, option_text=o.option_text, order=o.order)
            for o in question.options
        ]
    elif isinstance(question, MatchingQuestion):
        view.left_column = list(question.left_column)
        view.right_column = list(question.right_column)
    return view
