import pytest
from pydantic import ValidationError

from coursehub.exceptions import NotFoundError, UnexpectedQuestionTypeError
from coursehub.schemas.question import MatchingQuestion, MultipleChoiceQuestion
from coursehub.services import question_bank


async def test_load_questions_builds_typed_variants_in_order(factory):
    course = await factory.course()
    test = await factory.test(course)
    essay = await factory.question(test, "essay", order=3)
    mc = await factory.question(test, "multiple_choice", points=2, order=1)
    await factory.option(mc, "a", is_correct=True, order=1)
    await factory.option(mc, "b", order=2)
    matching = await factory.question(
        test, "matching", order=2,
        config={"leftColumn": ["x", "y"], "rightColumn": ["1", "2"], "correctPairs": [[0, 1], [1, 0]]}
    )

    questions = await question_bank.load_questions(factory.db, test.id)

    assert [q.id for q in questions] == [mc.id, matching.id, essay.id]
    assert isinstance(questions[0], MultipleChoiceQuestion)
    assert [o.is_correct for o in questions[0].options] == [True, False]
    assert isinstance(questions[1], MatchingQuestion)
    assert questions[1].correct_pairs == [(0, 1), (1, 0)]
    assert questions[2].type == "essay"


async def test_unknown_stored_type_is_a_data_error(factory):
    course = await factory.course()
    test = await factory.test(course)
    await factory.question(test, "drag_and_drop")

    with pytest.raises(UnexpectedQuestionTypeError):
        await question_bank.load_questions(factory.db, test.id)


async def test_get_test_missing(db):
    with pytest.raises(NotFoundError):
        await question_bank.get_test(db, 404)


async def test_sanitized_view_hides_answers(factory):
    course = await factory.course()
    test = await factory.test(course)
    mc = await factory.question(test, "multiple_choice")
    option = await factory.option(mc, "right", is_correct=True)
    await factory.question(test, "true_false", correct_answer="true", order=1)
    await factory.question(
        test, "matching", order=2,
        config={"leftColumn": ["x"], "rightColumn": ["1"], "correctPairs": [[0, 0]]}
    )

    views = [
        question_bank.sanitize_for_learner(q).model_dump()
        for q in await question_bank.load_questions(factory.db, test.id)
    ]

    assert views[0]["options"] == [{"id": option.id, "option_text": "right", "order": 0}]
    assert "is_correct" not in views[0]["options"][0]
    for view in views:
        assert "correct_answer" not in view
        assert "correct_pairs" not in view
    assert views[2]["left_column"] == ["x"]
    assert views[2]["right_column"] == ["1"]


async def test_stored_payload_is_validated_against_its_type(factory):
    course = await factory.course()
    test = await factory.test(course)
    await factory.question(
        test, "matching",
        config={"leftColumn": ["x"], "rightColumn": ["1"], "correctPairs": [["x", "1", "2"]]}
    )

    with pytest.raises(ValidationError):
        await question_bank.load_questions(factory.db, test.id)
