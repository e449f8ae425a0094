"""
Automatic grading of test submissions.

Every question is all-or-nothing: it either earns its full ``points`` or
zero. Essay questions are never auto-scored; a test that contains one
is reported as needing manual review.
"""
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from coursehub.config import get_settings
from coursehub.exceptions import MalformedAnswerError, UnexpectedQuestionTypeError
from coursehub.schemas.question import (
    FillBlanksQuestion,
    GradableQuestion,
    MatchingQuestion,
    MultipleChoiceQuestion,
    ShortAnswerQuestion,
    TrueFalseQuestion,
)
from coursehub.schemas.test import GradeResult, Outcome, QuestionResult

settings = get_settings()


def is_blank(answer: Any) -> bool:
    """No answer given: missing, empty text or an empty selection"""
    if answer is None:
        return True
    if isinstance(answer, (str, list, tuple)) and len(answer) == 0:
        return True
    return False


def _is_id(value: Any) -> bool:
    return isinstance(value, (str, int)) and not isinstance(value, bool)


def _require_text(question: GradableQuestion, answer: Any) -> str:
    if not isinstance(answer, str):
        raise MalformedAnswerError(question.id, question.type, "a string")
    return answer


def check_multiple_choice(question: MultipleChoiceQuestion, answer: Any) -> bool:
    submitted = answer if isinstance(answer, list) else [answer]
    if not all(_is_id(option_id) for option_id in submitted):
        raise MalformedAnswerError(question.id, question.type, "an option id or a list of option ids")

    correct = sorted(str(o.id) for o in question.options if o.is_correct)
    return correct == sorted(str(option_id) for option_id in submitted)


def check_true_false(question: TrueFalseQuestion, answer: Any) -> bool:
    return _require_text(question, answer) == question.correct_answer


def check_fill_blanks(question: FillBlanksQuestion, answer: Any) -> bool:
    text = _require_text(question, answer)
    if question.correct_answer is None:
        return False
    return text.strip().lower() == question.correct_answer.strip().lower()


def check_short_answer(
    question: ShortAnswerQuestion,
    answer: Any,
    match_ratio: Optional[float] = None
) -> bool:
    """At least ``match_ratio`` of the keywords must appear in the answer"""
    text = _require_text(question, answer).lower()
    if match_ratio is None:
        match_ratio = settings.SHORT_ANSWER_MATCH_RATIO

    keywords = [
        k.strip().lower()
        for k in (question.correct_answer or "").split(",")
        if k.strip()
    ]
    if not keywords:
        return False

    matched = [k for k in keywords if k in text]
    return len(matched) >= len(keywords) * match_ratio


def _pair(value: Any) -> Optional[tuple]:
    if isinstance(value, (list, tuple)) and len(value) == 2:
        if all(isinstance(i, int) and not isinstance(i, bool) for i in value):
            return (value[0], value[1])
    return None


def check_matching(question: MatchingQuestion, answer: Any) -> bool:
    if not isinstance(answer, list):
        raise MalformedAnswerError(question.id, question.type, "a list of [left, right] index pairs")
    submitted = [_pair(p) for p in answer]
    if any(p is None for p in submitted):
        raise MalformedAnswerError(question.id, question.type, "a list of [left, right] index pairs")

    return sorted(submitted) == sorted(tuple(p) for p in question.correct_pairs)


def check_essay(question: GradableQuestion, answer: Any) -> Optional[bool]:
    return None


_CHECKERS: Dict[str, Callable[[Any, Any], Optional[bool]]] = {
    "multiple_choice": check_multiple_choice,
    "true_false": check_true_false,
    "fill_blanks": check_fill_blanks,
    "short_answer": check_short_answer,
    "matching": check_matching,
    "essay": check_essay,
}


def grade(questions: Sequence[GradableQuestion], answers: Mapping[Any, Any]) -> GradeResult:
    """
    Score a submission.

    Args:
        questions: every question of the test
        answers: question id -> submitted value; ids absent from
            ``questions`` are ignored

    Returns:
        GradeResult with score, total_points and a per-question breakdown

    Raises:
        MalformedAnswerError: an answer does not have the shape its type needs
        UnexpectedQuestionTypeError: a question carries an unknown type
    """
    submitted = {str(k): v for k, v in answers.items()}

    score = 0
    total_points = 0
    needs_manual_review = False
    results: List[QuestionResult] = []

    for question in questions:
        checker = _CHECKERS.get(question.type)
        if checker is None:
            raise UnexpectedQuestionTypeError(question.id, question.type)

        total_points += question.points
        if question.type == "essay":
            needs_manual_review = True

        answer = submitted.get(str(question.id))
        if is_blank(answer):
            results.append(QuestionResult(
                question_id=question.id,
                question_type=question.type,
                answered=False,
                is_correct=None if question.type == "essay" else False,
                points_possible=question.points
            ))
            continue

        is_correct = checker(question, answer)
        awarded = question.points if is_correct else 0
        score += awarded
        results.append(QuestionResult(
            question_id=question.id,
            question_type=question.type,
            answered=True,
            is_correct=is_correct,
            points_awarded=awarded,
            points_possible=question.points
        ))

    return GradeResult(
        score=score,
        total_points=total_points,
        needs_manual_review=needs_manual_review,
        results=results
    )


def compute_percentage(score: int, total_points: int) -> float:
    if total_points <= 0:
        return 0.0
    return score / total_points * 100


def evaluate_outcome(
    score: int,
    total_points: int,
    passing_score: Optional[int],
    needs_manual_review: bool = False
) -> Outcome:
    """Percentage, pass flag and the status shown to the learner"""
    percentage = compute_percentage(score, total_points)
    is_passed = (
        passing_score is not None
        and total_points > 0
        and percentage >= passing_score
    )

    if needs_manual_review:
        status = "pending_review"
    elif is_passed:
        status = "passed"
    else:
        status = "failed"

    return Outcome(percentage=round(percentage, 2), is_passed=is_passed, status=status)
