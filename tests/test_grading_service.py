from types import SimpleNamespace

import pytest

from coursehub.exceptions import MalformedAnswerError, UnexpectedQuestionTypeError
from coursehub.schemas.question import (
    EssayQuestion,
    FillBlanksQuestion,
    MatchingQuestion,
    MultipleChoiceQuestion,
    OptionSpec,
    ShortAnswerQuestion,
    TrueFalseQuestion,
)
from coursehub.services.grading_service import evaluate_outcome, grade


def multiple_choice(qid=1, points=2):
    return MultipleChoiceQuestion(
        id=qid,
        points=points,
        options=[
            OptionSpec(id=10, option_text="tuple", is_correct=True),
            OptionSpec(id=11, option_text="str", is_correct=True),
            OptionSpec(id=12, option_text="list", is_correct=False),
        ],
    )


class TestMultipleChoice:

    def test_exact_set_awards_full_points(self):
        result = grade([multiple_choice()], {"1": [11, 10]})
        assert result.score == 2
        assert result.total_points == 2

    @pytest.mark.parametrize("answer", [[10], [10, 11, 12], [12], ["10", "12"]])
    def test_subset_superset_or_other_set_awards_nothing(self, answer):
        assert grade([multiple_choice()], {"1": answer}).score == 0

    def test_string_ids_compare_with_integer_ids(self):
        assert grade([multiple_choice()], {"1": ["10", "11"]}).score == 2

    def test_single_id_is_treated_as_one_selection(self):
        question = MultipleChoiceQuestion(
            id=1, options=[OptionSpec(id=5, is_correct=True), OptionSpec(id=6)]
        )
        assert grade([question], {"1": 5}).score == 1

    def test_question_without_correct_options_never_matches(self):
        question = MultipleChoiceQuestion(id=1, options=[OptionSpec(id=5), OptionSpec(id=6)])
        assert grade([question], {"1": [5]}).score == 0

    def test_non_id_entries_are_rejected(self):
        with pytest.raises(MalformedAnswerError):
            grade([multiple_choice()], {"1": [{"id": 10}]})


class TestTrueFalse:

    def test_matching_literal(self):
        question = TrueFalseQuestion(id=1, correct_answer="true")
        assert grade([question], {"1": "true"}).score == 1

    def test_opposite_awards_nothing(self):
        question = TrueFalseQuestion(id=1, correct_answer="true")
        assert grade([question], {"1": "false"}).score == 0

    @pytest.mark.parametrize("answer", ["True", "TRUE", " true", "yes"])
    def test_comparison_is_case_sensitive_and_exact(self, answer):
        question = TrueFalseQuestion(id=1, correct_answer="true")
        assert grade([question], {"1": answer}).score == 0

    def test_boolean_payload_is_rejected(self):
        question = TrueFalseQuestion(id=1, correct_answer="true")
        with pytest.raises(MalformedAnswerError):
            grade([question], {"1": True})


class TestFillBlanks:

    def test_case_and_whitespace_are_ignored(self):
        question = FillBlanksQuestion(id=1, correct_answer=" Def ")
        assert grade([question], {"1": "  def"}).score == 1

    def test_different_word_awards_nothing(self):
        question = FillBlanksQuestion(id=1, correct_answer="def")
        assert grade([question], {"1": "define"}).score == 0

    def test_missing_correct_answer_never_matches(self):
        question = FillBlanksQuestion(id=1, correct_answer=None)
        assert grade([question], {"1": "anything"}).score == 0


class TestShortAnswer:

    def test_one_of_three_keywords_is_not_enough(self):
        question = ShortAnswerQuestion(id=1, correct_answer="dog,cat,bird")
        assert grade([question], {"1": "I have a dog"}).score == 0

    def test_two_of_three_keywords_pass(self):
        question = ShortAnswerQuestion(id=1, correct_answer="dog,cat,bird")
        assert grade([question], {"1": "A Dog and a CAT"}).score == 1

    def test_half_of_the_keywords_is_enough(self):
        question = ShortAnswerQuestion(id=1, correct_answer="alpha, beta, gamma, delta")
        assert grade([question], {"1": "alpha then gamma"}).score == 1

    def test_keywords_match_as_substrings(self):
        question = ShortAnswerQuestion(id=1, correct_answer="run")
        assert grade([question], {"1": "running late"}).score == 1

    @pytest.mark.parametrize("correct", [None, "", " , ,"])
    def test_empty_keyword_list_never_awards(self, correct):
        question = ShortAnswerQuestion(id=1, correct_answer=correct)
        assert grade([question], {"1": "whatever"}).score == 0


class TestMatching:
    question = MatchingQuestion(
        id=1,
        points=3,
        left_column=["[]", "{}"],
        right_column=["list", "dict"],
        correct_pairs=[(0, 0), (1, 1)],
    )

    def test_reordered_pairs_award_full_points(self):
        assert grade([self.question], {"1": [[1, 1], [0, 0]]}).score == 3

    def test_swapped_pairs_award_nothing(self):
        assert grade([self.question], {"1": [[0, 1], [1, 0]]}).score == 0

    def test_incomplete_pairs_award_nothing(self):
        assert grade([self.question], {"1": [[0, 0]]}).score == 0

    @pytest.mark.parametrize("answer", ["0-0,1-1", [[0, 0, 1]], [["a", "b"]], [0, 0]])
    def test_wrong_shape_is_rejected(self, answer):
        with pytest.raises(MalformedAnswerError):
            grade([self.question], {"1": answer})


class TestEssay:

    def test_essay_never_scores_and_flags_review(self):
        result = grade([EssayQuestion(id=1, points=5)], {"1": "A long thoughtful answer"})
        assert result.score == 0
        assert result.total_points == 5
        assert result.needs_manual_review
        assert result.results[0].is_correct is None

    def test_unanswered_essay_still_flags_review(self):
        assert grade([EssayQuestion(id=1)], {}).needs_manual_review


class TestGrade:

    def test_blank_answers_count_toward_total_only(self):
        questions = [
            TrueFalseQuestion(id=1, correct_answer="true"),
            multiple_choice(qid=2),
            FillBlanksQuestion(id=3, correct_answer="x"),
        ]
        result = grade(questions, {"2": [], "3": ""})
        assert result.score == 0
        assert result.total_points == 4
        assert [r.answered for r in result.results] == [False, False, False]

    def test_answers_for_unknown_questions_are_ignored(self):
        question = TrueFalseQuestion(id=1, correct_answer="false")
        result = grade([question], {"1": "false", "999": "true"})
        assert result.score == 1
        assert len(result.results) == 1

    def test_integer_keys_are_accepted(self):
        question = TrueFalseQuestion(id=7, correct_answer="false")
        assert grade([question], {7: "false"}).score == 1

    def test_unknown_type_fails_loudly(self):
        rogue = SimpleNamespace(id=1, type="hotspot", points=1)
        with pytest.raises(UnexpectedQuestionTypeError):
            grade([rogue], {"1": "x"})

    def test_score_never_exceeds_total(self):
        questions = [
            multiple_choice(qid=1),
            TrueFalseQuestion(id=2, correct_answer="true"),
            ShortAnswerQuestion(id=3, correct_answer="a,b"),
            EssayQuestion(id=4, points=4),
        ]
        result = grade(questions, {"1": [10, 11], "2": "true", "3": "a b", "4": "text"})
        assert result.score == 4
        assert result.total_points == 8
        assert 0 <= result.score <= result.total_points

    def test_no_questions(self):
        result = grade([], {"1": "true"})
        assert (result.score, result.total_points) == (0, 0)


class TestEvaluateOutcome:

    def test_passed_at_threshold(self):
        outcome = evaluate_outcome(6, 10, passing_score=60)
        assert outcome.percentage == 60
        assert outcome.is_passed
        assert outcome.status == "passed"

    def test_failed_below_threshold(self):
        outcome = evaluate_outcome(5, 10, passing_score=60)
        assert not outcome.is_passed
        assert outcome.status == "failed"

    def test_no_passing_score_never_passes(self):
        assert not evaluate_outcome(10, 10, passing_score=None).is_passed

    def test_zero_passing_score_passes(self):
        assert evaluate_outcome(0, 10, passing_score=0).is_passed

    def test_zero_total_points(self):
        outcome = evaluate_outcome(0, 0, passing_score=0)
        assert outcome.percentage == 0
        assert not outcome.is_passed

    def test_essay_tests_are_pending_review(self):
        outcome = evaluate_outcome(0, 5, passing_score=50, needs_manual_review=True)
        assert outcome.status == "pending_review"
