"""
Gradable question variants.

Each stored question row is turned into exactly one of these models,
selected by its ``type``. A variant only carries the fields its
correctness rule reads, so a matching question can never be graded
against a keyword list and vice versa.
"""
from pydantic import BaseModel, Field
from typing import Annotated, List, Literal, Optional, Tuple, Union

QUESTION_TYPES = (
    "multiple_choice",
    "true_false",
    "fill_blanks",
    "matching",
    "short_answer",
    "essay",
)


class OptionSpec(BaseModel):
    id: int
    option_text: str = ""
    is_correct: bool = False
    order: int = 0


class QuestionBase(BaseModel):
    id: int
    test_id: Optional[int] = None
    question_text: str = ""
    points: int = Field(default=1, gt=0)
    order: int = 0


class MultipleChoiceQuestion(QuestionBase):
    type: Literal["multiple_choice"] = "multiple_choice"
    options: List[OptionSpec] = Field(default_factory=list)


class TrueFalseQuestion(QuestionBase):
    type: Literal["true_false"] = "true_false"
    correct_answer: Optional[str] = None  # literal "true" or "false"


class FillBlanksQuestion(QuestionBase):
    type: Literal["fill_blanks"] = "fill_blanks"
    correct_answer: Optional[str] = None


class ShortAnswerQuestion(QuestionBase):
    type: Literal["short_answer"] = "short_answer"
    correct_answer: Optional[str] = None  # comma-separated keywords


class MatchingQuestion(QuestionBase):
    type: Literal["matching"] = "matching"
    left_column: List[str] = Field(default_factory=list)
    right_column: List[str] = Field(default_factory=list)
    correct_pairs: List[Tuple[int, int]] = Field(default_factory=list)


class EssayQuestion(QuestionBase):
    type: Literal["essay"] = "essay"


GradableQuestion = Annotated[
    Union[
        MultipleChoiceQuestion,
        TrueFalseQuestion,
        FillBlanksQuestion,
        ShortAnswerQuestion,
        MatchingQuestion,
        EssayQuestion,
    ],
    Field(discriminator="type"),
]


class LearnerOption(BaseModel):
    id: int
    option_text: str
    order: int


class LearnerQuestion(BaseModel):
    """Question as shown while taking a test: no answers, no correct flags."""
    id: int
    test_id: Optional[int] = None
    type: str
    question_text: str
    points: int
    order: int
    options: List[LearnerOption] = Field(default_factory=list)
    left_column: List[str] = Field(default_factory=list)
    right_column: List[str] = Field(default_factory=list)
