"""Wire schema for generated quizzes and generation requests.

JSON keys are camelCase (``numQuestions``, ``correctOptionId``) so the model
output and serialised quizzes share one shape; Python attributes are
snake_case.
"""
from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

Difficulty = Literal["easy", "medium", "hard"]
QuestionType = Literal["mcq", "true-false"]

QUESTION_TYPES: tuple[str, ...] = ("mcq", "true-false")
MCQ_OPTION_COUNT = 4


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


Text = Annotated[str, Field(min_length=1), AfterValidator(_require_text)]


class McqOption(_WireModel):
    id: Text
    text: Text


class _QuestionBase(_WireModel):
    id: Text
    prompt: Text
    difficulty: Difficulty = "medium"
    source_span: Optional[str] = None
    explanation: Text


class McqQuestion(_QuestionBase):
    type: Literal["mcq"]
    options: List[McqOption] = Field(min_length=MCQ_OPTION_COUNT, max_length=MCQ_OPTION_COUNT)
    correct_option_id: str

    @model_validator(mode="after")
    def _check_options(self) -> "McqQuestion":
        option_ids = [option.id for option in self.options]
        if len(set(option_ids)) != len(option_ids):
            raise ValueError("MCQ option ids must be unique")
        if self.correct_option_id not in option_ids:
            raise ValueError("correctOptionId must match one of the option IDs")
        return self


class TrueFalseQuestion(_QuestionBase):
    type: Literal["true-false"]
    answer: StrictBool


Question = Annotated[Union[McqQuestion, TrueFalseQuestion], Field(discriminator="type")]


class QuizSection(_WireModel):
    id: Text
    title: Text
    questions: List[Question] = Field(min_length=1)


class QuizMeta(_WireModel):
    title: Text
    language: str = "en"
    num_questions: int = Field(gt=0)
    created_at: str = Field(min_length=1)


class Quiz(_WireModel):
    meta: QuizMeta
    sections: List[QuizSection] = Field(min_length=1)

    @property
    def questions(self) -> List[Union[McqQuestion, TrueFalseQuestion]]:
        return [question for section in self.sections for question in section.questions]

    @model_validator(mode="after")
    def _check_question_count(self) -> "Quiz":
        total = sum(len(section.questions) for section in self.sections)
        if self.meta.num_questions != total:
            raise ValueError(
                f"meta.numQuestions ({self.meta.num_questions}) must equal the number of questions ({total})"
            )
        return self

    def to_wire(self) -> dict:
        """Serialise to the camelCase JSON-compatible structure."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class GenerationParams(_WireModel):
    """Validated, immutable parameters of one generation request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    num_questions: int = Field(10, ge=1, le=50)
    difficulty: Difficulty = "medium"
    language: str = Field("en", min_length=1)
    question_types: List[QuestionType] = Field(
        default_factory=lambda: list(QUESTION_TYPES), min_length=1
    )
    quiz_name: Optional[str] = None

    @field_validator("question_types")
    @classmethod
    def _dedupe_types(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))

    @field_validator("quiz_name")
    @classmethod
    def _blank_name_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()


def describe_violations(error: ValidationError) -> List[str]:
    """Flatten a Pydantic error into ``path: message`` strings."""

    violations: List[str] = []
    for issue in error.errors():
        path = ".".join(str(part) for part in issue.get("loc", ())) or "<root>"
        violations.append(f"{path}: {issue.get('msg', 'invalid value')}")
    return violations


def validate_quiz(payload: object) -> Quiz:
    """Strictly validate a decoded payload; raises :class:`ValidationError`."""

    return Quiz.model_validate(payload)
