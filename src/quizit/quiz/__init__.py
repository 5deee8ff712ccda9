"""Quiz schema, repair, prompting and generation."""

from .generator import GenerationMetadata, QuizGenerator, QuizResult
from .repair import RepairReport, validate_and_correct
from .schema import (
    GenerationParams,
    McqOption,
    McqQuestion,
    Quiz,
    QuizMeta,
    QuizSection,
    TrueFalseQuestion,
    validate_quiz,
)

__all__ = [
    "GenerationMetadata",
    "GenerationParams",
    "McqOption",
    "McqQuestion",
    "Quiz",
    "QuizGenerator",
    "QuizMeta",
    "QuizResult",
    "QuizSection",
    "RepairReport",
    "TrueFalseQuestion",
    "validate_and_correct",
    "validate_quiz",
]
