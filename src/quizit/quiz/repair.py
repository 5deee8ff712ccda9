"""Best-effort repair of untrusted model output before strict validation.

The repair pass never raises. It patches structure (missing ids, metadata,
option sets, answers) but never invents question content: a payload without
questions stays without questions and is rejected by the validator.
"""
from __future__ import annotations

import copy
import logging
import string
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .schema import MCQ_OPTION_COUNT, GenerationParams

LOGGER = logging.getLogger(__name__)

DEFAULT_QUIZ_TITLE = "Generated Quiz"
DEFAULT_SECTION_TITLE = "General"
OPTION_IDS = tuple(string.ascii_lowercase[:MCQ_OPTION_COUNT])

_DIFFICULTIES = {"easy", "medium", "hard"}
_TYPE_ALIASES = {
    "mcq": "mcq",
    "multiple-choice": "mcq",
    "multiple_choice": "mcq",
    "multiplechoice": "mcq",
    "true-false": "true-false",
    "true_false": "true-false",
    "truefalse": "true-false",
    "true/false": "true-false",
    "boolean": "true-false",
}
_KEY_ALIASES = {
    "num_questions": "numQuestions",
    "created_at": "createdAt",
    "correct_option_id": "correctOptionId",
    "source_span": "sourceSpan",
}


@dataclass(slots=True)
class RepairReport:
    """The repaired payload and a description of every correction applied."""

    payload: Dict[str, Any]
    corrections: List[str] = field(default_factory=list)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _apply_key_aliases(mapping: Dict[str, Any]) -> None:
    for snake, camel in _KEY_ALIASES.items():
        if snake in mapping and camel not in mapping:
            mapping[camel] = mapping.pop(snake)


class _Repairer:
    def __init__(self, params: GenerationParams, created_at: Optional[str]) -> None:
        self.params = params
        self.created_at = created_at or _now_iso()
        self.corrections: List[str] = []

    def note(self, message: str) -> None:
        self.corrections.append(message)

    def repair(self, payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            self.note("payload was not an object; started from an empty quiz")
            payload = {}
        quiz = copy.deepcopy(payload)

        self._repair_meta(quiz)
        self._repair_sections(quiz)

        counter = 0
        for section in quiz["sections"]:
            for question in section["questions"]:
                counter += 1
                if isinstance(question, dict):
                    self._repair_question(question, counter)

        total = sum(len(section["questions"]) for section in quiz["sections"])
        if quiz["meta"].get("numQuestions") != total:
            self.note(f"meta.numQuestions recomputed as {total}")
        quiz["meta"]["numQuestions"] = total
        return quiz

    # Quiz level ----------------------------------------------------------------

    def _repair_meta(self, quiz: Dict[str, Any]) -> None:
        meta = quiz.get("meta")
        if not isinstance(meta, dict):
            self.note("meta synthesised from request parameters")
            quiz["meta"] = {
                "title": self.params.quiz_name or DEFAULT_QUIZ_TITLE,
                "language": self.params.language,
                "numQuestions": 0,
                "createdAt": self.created_at,
            }
            return
        _apply_key_aliases(meta)
        if not _is_text(meta.get("title")):
            self.note("meta.title defaulted")
            meta["title"] = self.params.quiz_name or DEFAULT_QUIZ_TITLE
        if not _is_text(meta.get("language")):
            meta["language"] = self.params.language
        if not _is_text(meta.get("createdAt")):
            meta["createdAt"] = self.created_at

    def _repair_sections(self, quiz: Dict[str, Any]) -> None:
        sections = quiz.get("sections")
        if not isinstance(sections, list):
            sections = []
        kept = [section for section in sections if isinstance(section, dict)]
        if len(kept) != len(sections):
            self.note("non-object sections dropped")
        sections = kept
        if not sections:
            self.note("sections missing; default section synthesised")
            sections = [{"id": "section-1", "title": DEFAULT_SECTION_TITLE, "questions": []}]
        quiz["sections"] = sections

        for index, section in enumerate(sections, start=1):
            if not _is_text(section.get("id")):
                section["id"] = f"section-{index}"
            if not _is_text(section.get("title")):
                section["title"] = f"Section {index}"
            if not isinstance(section.get("questions"), list):
                self.note(f"section {section['id']} had no question list")
                section["questions"] = []

    # Question level ------------------------------------------------------------

    def _repair_question(self, question: Dict[str, Any], number: int) -> None:
        _apply_key_aliases(question)
        if not _is_text(question.get("id")):
            question["id"] = f"q-{number}"
            self.note(f"question {number}: id synthesised")
        label = question["id"]

        question_type = self._resolve_type(question)
        if question_type is not None:
            question["type"] = question_type

        if not _is_text(question.get("prompt")):
            if _is_text(question.get("question")):
                question["prompt"] = question["question"]
            else:
                question["prompt"] = f"Question {number}"
                self.note(f"{label}: prompt defaulted")

        difficulty = question.get("difficulty")
        if not isinstance(difficulty, str) or difficulty not in _DIFFICULTIES:
            question["difficulty"] = self.params.difficulty

        if question_type == "mcq":
            self._repair_mcq(question, label)
        elif question_type == "true-false":
            if not isinstance(question.get("answer"), bool):
                question["answer"] = True
                self.note(f"{label}: non-boolean answer coerced to true")

        if not _is_text(question.get("explanation")):
            question["explanation"] = self._fallback_explanation(question)
            self.note(f"{label}: explanation synthesised")

    @staticmethod
    def _resolve_type(question: Dict[str, Any]) -> Optional[str]:
        raw = question.get("type")
        if isinstance(raw, str):
            resolved = _TYPE_ALIASES.get(raw.strip().lower())
            if resolved is not None:
                return resolved
        if "options" in question:
            return "mcq"
        if isinstance(question.get("answer"), bool):
            return "true-false"
        return None

    def _repair_mcq(self, question: Dict[str, Any], label: str) -> None:
        options = question.get("options")
        if not isinstance(options, list) or len(options) != MCQ_OPTION_COUNT:
            self.note(f"{label}: options replaced with {MCQ_OPTION_COUNT} placeholders")
            options = [
                {"id": option_id, "text": f"Option {option_id.upper()}"} for option_id in OPTION_IDS
            ]
        else:
            options = [self._repair_option(option, index) for index, option in enumerate(options)]
            option_ids = [option["id"] for option in options]
            if len(set(option_ids)) != len(option_ids):
                self.note(f"{label}: duplicate option ids reassigned")
                correct_text = self._option_text_for(question.get("correctOptionId"), options)
                for option, option_id in zip(options, OPTION_IDS):
                    option["id"] = option_id
                if correct_text is not None:
                    question["correctOptionId"] = correct_text
        question["options"] = options

        option_ids = [option["id"] for option in options]
        correct = question.get("correctOptionId")
        if correct not in option_ids:
            matched = next(
                (option["id"] for option in options if isinstance(correct, str) and option["text"] == correct),
                None,
            )
            question["correctOptionId"] = matched if matched is not None else option_ids[0]
            if matched is None:
                self.note(f"{label}: correctOptionId defaulted to first option")

    @staticmethod
    def _repair_option(option: Any, index: int) -> Dict[str, Any]:
        default_id = OPTION_IDS[index]
        if isinstance(option, str):
            return {"id": default_id, "text": option.strip() or f"Option {default_id.upper()}"}
        if not isinstance(option, dict):
            return {"id": default_id, "text": f"Option {default_id.upper()}"}
        repaired = dict(option)
        if not _is_text(repaired.get("id")):
            repaired["id"] = default_id
        if not _is_text(repaired.get("text")):
            repaired["text"] = f"Option {default_id.upper()}"
        return repaired

    @staticmethod
    def _option_text_for(option_id: Any, options: List[Dict[str, Any]]) -> Optional[str]:
        for option in options:
            if option["id"] == option_id:
                return option["text"]
        return None

    @staticmethod
    def _fallback_explanation(question: Dict[str, Any]) -> str:
        if question.get("type") == "mcq":
            correct = question.get("correctOptionId")
            for option in question.get("options") or []:
                if isinstance(option, dict) and option.get("id") == correct:
                    return f"The correct answer is: {option.get('text')}."
            return "The correct answer is supported by the source document."
        if question.get("type") == "true-false":
            verdict = "true" if question.get("answer") is True else "false"
            return f"This statement is {verdict} according to the source document."
        return "See the source document for details."


def validate_and_correct(
    payload: Any,
    params: GenerationParams,
    *,
    created_at: Optional[str] = None,
) -> RepairReport:
    """Return a repaired deep copy of *payload* plus the corrections applied."""

    repairer = _Repairer(params, created_at)
    repaired = repairer.repair(payload)
    if repairer.corrections:
        LOGGER.info("Quiz repair applied %s corrections", len(repairer.corrections))
    return RepairReport(payload=repaired, corrections=repairer.corrections)
