"""Shared fixtures: document builders, PDF/DOCX byte factories and a scripted model."""
from __future__ import annotations

import io
import json
import sys
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

import pytest

_SRC = Path(__file__).resolve().parents[1] / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from quizit.config import Settings, reset_settings  # noqa: E402
from quizit.llm_provider import LLM, LLMGenerationError  # noqa: E402

TOPICS = [
    ("Photosynthesis", "light energy", "chloroplast"),
    ("Cellular Respiration", "glucose", "mitochondria"),
    ("Plant Nutrition", "nitrogen", "root system"),
    ("Water Transport", "xylem vessel", "transpiration"),
    ("Seed Germination", "embryo", "seed coat"),
    ("Pollination", "pollen grain", "flower"),
    ("Leaf Structure", "stomata", "guard cell"),
    ("Growth Hormones", "auxin", "shoot tip"),
]


def make_sentence(topic: str, noun: str, organ: str, index: int) -> str:
    return (
        f"During step {index} of {topic.lower()}, the {noun} moves through the {organ} "
        f"and supports the steady work of the living plant."
    )


def make_paragraph(topic: str, noun: str, organ: str, start: int, sentences: int = 5) -> str:
    return " ".join(make_sentence(topic, noun, organ, start + offset) for offset in range(sentences))


def build_document(
    sections: int = 8,
    paragraphs_per_section: int = 3,
    sentences_per_paragraph: int = 5,
    *,
    headings: bool = True,
) -> str:
    """Coherent English text with headings and unique sentences."""

    blocks: List[str] = []
    counter = 1
    for section_index in range(sections):
        topic, noun, organ = TOPICS[section_index % len(TOPICS)]
        if headings:
            blocks.append(f"{section_index + 1}. {topic}")
        for _ in range(paragraphs_per_section):
            blocks.append(make_paragraph(topic, noun, organ, counter, sentences_per_paragraph))
            counter += sentences_per_paragraph
    return "\n\n".join(blocks)


def build_words(count: int) -> str:
    """Roughly *count* words of plain, coherent sentences."""

    sentences: List[str] = []
    words = 0
    index = 1
    while words < count:
        sentence = make_sentence("photosynthesis", "light energy", "chloroplast", index)
        sentences.append(sentence)
        words += len(sentence.split())
        index += 1
    return " ".join(sentences)


def make_quiz_payload(
    num_questions: int = 10,
    *,
    question_type: str = "mcq",
    title: str = "Plant Biology",
) -> dict:
    questions = []
    for index in range(1, num_questions + 1):
        if question_type == "mcq":
            questions.append(
                {
                    "id": f"q-{index}",
                    "type": "mcq",
                    "prompt": f"What happens during step {index}?",
                    "difficulty": "medium",
                    "options": [
                        {"id": "a", "text": "Light energy moves through the chloroplast"},
                        {"id": "b", "text": "Glucose is stored in the seed coat"},
                        {"id": "c", "text": "Pollen reaches the root system"},
                        {"id": "d", "text": "Auxin leaves the guard cell"},
                    ],
                    "correctOptionId": "a",
                    "explanation": "The document states that light energy moves through the chloroplast.",
                    "sourceSpan": f"During step {index} of photosynthesis",
                }
            )
        else:
            questions.append(
                {
                    "id": f"q-{index}",
                    "type": "true-false",
                    "prompt": f"Step {index} supports the living plant.",
                    "difficulty": "easy",
                    "answer": True,
                    "explanation": "Every step supports the steady work of the living plant.",
                }
            )
    return {
        "meta": {
            "title": title,
            "language": "en",
            "numQuestions": num_questions,
            "createdAt": "2024-01-01T00:00:00Z",
        },
        "sections": [{"id": "section-1", "title": "Photosynthesis", "questions": questions}],
    }


class ScriptedLLM(LLM):
    """Returns queued responses in order and records every call."""

    def __init__(self, responses: Iterable[str | Exception] = (), model: str = "scripted-model") -> None:
        self.responses: List[str | Exception] = list(responses)
        self.calls: List[dict] = []
        self._model = model

    @property
    def model_name(self) -> str:
        return self._model

    def generate(self, messages, *, temperature, max_tokens=None, json_mode=True) -> str:
        self.calls.append(
            {
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "json_mode": json_mode,
            }
        )
        if not self.responses:
            raise LLMGenerationError("no scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _pdf_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def build_pdf(lines: Sequence[str]) -> bytes:
    """Single page PDF with one text line per entry and a valid xref table."""

    operations = ["BT", "/F1 12 Tf", "72 720 Td", "14 TL"]
    for line in lines:
        operations.append(f"({_pdf_escape(line)}) Tj T*")
    operations.append("ET")
    stream = "\n".join(operations)

    objects = [
        "<< /Type /Catalog /Pages 2 0 R >>",
        "<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        "/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        f"<< /Length {len(stream.encode('latin-1'))} >>\nstream\n{stream}\nendstream",
        "<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    output = bytearray(b"%PDF-1.4\n")
    offsets: List[int] = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(output))
        output += f"{number} 0 obj\n{body}\nendobj\n".encode("latin-1")

    xref_position = len(output)
    output += f"xref\n0 {len(objects) + 1}\n".encode("latin-1")
    output += b"0000000000 65535 f \n"
    for offset in offsets:
        output += f"{offset:010d} 00000 n \n".encode("latin-1")
    output += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_position}\n%%EOF\n"
    ).encode("latin-1")
    return bytes(output)


def build_docx(
    paragraphs: Sequence[str] = (),
    *,
    heading: Optional[str] = None,
    bullets: Sequence[str] = (),
    table: Sequence[Sequence[str]] = (),
) -> bytes:
    docx_mod = pytest.importorskip("docx", reason="python-docx is required for DOCX tests")
    document = docx_mod.Document()
    if heading:
        document.add_heading(heading, level=1)
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    for bullet in bullets:
        document.add_paragraph(bullet, style="List Bullet")
    if table:
        grid = document.add_table(rows=len(table), cols=len(table[0]))
        for row_index, row in enumerate(table):
            for column_index, value in enumerate(row):
                grid.cell(row_index, column_index).text = value
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    for name in ("OPENAI_API_KEY", "LLM_PROVIDER", "GENERATION_TOKEN_BUDGET", "MAX_CHUNKS"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings() -> Settings:
    return Settings(llm_provider="stub")


@pytest.fixture
def document_text() -> str:
    """About 2500 words across eight headed sections."""

    return build_document()


@pytest.fixture
def scripted_llm() -> Callable[..., ScriptedLLM]:
    def factory(*responses: str | Exception, model: str = "scripted-model") -> ScriptedLLM:
        return ScriptedLLM(responses, model=model)

    return factory


@pytest.fixture
def quiz_json() -> Callable[..., str]:
    def factory(num_questions: int = 10, **kwargs) -> str:
        return json.dumps(make_quiz_payload(num_questions, **kwargs))

    return factory


@pytest.fixture
def pdf_factory() -> Callable[[Sequence[str]], bytes]:
    return build_pdf


@pytest.fixture
def docx_factory() -> Callable[..., bytes]:
    return build_docx


@pytest.fixture
def document_factory() -> Callable[..., str]:
    return build_document


@pytest.fixture
def words_factory() -> Callable[[int], str]:
    return build_words


@pytest.fixture
def quiz_payload() -> Callable[..., dict]:
    return make_quiz_payload
