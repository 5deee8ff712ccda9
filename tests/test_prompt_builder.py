from pathlib import Path

from quizit.ingest.chunking import ChunkingConfig, ContentChunker
from quizit.ingest.pipeline import content_from_text
from quizit.quiz.prompt_builder import build_messages, build_system_prompt, format_chunk
from quizit.quiz.schema import GenerationParams

PROMPTS_DIR = Path(__file__).resolve().parents[1] / "src" / "quizit" / "prompts"


def test_system_prompt_states_schema_and_rules() -> None:
    params = GenerationParams(num_questions=7, question_types=["true-false"], difficulty="hard", language="fr")

    prompt = build_system_prompt(params)

    assert "exactly 7 questions" in prompt
    assert 'Only use these question types: "true-false".' in prompt
    assert "hard difficulty" in prompt
    assert 'language "fr"' in prompt
    assert "type McqOption = { id: string; text: string };" in prompt
    assert "{{" not in prompt
    assert "exactly 4 options" in prompt


def test_user_prompt_embeds_chunks_and_document_stats(document_factory) -> None:
    content = content_from_text(document_factory(sections=3))
    config = ChunkingConfig(target_tokens=200, max_tokens=300, min_tokens=50, overlap_tokens=0,
                            prioritize_important=False)
    chunks = ContentChunker(config).chunk(content)
    selected = chunks[:2]
    params = GenerationParams(num_questions=4, quiz_name="Plant Biology")

    messages = build_messages(content, selected, params, total_chunks=len(chunks))

    assert [message["role"] for message in messages] == ["system", "user"]
    user = messages[1]["content"]
    assert 'Create a quiz titled "Plant Biology" with 4 questions' in user
    assert f"Word count: {content.metadata.word_count}" in user
    assert f"Sections detected: {len(content.sections)}" in user
    assert f"Chunks provided: 2 of {len(chunks)}" in user
    assert "Detected language: en" in user
    assert "Quality warnings: none" in user
    for chunk in selected:
        assert chunk.content in user
    assert user.index(selected[0].content) < user.index(selected[1].content)
    assert "Context: 1. Photosynthesis" in user


def test_format_chunk_lists_metadata(document_factory) -> None:
    content = content_from_text(document_factory(sections=1))
    chunk = ContentChunker().chunk(content)[0]

    rendered = format_chunk(chunk, 1)

    assert rendered.startswith("### Chunk 1 (chunk-0)")
    assert "Type: mixed | Importance: 1.00" in rendered
    assert "Topics: " in rendered
    assert rendered.endswith(chunk.content)


def test_templates_ship_with_the_package() -> None:
    assert (PROMPTS_DIR / "system.txt").read_text(encoding="utf-8").strip()
    assert "{chunks}" in (PROMPTS_DIR / "user.md").read_text(encoding="utf-8")
