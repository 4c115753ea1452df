"""Mock test generation from library material and vocabulary history."""

import structlog
from pydantic import TypeAdapter

from study_command_center.generation.client import GenerationClient
from study_command_center.generation.extractor import parse_generated
from study_command_center.generation.prompts import (
    material_test_prompt,
    mock_test_system_prompt,
    vocab_test_system_prompt,
)
from study_command_center.models.exam import ActiveTest, QuestionSet
from study_command_center.models.material import Material
from study_command_center.models.vocab import VocabEntry

logger = structlog.get_logger()

_QUESTION_SET_ADAPTER = TypeAdapter(QuestionSet)

MATERIAL_TEST_FAILED = (
    "AI could not identify the topic. Please edit the material title to be more specific."
)
VOCAB_TEST_FAILED = "Failed to generate test."
MIN_VOCAB_TEST_SECONDS = 300
SECONDS_PER_VOCAB_QUESTION = 60


async def generate_material_test(
    generator: GenerationClient,
    material: Material,
    question_count: int = 10,
    duration: int = 600,
    content_limit: int = 20000,
) -> ActiveTest:
    """Build a bilingual mock test from one library item.

    Raises:
        GenerationFailed: The model did not return a usable question set.
    """
    prompt = material_test_prompt(
        material.title, material.content, material.instruction, limit=content_limit
    )
    raw = await generator.generate(prompt, mock_test_system_prompt(question_count))
    question_set = parse_generated(raw, "object", _QUESTION_SET_ADAPTER, MATERIAL_TEST_FAILED)
    logger.info(
        "material_test_generated",
        material=material.title,
        questions=len(question_set.questions),
    )
    return ActiveTest(
        title=f"Mock Test: {material.title}",
        questions=question_set.questions,
        duration=duration,
    )


def vocab_test_duration(word_count: int) -> int:
    """One minute per question with a five-minute floor."""
    return max(MIN_VOCAB_TEST_SECONDS, word_count * SECONDS_PER_VOCAB_QUESTION)


async def generate_vocab_test(generator: GenerationClient, history: list[VocabEntry]) -> ActiveTest:
    """One synonym/antonym/meaning question per word in ``history``.

    Raises:
        ValueError: History is empty.
        GenerationFailed: The model did not return a usable question set.
    """
    if not history:
        raise ValueError("Vocabulary history is empty.")
    count = len(history)
    words = ", ".join(entry.word for entry in history)
    raw = await generator.generate(f"Words: {words}", vocab_test_system_prompt(count))
    question_set = parse_generated(raw, "object", _QUESTION_SET_ADAPTER, VOCAB_TEST_FAILED)
    logger.info("vocab_test_generated", words=count, questions=len(question_set.questions))
    return ActiveTest(
        title=f"Vocab Revision: {count} Words",
        questions=question_set.questions,
        duration=vocab_test_duration(count),
    )
