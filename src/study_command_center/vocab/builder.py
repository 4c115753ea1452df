"""Vocabulary batches and the running, deduplicated history."""

from typing import Annotated

import structlog
from pydantic import Field, TypeAdapter

from study_command_center.exam.generator import generate_vocab_test
from study_command_center.generation.client import GenerationClient
from study_command_center.generation.extractor import parse_generated
from study_command_center.generation.prompts import vocab_system_prompt, vocab_user_prompt
from study_command_center.models.exam import ActiveTest
from study_command_center.models.vocab import VocabEntry
from study_command_center.storage.vocab_history import load_history, save_history

logger = structlog.get_logger()

FETCH_FAILED = "Failed to fetch words. Try again."

_VOCAB_ADAPTER = TypeAdapter(Annotated[list[VocabEntry], Field(min_length=1)])


def merge_history(new_words: list[VocabEntry], history: list[VocabEntry]) -> list[VocabEntry]:
    """Prepend new words and drop case-insensitive duplicates, keeping the first."""
    seen: set[str] = set()
    merged = []
    for entry in [*new_words, *history]:
        key = entry.word.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        merged.append(entry)
    return merged


class VocabularyBuilder:
    """Fetches word batches and turns the history into revision tests.

    Args:
        generator: Content generation client.
        batch_size: Words requested per fetch.
    """

    def __init__(self, generator: GenerationClient, batch_size: int = 20):
        self.generator = generator
        self.batch_size = batch_size

    def history(self, user_id: str) -> list[VocabEntry]:
        return load_history(user_id)

    def add_words(self, user_id: str, words: list[VocabEntry]) -> list[VocabEntry]:
        merged = merge_history(words, load_history(user_id))
        save_history(user_id, merged)
        return merged

    async def fetch_new_words(self, user_id: str) -> list[VocabEntry]:
        """Request a batch, merge it into the history and return the batch.

        Raises:
            GenerationFailed: The response held no usable word list.
        """
        raw = await self.generator.generate(
            vocab_user_prompt(self.batch_size), vocab_system_prompt(self.batch_size)
        )
        words = parse_generated(raw, "array", _VOCAB_ADAPTER, FETCH_FAILED)
        history = self.add_words(user_id, words)
        logger.info("vocab_fetched", user_id=user_id, batch=len(words), history=len(history))
        return words

    async def start_history_test(self, user_id: str) -> ActiveTest:
        return await generate_vocab_test(self.generator, load_history(user_id))
