"""Shared fixtures: a temp document store and a scripted generator."""

import json

import pytest

from study_command_center.storage.documents import DocumentStore


class FakeGenerator:
    """Returns queued responses in order; the last one repeats."""

    def __init__(self, *responses: str):
        self.responses = list(responses)
        self.calls: list[tuple[str, str]] = []

    async def generate(self, prompt: str, system_instruction: str) -> str:
        self.calls.append((prompt, system_instruction))
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


def make_question(idx: int = 1, correct: int = 0, hindi: bool = True) -> dict:
    question = {
        "id": idx,
        "question_en": f"Question {idx}?",
        "options_en": ["A", "B", "C", "D"],
        "correctIndex": correct,
        "explanation_en": f"Because {idx}.",
    }
    if hindi:
        question.update({
            "question_hi": f"प्रश्न {idx}?",
            "options_hi": ["क", "ख", "ग", "घ"],
            "explanation_hi": f"क्योंकि {idx}.",
        })
    return question


def question_set_json(count: int = 2) -> str:
    return json.dumps({"questions": [make_question(i + 1, correct=i % 4) for i in range(count)]})


@pytest.fixture
def store(tmp_path):
    return DocumentStore(tmp_path / "store")


@pytest.fixture
def fake_generator():
    return FakeGenerator
