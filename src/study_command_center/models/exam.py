"""Mock test models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

OPTIONS_PER_QUESTION = 4


class Question(BaseModel):
    """A multiple-choice question with optional Hindi and legacy fields."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int | str | None = None
    question_en: str | None = None
    question_hi: str | None = None
    question: str | None = None
    options_en: list[str] | None = None
    options_hi: list[str] | None = None
    options: list[str] | None = None
    correct_index: int = Field(alias="correctIndex")
    explanation_en: str | None = None
    explanation_hi: str | None = None
    explanation: str | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> "Question":
        if not (self.question_en or self.question or self.question_hi):
            raise ValueError("question text missing")
        option_sets = [o for o in (self.options_en, self.options_hi, self.options) if o]
        if not option_sets:
            raise ValueError("options missing")
        for opts in option_sets:
            if len(opts) != OPTIONS_PER_QUESTION:
                raise ValueError(f"expected {OPTIONS_PER_QUESTION} options, got {len(opts)}")
        if not 0 <= self.correct_index < OPTIONS_PER_QUESTION:
            raise ValueError(f"correctIndex out of range: {self.correct_index}")
        return self


class QuestionSet(BaseModel):
    """Shape the generator must return for a mock test."""

    questions: list[Question] = Field(min_length=1)


class ActiveTest(BaseModel):
    """In-memory test handed to the test view; never persisted."""

    title: str
    questions: list[Question] = Field(min_length=1)
    duration: int = 600  # seconds


class TestResult(BaseModel):
    """Persisted outcome of a submitted test."""

    __test__ = False  # not a pytest class

    id: str | None = None
    test_title: str
    score: int
    total: int
    breaches: int = 0
    timestamp: datetime = Field(default_factory=datetime.now)
