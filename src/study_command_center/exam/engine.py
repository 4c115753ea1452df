"""Test-taking state machine."""

from collections.abc import Callable
from enum import StrEnum

import structlog

from study_command_center.exam.localize import DEFAULT_LANGUAGE, LANGUAGES, localized, render_question
from study_command_center.models.exam import ActiveTest, TestResult
from study_command_center.monitor.visibility import VisibilityMonitor
from study_command_center.storage.documents import DocumentStore

logger = structlog.get_logger()

TEST_RESULTS_COLLECTION = "test_results"
BREACH_WARNING = "WARNING: Test Discipline Breach! -{points} Score."


class TestStatus(StrEnum):
    __test__ = False

    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


def score_responses(test: ActiveTest, responses: dict[int, int]) -> int:
    """Count positions whose recorded option equals the correct index."""
    return sum(
        1
        for idx, question in enumerate(test.questions)
        if responses.get(idx) == question.correct_index
    )


def format_clock(seconds: int) -> str:
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


class TestSession:
    """Administers one pre-generated test under a countdown.

    Answers are keyed by question position and may change until submission.
    Submission is terminal: afterwards ticks, visibility events and answer
    selections are ignored and ``submit`` returns the stored result.

    Args:
        test: The active test.
        apply_penalty: Receives the negative discipline delta for a breach.
        penalty: Points per breach.
        on_submit: Called once with the result (persistence hook).
        language: Initial display language.
    """

    __test__ = False

    def __init__(
        self,
        test: ActiveTest,
        apply_penalty: Callable[[int], None],
        penalty: int = 5,
        on_submit: Callable[[TestResult], None] | None = None,
        language: str = DEFAULT_LANGUAGE,
    ):
        self.test = test
        self.status = TestStatus.IN_PROGRESS
        self.current_index = 0
        self.responses: dict[int, int] = {}
        self.time_left = test.duration
        self.result: TestResult | None = None
        self.language = DEFAULT_LANGUAGE
        self.set_language(language)
        self._on_submit = on_submit
        self.monitor = VisibilityMonitor(
            penalty=penalty,
            is_armed=lambda: not self.is_submitted,
            apply_penalty=apply_penalty,
        )

    @property
    def is_submitted(self) -> bool:
        return self.status == TestStatus.SUBMITTED

    @property
    def breaches(self) -> int:
        return self.monitor.breaches

    @property
    def breach_warning(self) -> str:
        return BREACH_WARNING.format(points=self.monitor.penalty)

    def set_language(self, language: str) -> None:
        if language not in LANGUAGES:
            raise ValueError(f"Unsupported language: {language}")
        self.language = language

    def goto(self, index: int) -> None:
        if not 0 <= index < len(self.test.questions):
            raise ValueError(f"Question index out of range: {index}")
        self.current_index = index

    def next(self) -> None:
        if self.current_index < len(self.test.questions) - 1:
            self.current_index += 1

    def previous(self) -> None:
        if self.current_index > 0:
            self.current_index -= 1

    def select_option(self, option_index: int, question_index: int | None = None) -> bool:
        """Record an answer for the current (or given) question."""
        if self.is_submitted:
            return False
        idx = self.current_index if question_index is None else question_index
        if not 0 <= idx < len(self.test.questions):
            raise ValueError(f"Question index out of range: {idx}")
        options = localized(self.test.questions[idx], "options", self.language)
        if not 0 <= option_index < len(options):
            raise ValueError(f"Option index out of range: {option_index}")
        self.responses[idx] = option_index
        return True

    def tick(self) -> int:
        """Advance the countdown one second; zero triggers submission."""
        if self.is_submitted:
            return self.time_left
        if self.time_left <= 1:
            self.time_left = 0
            self.submit()
        else:
            self.time_left -= 1
        return self.time_left

    def observe_visibility(self, hidden: bool) -> bool:
        """Breaches cost points but never pause the countdown."""
        return self.monitor.observe(hidden)

    def submit(self) -> TestResult:
        if self.result is not None:
            return self.result
        self.status = TestStatus.SUBMITTED
        self.result = TestResult(
            test_title=self.test.title,
            score=score_responses(self.test, self.responses),
            total=len(self.test.questions),
            breaches=self.breaches,
        )
        logger.info(
            "test_submitted",
            title=self.test.title,
            score=self.result.score,
            total=self.result.total,
            breaches=self.result.breaches,
        )
        if self._on_submit is not None:
            self._on_submit(self.result)
        return self.result

    def review(self) -> list[dict]:
        """Per-question solutions, shown after submission."""
        items = []
        for idx, question in enumerate(self.test.questions):
            selected = self.responses.get(idx)
            items.append({
                **render_question(question, self.language),
                "selected": selected,
                "correct_index": question.correct_index,
                "is_correct": selected == question.correct_index,
                "explanation": localized(question, "explanation", self.language),
            })
        return items

    def snapshot(self) -> dict:
        data = {
            "title": self.test.title,
            "status": self.status.value,
            "language": self.language,
            "current_index": self.current_index,
            "question_count": len(self.test.questions),
            "question": render_question(self.test.questions[self.current_index], self.language),
            "responses": {str(k): v for k, v in self.responses.items()},
            "time_left": self.time_left,
            "clock": format_clock(self.time_left),
            "breaches": self.breaches,
        }
        if self.result is not None:
            data["result"] = self.result.model_dump(mode="json")
        return data


def save_result(store: DocumentStore, user_id: str, result: TestResult) -> str:
    result.id = store.add(
        user_id,
        TEST_RESULTS_COLLECTION,
        result.model_dump(mode="json", exclude={"id"}),
    )
    return result.id


def list_results(store: DocumentStore, user_id: str, limit: int | None = None) -> list[TestResult]:
    docs = store.query(user_id, TEST_RESULTS_COLLECTION, order_by="timestamp", descending=True, limit=limit)
    return [TestResult(**d) for d in docs]
