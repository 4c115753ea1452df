"""Tests for the test-taking state machine and bilingual lookup."""

import pytest

from conftest import make_question
from study_command_center.exam.engine import (
    BREACH_WARNING,
    TestSession,
    TestStatus,
    format_clock,
    list_results,
    save_result,
    score_responses,
)
from study_command_center.exam.localize import MISSING_EXPLANATION, field_chain, localized
from study_command_center.models.exam import ActiveTest, Question, TestResult


def make_test(count: int = 3, duration: int = 600) -> ActiveTest:
    return ActiveTest(
        title="Mock Test: Geometry",
        questions=[Question(**make_question(i + 1, correct=i % 4)) for i in range(count)],
        duration=duration,
    )


def make_session(test=None, **kwargs):
    deltas: list[int] = []
    results: list[TestResult] = []
    session = TestSession(
        test or make_test(),
        apply_penalty=deltas.append,
        on_submit=results.append,
        **kwargs,
    )
    return session, deltas, results


class TestAnswering:
    def test_answers_keyed_by_position_and_changeable(self):
        session, _, _ = make_session()
        session.select_option(3)
        session.select_option(0)
        session.next()
        session.select_option(1)
        assert session.responses == {0: 0, 1: 1}

    def test_select_for_explicit_question(self):
        session, _, _ = make_session()
        session.select_option(2, question_index=2)
        assert session.responses == {2: 2}

    def test_out_of_range_option(self):
        session, _, _ = make_session()
        with pytest.raises(ValueError):
            session.select_option(4)

    def test_navigation_bounds(self):
        session, _, _ = make_session()
        session.previous()
        assert session.current_index == 0
        session.goto(2)
        session.next()
        assert session.current_index == 2
        with pytest.raises(ValueError):
            session.goto(3)


class TestScoring:
    def test_score_counts_matches(self):
        test = make_test(4)
        assert score_responses(test, {0: 0, 1: 1, 2: 0}) == 2
        assert score_responses(test, {}) == 0

    def test_submit_builds_result_once(self):
        session, _, results = make_session()
        session.select_option(0)
        result = session.submit()
        again = session.submit()
        assert again is result
        assert len(results) == 1
        assert result.score == 1
        assert result.total == 3
        assert result.test_title == "Mock Test: Geometry"
        assert session.status == TestStatus.SUBMITTED

    def test_selection_ignored_after_submit(self):
        session, _, _ = make_session()
        session.submit()
        assert session.select_option(1) is False
        assert session.responses == {}


class TestCountdown:
    def test_tick_to_zero_auto_submits(self):
        session, _, results = make_session(make_test(duration=3))
        session.select_option(0)
        for _ in range(5):
            session.tick()
        assert session.time_left == 0
        assert session.is_submitted
        assert len(results) == 1
        assert results[0].score == 1

    def test_tick_after_submit_is_noop(self):
        session, _, _ = make_session()
        session.submit()
        session.tick()
        assert session.time_left == 600

    def test_format_clock(self):
        assert format_clock(600) == "10:00"
        assert format_clock(59) == "00:59"


class TestBreaches:
    def test_breach_costs_points_but_timer_continues(self):
        session, deltas, _ = make_session(penalty=5)
        assert session.observe_visibility(hidden=True) is True
        session.tick()
        assert session.time_left == 599
        assert deltas == [-5]
        assert session.breach_warning == BREACH_WARNING.format(points=5)

    def test_breaches_recorded_on_result(self):
        session, _, _ = make_session()
        session.observe_visibility(hidden=True)
        session.observe_visibility(hidden=True)
        assert session.submit().breaches == 2

    def test_no_breach_after_submit(self):
        session, deltas, _ = make_session()
        session.submit()
        assert session.observe_visibility(hidden=True) is False
        assert deltas == []


class TestLocalization:
    def test_field_chain(self):
        assert field_chain("options", "hi") == ["options_hi", "options_en", "options"]
        assert field_chain("options", "en") == ["options_en", "options"]

    def test_hindi_selected(self):
        question = make_question(1)
        assert localized(question, "question", "hi") == "प्रश्न 1?"
        assert localized(question, "options", "hi") == ["क", "ख", "ग", "घ"]

    def test_falls_back_to_english(self):
        question = make_question(1, hindi=False)
        assert localized(question, "question", "hi") == "Question 1?"

    def test_empty_hindi_options_fall_back_to_english(self):
        question = make_question(1)
        question["options_hi"] = []
        assert localized(Question(**question), "options", "hi") == question["options_en"]

    def test_falls_back_to_legacy_field(self):
        question = {"question": "Legacy?", "options": ["a", "b", "c", "d"], "correctIndex": 0}
        assert localized(question, "question", "hi") == "Legacy?"
        assert localized(question, "options", "en") == ["a", "b", "c", "d"]

    def test_defaults(self):
        assert localized({}, "question", "en") == ""
        assert localized({}, "options", "hi") == []
        assert localized({}, "explanation", "hi") == MISSING_EXPLANATION

    def test_unknown_field(self):
        with pytest.raises(ValueError):
            localized({}, "answer", "en")

    def test_language_switch_changes_snapshot(self):
        session, _, _ = make_session()
        session.set_language("hi")
        assert session.snapshot()["question"]["question"] == "प्रश्न 1?"
        with pytest.raises(ValueError):
            session.set_language("fr")

    def test_review_after_submit(self):
        session, _, _ = make_session()
        session.select_option(1)
        session.submit()
        review = session.review()
        assert review[0]["is_correct"] is False
        assert review[0]["selected"] == 1
        assert review[0]["explanation"] == "Because 1."
        assert review[1]["selected"] is None


class TestResultPersistence:
    def test_save_and_list_newest_first(self, store):
        from datetime import datetime

        older = TestResult(test_title="Old", score=1, total=10, timestamp=datetime(2026, 1, 1))
        newer = TestResult(test_title="New", score=7, total=10, timestamp=datetime(2026, 2, 1))
        save_result(store, "u1", older)
        save_result(store, "u1", newer)
        results = list_results(store, "u1")
        assert [r.test_title for r in results] == ["New", "Old"]
        assert results[0].id == newer.id
