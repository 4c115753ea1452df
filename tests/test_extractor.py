"""Tests for JSON recovery from generated text."""

import json

import pytest
from pydantic import TypeAdapter, ValidationError

from study_command_center.generation.extractor import (
    GenerationFailed,
    extract_json,
    parse_generated,
    safe_json_parse,
)
from study_command_center.models.exam import QuestionSet
from study_command_center.planning.schedule import _PLAN_ADAPTER

PLAN = [
    {"title": "Quant Geometry", "duration_min": 90, "type": "Deep Work"},
    {"title": "Reading & Practice Task", "duration_min": 60, "type": "Practice"},
]


class TestSafeJsonParse:
    def test_plain_json(self):
        assert safe_json_parse('{"a": 1}') == {"a": 1}

    def test_fenced_json(self):
        assert safe_json_parse('```json\n[1, 2]\n```') == [1, 2]

    def test_garbage_returns_none(self):
        assert safe_json_parse("not json at all") is None

    def test_empty_returns_none(self):
        assert safe_json_parse("") is None
        assert safe_json_parse(None) is None


class TestExtractJson:
    def test_object_inside_prose(self):
        result = extract_json('Sure! Here you go: {"questions": []} Good luck.', "object")
        assert result.ok
        assert result.value == {"questions": []}

    def test_array_inside_fence(self):
        text = "```json\n" + json.dumps(PLAN) + "\n```"
        result = extract_json(text, "array")
        assert result.ok
        assert result.value == PLAN

    def test_no_span(self):
        result = extract_json("no brackets here", "array")
        assert not result.ok
        assert "no JSON array" in result.error

    def test_invalid_span(self):
        result = extract_json("[1, 2,, oops]", "array")
        assert not result.ok
        assert result.error == "invalid JSON"

    def test_result_is_immutable(self):
        result = extract_json("[1]", "array")
        with pytest.raises(ValidationError):
            result.error = "changed"


class TestParseGenerated:
    @pytest.mark.parametrize(
        "text",
        [
            json.dumps(PLAN),
            "```json\n" + json.dumps(PLAN) + "\n```",
            "Here is your plan:\n" + json.dumps(PLAN) + "\nStay strong.",
        ],
    )
    def test_plan_variants_yield_same_blocks(self, text):
        specs = parse_generated(text, "array", _PLAN_ADAPTER, "failed")
        assert [s.model_dump() for s in specs] == PLAN

    def test_plan_rejects_non_positive_duration(self):
        bad = json.dumps([{"title": "X", "duration_min": 0}])
        with pytest.raises(GenerationFailed) as exc:
            parse_generated(bad, "array", _PLAN_ADAPTER, "AI Planning Failed. Try again.")
        assert exc.value.message == "AI Planning Failed. Try again."

    def test_unparseable_span_uses_invalid_json_message(self):
        with pytest.raises(GenerationFailed) as exc:
            parse_generated("[1, 2,, oops]", "array", _PLAN_ADAPTER, "failed", "bad json")
        assert exc.value.message == "bad json"
        assert exc.value.detail == "invalid JSON"

    def test_missing_span_keeps_failure_message(self):
        with pytest.raises(GenerationFailed) as exc:
            parse_generated("no brackets", "array", _PLAN_ADAPTER, "failed", "bad json")
        assert exc.value.message == "failed"

    def test_plan_rejects_empty_list(self):
        with pytest.raises(GenerationFailed):
            parse_generated("[]", "array", _PLAN_ADAPTER, "failed")

    def test_fallback_text_fails(self):
        with pytest.raises(GenerationFailed) as exc:
            parse_generated("Connection failed. Manual planning required.", "array", _PLAN_ADAPTER, "failed")
        assert exc.value.detail == "no JSON array found"

    def test_question_with_three_options_fails(self):
        payload = {"questions": [{"question_en": "Q?", "options_en": ["a", "b", "c"], "correctIndex": 0}]}
        with pytest.raises(GenerationFailed):
            parse_generated(json.dumps(payload), "object", TypeAdapter(QuestionSet), "failed")

    def test_correct_index_out_of_range_fails(self):
        payload = {"questions": [{"question_en": "Q?", "options_en": ["a", "b", "c", "d"], "correctIndex": 4}]}
        with pytest.raises(GenerationFailed):
            parse_generated(json.dumps(payload), "object", TypeAdapter(QuestionSet), "failed")

    def test_legacy_question_fields_accepted(self):
        payload = {"questions": [{"question": "Q?", "options": ["a", "b", "c", "d"], "correctIndex": 2}]}
        result = parse_generated(json.dumps(payload), "object", TypeAdapter(QuestionSet), "failed")
        assert result.questions[0].correct_index == 2
