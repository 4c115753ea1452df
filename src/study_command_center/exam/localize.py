"""Bilingual field lookup for generated questions."""

from typing import Any

from study_command_center.models.exam import Question

DEFAULT_LANGUAGE = "en"
LANGUAGES = ("en", "hi")
MISSING_EXPLANATION = "Solution not available for this question."

_DEFAULTS: dict[str, Any] = {
    "question": "",
    "options": [],
    "explanation": MISSING_EXPLANATION,
}


def _get(question: Question | dict, name: str) -> Any:
    if isinstance(question, dict):
        return question.get(name)
    return getattr(question, name, None)


def field_chain(field: str, language: str) -> list[str]:
    """Lookup order for ``field``: selected language, English, legacy name."""
    chain = []
    if language != DEFAULT_LANGUAGE:
        chain.append(f"{field}_{language}")
    chain += [f"{field}_{DEFAULT_LANGUAGE}", field]
    return chain


def localized(question: Question | dict, field: str, language: str = DEFAULT_LANGUAGE) -> Any:
    """Return the first non-empty value along the field's fallback chain.

    An empty list counts as missing, so a blank ``options_hi`` shows the
    English options instead of a question with nothing to choose.
    """
    if field not in _DEFAULTS:
        raise ValueError(f"Unknown question field: {field}")
    for name in field_chain(field, language):
        value = _get(question, name)
        if value:
            return value
    default = _DEFAULTS[field]
    return list(default) if isinstance(default, list) else default


def render_question(question: Question | dict, language: str = DEFAULT_LANGUAGE) -> dict:
    return {
        "id": _get(question, "id"),
        "question": localized(question, "question", language),
        "options": localized(question, "options", language),
    }
