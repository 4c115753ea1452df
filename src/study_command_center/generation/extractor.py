"""Recovery of structured values from free-form model output."""

import json
import re
from typing import Any, Literal

import structlog
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

logger = structlog.get_logger()

_FENCE = re.compile(r"```json\s*|\s*```")
_SPANS = {
    "object": re.compile(r"\{.*\}", re.DOTALL),
    "array": re.compile(r"\[.*\]", re.DOTALL),
}

Shape = Literal["object", "array"]

INVALID_JSON = "invalid JSON"


class GenerationFailed(RuntimeError):
    """Generated content could not be turned into the expected structure."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ExtractionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def safe_json_parse(text: str | None) -> Any:
    """Parse JSON as-is, then once more with code fences stripped.

    Returns None when both attempts fail.
    """
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    cleaned = _FENCE.sub("", text).strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning("json_parse_failed", error=str(e), preview=text[:120])
        return None


def extract_json(text: str | None, shape: Shape) -> ExtractionResult:
    """Cut the outermost ``{...}``/``[...]`` span out of ``text`` and parse it."""
    if not text:
        return ExtractionResult(error="empty response")
    match = _SPANS[shape].search(text)
    if not match:
        return ExtractionResult(error=f"no JSON {shape} found")
    value = safe_json_parse(match.group(0))
    if value is None:
        return ExtractionResult(error=INVALID_JSON)
    return ExtractionResult(value=value)


def parse_generated(
    text: str | None,
    shape: Shape,
    adapter: TypeAdapter,
    failure_message: str,
    invalid_json_message: str | None = None,
) -> Any:
    """Extract and schema-validate generated content.

    ``invalid_json_message`` replaces ``failure_message`` when a span was
    found but did not parse.

    Raises:
        GenerationFailed: On missing, unparseable or mis-shaped content.
    """
    result = extract_json(text, shape)
    if not result.ok:
        logger.warning("generation_extract_failed", reason=result.error)
        if result.error == INVALID_JSON and invalid_json_message:
            raise GenerationFailed(invalid_json_message, detail=result.error)
        raise GenerationFailed(failure_message, detail=result.error)
    try:
        return adapter.validate_python(result.value)
    except ValidationError as e:
        logger.warning("generation_schema_mismatch", errors=e.error_count())
        raise GenerationFailed(failure_message, detail=str(e)) from e
