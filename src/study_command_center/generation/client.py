"""Gemini generateContent client."""

import httpx
import structlog

logger = structlog.get_logger()

CONNECTION_FAILED = "Connection failed. Manual planning required."
AI_UNREACHABLE = "System Error: AI Unreachable."


def generate_content_body(prompt: str, system_instruction: str) -> dict:
    """Build the generateContent request body."""
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "systemInstruction": {"parts": [{"text": system_instruction}]},
    }


def candidate_text(payload: dict) -> str | None:
    """Read ``candidates[0].content.parts[0].text`` if every level is present."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text or None


class GenerationClient:
    """Single-attempt wrapper around the text-generation endpoint.

    Never raises for transport or API problems: callers always get text back,
    either the model output or one of the fixed fallback sentences.

    Args:
        api_key: Generative Language API key.
        model: Model identifier.
        base_url: Base URL of the models collection.
        timeout: Request timeout in seconds.
        http_client: Optional shared client (tests inject a mock transport).
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash-preview-09-2025",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta/models",
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = http_client

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{self.model}:generateContent"

    async def generate(self, prompt: str, system_instruction: str) -> str:
        """Send one prompt and return the model text or a fallback sentence."""
        body = generate_content_body(prompt, system_instruction)
        try:
            if self._http is not None:
                response = await self._post(self._http, body)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await self._post(client, body)
            payload = response.json()
            if isinstance(payload, dict) and payload.get("error"):
                error = payload["error"]
                message = error.get("message") if isinstance(error, dict) else error
                raise RuntimeError(f"generation API error: {message}")
            response.raise_for_status()
        except Exception:
            logger.exception("generation_request_failed", model=self.model)
            return CONNECTION_FAILED

        text = candidate_text(payload) if isinstance(payload, dict) else None
        if text is None:
            logger.warning("generation_empty_candidates", model=self.model)
            return AI_UNREACHABLE
        logger.info("generation_complete", model=self.model, chars=len(text))
        return text

    async def _post(self, client: httpx.AsyncClient, body: dict) -> httpx.Response:
        return await client.post(
            self.endpoint,
            params={"key": self.api_key},
            json=body,
            headers={"Content-Type": "application/json"},
        )
