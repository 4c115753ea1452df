"""Shared service objects for the REST and WebSocket layers."""

from functools import lru_cache

from study_command_center.config import Settings, get_settings
from study_command_center.generation.client import GenerationClient
from study_command_center.storage.documents import DocumentStore


@lru_cache
def get_store() -> DocumentStore:
    """Process-wide store so subscriptions see writes from every route."""
    return DocumentStore(get_settings().store_dir)


def build_generator(settings: Settings) -> GenerationClient:
    return GenerationClient(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
        timeout=settings.gemini_timeout_seconds,
    )


def get_generator() -> GenerationClient:
    return build_generator(get_settings())
