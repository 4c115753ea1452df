"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


# (yaml section, yaml key) -> Settings field
_YAML_FIELDS: dict[tuple[str, str], str] = {
    ("server", "host"): "host",
    ("server", "port"): "port",
    ("server", "tick_interval_seconds"): "tick_interval_seconds",
    ("gemini", "model"): "gemini_model",
    ("gemini", "base_url"): "gemini_base_url",
    ("gemini", "timeout_seconds"): "gemini_timeout_seconds",
    ("discipline", "default_score"): "default_discipline_score",
    ("discipline", "focus_breach_penalty"): "focus_breach_penalty",
    ("discipline", "test_breach_penalty"): "test_breach_penalty",
    ("discipline", "early_exit_penalty"): "early_exit_penalty",
    ("discipline", "early_exit_grace_seconds"): "early_exit_grace_seconds",
    ("discipline", "clean_session_reward"): "clean_session_reward",
    ("study", "target_hours"): "target_hours",
    ("study", "default_weak_subjects"): "default_weak_subjects",
    ("study", "mock_test_duration_seconds"): "mock_test_duration_seconds",
    ("study", "mock_test_question_count"): "mock_test_question_count",
    ("study", "material_content_limit"): "material_content_limit",
    ("study", "vocab_batch_size"): "vocab_batch_size",
    ("study", "recent_sessions_limit"): "recent_sessions_limit",
    ("storage", "data_dir"): "data_dir_override",
}


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        for (section, key), field_name in _YAML_FIELDS.items():
            section_data = data.get(section)
            if isinstance(section_data, dict):
                flattened[field_name] = section_data.get(key)

        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Gemini
    gemini_api_key: str = Field(default="", description="Generative Language API key")
    gemini_model: str = Field(default="gemini-2.5-flash-preview-09-2025")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/models"
    )
    gemini_timeout_seconds: float = Field(default=60.0)

    # Authentication (optional: None disables auth)
    app_secret: str | None = Field(default=None)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    tick_interval_seconds: float = Field(default=1.0)

    # Discipline scoring
    default_discipline_score: int = Field(default=85)
    focus_breach_penalty: int = Field(default=2)
    test_breach_penalty: int = Field(default=5)
    early_exit_penalty: int = Field(default=5)
    early_exit_grace_seconds: int = Field(default=60)
    clean_session_reward: int = Field(default=1)

    # Study content
    target_hours: int = Field(default=7)
    default_weak_subjects: list[str] = Field(
        default_factory=lambda: ["Quant Geometry", "English Vocab"]
    )
    mock_test_duration_seconds: int = Field(default=600)
    mock_test_question_count: int = Field(default=10)
    material_content_limit: int = Field(default=20000)
    vocab_batch_size: int = Field(default=20)
    recent_sessions_limit: int = Field(default=10)

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)
    data_dir_override: Path | None = Field(default=None)

    @property
    def data_dir(self) -> Path:
        d = self.data_dir_override or self.project_root / "data"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def store_dir(self) -> Path:
        """Root of the per-user document store."""
        d = self.data_dir / "store"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def local_dir(self) -> Path:
        """Device-local data that is never synced (vocabulary history)."""
        d = self.data_dir / "local"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def target_minutes(self) -> int:
        return self.target_hours * 60

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()
