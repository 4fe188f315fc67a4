"""Configuration data models."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..utils.logging import resolve_level

DEFAULT_STORE_PATH = Path("~/.rubric_assessor/store.json")
DEFAULT_STORE_KEY = "rubricai_assessments_v1"


@dataclass
class StorageSettings:
    """Where saved assessments live."""

    path: Path = DEFAULT_STORE_PATH
    key: str = DEFAULT_STORE_KEY

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StorageSettings":
        return cls(
            path=Path(data.get("path", DEFAULT_STORE_PATH)),
            key=data.get("key", DEFAULT_STORE_KEY),
        )

    @property
    def resolved_path(self) -> Path:
        return self.path.expanduser()


@dataclass
class FeedbackSettings:
    """AI feedback generation settings."""

    model: str = "claude-sonnet-4-20250514"
    temperature: float = 0.4
    max_tokens: int = 1024
    api_key_env: str = "ANTHROPIC_API_KEY"
    api_key: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FeedbackSettings":
        settings = cls(
            model=data.get("model", "claude-sonnet-4-20250514"),
            temperature=float(data.get("temperature", 0.4)),
            max_tokens=int(data.get("max_tokens", 1024)),
            api_key_env=data.get("api_key_env", "ANTHROPIC_API_KEY"),
            api_key=data.get("api_key"),
        )
        if not 0.0 <= settings.temperature <= 1.0:
            raise ValueError(f"feedback.temperature must be between 0 and 1, got {settings.temperature}")
        if settings.max_tokens <= 0:
            raise ValueError(f"feedback.max_tokens must be positive, got {settings.max_tokens}")
        return settings


@dataclass
class AppConfig:
    """Complete application configuration."""

    storage: StorageSettings = field(default_factory=StorageSettings)
    feedback: FeedbackSettings = field(default_factory=FeedbackSettings)
    log_level: str = "WARNING"
    rubric_file: Path | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppConfig":
        rubric_file = data.get("rubric_file")
        log_level = str(data.get("log_level", "WARNING"))
        resolve_level(log_level)
        return cls(
            storage=StorageSettings.from_dict(data.get("storage") or {}),
            feedback=FeedbackSettings.from_dict(data.get("feedback") or {}),
            log_level=log_level,
            rubric_file=Path(rubric_file) if rubric_file else None,
        )
