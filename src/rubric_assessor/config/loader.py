"""Configuration loader for application settings."""

import os
from pathlib import Path
from typing import Any

import yaml

from .models import AppConfig

STORE_ENV = "RUBRIC_ASSESSOR_STORE"
MODEL_ENV = "RUBRIC_ASSESSOR_MODEL"


class ConfigLoader:
    """Loads application configuration from YAML plus environment overrides."""

    def __init__(self, config_dir: Path | None = None):
        """Initialize the config loader.

        Args:
            config_dir: Directory relative config paths are resolved against.
                Defaults to the current directory.
        """
        self.config_dir = config_dir or Path.cwd()

    def load(self, config_file: str | Path | None = None) -> AppConfig:
        """Load the application configuration.

        Args:
            config_file: Path to a YAML config file. ``None`` uses defaults.

        Returns:
            AppConfig with environment overrides applied

        Raises:
            FileNotFoundError: If ``config_file`` does not exist
            ValueError: If the file does not hold a mapping or has bad values
        """
        data: dict[str, Any] = {}
        if config_file is not None:
            path = self._resolve_path(config_file)
            data = self._load_yaml(path)

        config = AppConfig.from_dict(data)
        self._apply_env(config)
        return config

    def _apply_env(self, config: AppConfig) -> None:
        store_path = os.getenv(STORE_ENV)
        if store_path:
            config.storage.path = Path(store_path)

        model = os.getenv(MODEL_ENV)
        if model:
            config.feedback.model = model

    def _resolve_path(self, file_path: str | Path) -> Path:
        """Resolve a config file path."""
        path = Path(file_path).expanduser()
        if not path.is_absolute():
            path = self.config_dir / path
        return path

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        """Load and parse a YAML file."""
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {path}")
        return data
