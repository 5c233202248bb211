"""
Application configuration for SnapCloud.

One ``AppConfig`` is built at process start and passed to the worker,
the API gateway and the CLI:

1. ``.env`` is loaded with python-dotenv
2. environment variables fill each section
3. an optional YAML file overrides individual keys

YAML layout::

    temporal:
      host: temporal.internal
      task_queue: SNAPCLOUD_QUEUE
    provider:
      provider: openai
      model: gpt-4o-mini
    api:
      port: 3001
"""

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv

from .agents.config import ProviderConfig, api_key_from_env
from .orchestrator.temporal.config import TemporalConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/snapcloud.yaml"


@dataclass(frozen=True)
class ApiConfig:
    """HTTP facade configuration."""

    host: str = "0.0.0.0"
    port: int = 3001
    facade_timeout: float = 900.0  # seconds to block before answering 202

    @classmethod
    def from_env(cls) -> "ApiConfig":
        return cls(
            host=os.getenv("SNAPCLOUD_API_HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3001")),
            facade_timeout=float(os.getenv("SNAPCLOUD_FACADE_TIMEOUT", "900")),
        )


@dataclass(frozen=True)
class AppConfig:
    """Complete SnapCloud configuration."""

    temporal: TemporalConfig = field(default_factory=TemporalConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    api: ApiConfig = field(default_factory=ApiConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        return cls(
            temporal=TemporalConfig.from_env(),
            provider=ProviderConfig.from_env(),
            api=ApiConfig.from_env(),
        )

    @classmethod
    def load(
        cls,
        path: Optional[Union[str, Path]] = None,
        *,
        dotenv: bool = True,
    ) -> "AppConfig":
        """
        Build the configuration from .env, environment and YAML.

        Args:
            path: YAML file; defaults to SNAPCLOUD_CONFIG or config/snapcloud.yaml
            dotenv: Load a .env file first
        """
        if dotenv:
            load_dotenv()

        config = cls.from_env()

        config_path = Path(path or os.getenv("SNAPCLOUD_CONFIG", DEFAULT_CONFIG_PATH))
        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(f"Config file not found: {config_path}")
            return config

        with open(config_path) as f:
            file_config = yaml.safe_load(f) or {}

        if not isinstance(file_config, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")

        logger.info(f"Loaded config overrides from {config_path}")
        return config.with_overrides(file_config)

    def with_overrides(self, overrides: Dict[str, Any]) -> "AppConfig":
        """Return a copy with per-section keys replaced."""
        sections = {}
        for name in ("temporal", "provider", "api"):
            values = overrides.get(name)
            if not values:
                continue
            current = getattr(self, name)
            known = {f.name for f in dataclasses.fields(current)}
            unknown = set(values) - known
            if unknown:
                raise ValueError(f"Unknown {name} config keys: {sorted(unknown)}")
            values = dict(values)
            if "non_retryable_error_types" in values:
                values["non_retryable_error_types"] = tuple(values["non_retryable_error_types"])
            if name == "provider" and "provider" in values and "api_key" not in values:
                values["api_key"] = api_key_from_env(values["provider"])
            sections[name] = dataclasses.replace(current, **values)
        return dataclasses.replace(self, **sections)
