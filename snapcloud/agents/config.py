"""
Provider configuration for the SnapCloud collaborators.

Selects which generative-AI provider backs the Task Splitter, the
Artifact Generator and (optionally) the Auditor.
"""

import os
from dataclasses import dataclass
from typing import Optional

PROVIDERS = ("openai", "anthropic", "minimax", "static")
AUDITORS = ("rules", "llm")

_DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-latest",
    "minimax": "MiniMax-M1",
    "static": "static",
}

_API_KEY_VARS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "minimax": "MINIMAX_API_KEY",
}

MINIMAX_BASE_URL = "https://api.minimax.io/v1"


@dataclass(frozen=True)
class ProviderConfig:
    """LLM provider configuration."""

    provider: str = "static"
    model: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.2
    max_tokens: int = 4096
    request_timeout: float = 300.0  # seconds per collaborator call
    auditor: str = "rules"

    def __post_init__(self) -> None:
        if self.provider not in PROVIDERS:
            raise ValueError(f"Unknown LLM provider: {self.provider}. Supported: {PROVIDERS}")
        if self.auditor not in AUDITORS:
            raise ValueError(f"Unknown auditor: {self.auditor}. Supported: {AUDITORS}")

    @property
    def model_name(self) -> str:
        return self.model or _DEFAULT_MODELS[self.provider]

    @property
    def resolved_base_url(self) -> Optional[str]:
        if self.base_url:
            return self.base_url
        if self.provider == "minimax":
            return MINIMAX_BASE_URL
        return None

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        """Load configuration from environment variables."""
        provider = os.getenv("SNAPCLOUD_PROVIDER", "static").strip().lower()
        return cls(
            provider=provider,
            model=os.getenv("SNAPCLOUD_MODEL") or None,
            api_key=api_key_from_env(provider),
            base_url=os.getenv("SNAPCLOUD_BASE_URL") or None,
            temperature=float(os.getenv("SNAPCLOUD_TEMPERATURE", "0.2")),
            max_tokens=int(os.getenv("SNAPCLOUD_MAX_TOKENS", "4096")),
            request_timeout=float(os.getenv("SNAPCLOUD_REQUEST_TIMEOUT", "300")),
            auditor=os.getenv("SNAPCLOUD_AUDITOR", "rules").strip().lower(),
        )


def api_key_from_env(provider: str) -> Optional[str]:
    """API key for a provider from its conventional environment variable."""
    key_var = _API_KEY_VARS.get(provider)
    return os.getenv(key_var) if key_var else None
