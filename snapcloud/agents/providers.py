"""
Completion providers — thin async wrappers over provider SDKs.

- OpenAIProvider: OpenAI, or any OpenAI-compatible endpoint (MiniMax)
- AnthropicProvider: Anthropic Messages API

SDK exceptions are translated to ProviderError; nothing else leaks out.
"""

import logging
import time
from typing import Optional

from snapcloud.orchestrator.errors import ProviderError

from .base import CompletionProvider
from .config import ProviderConfig

logger = logging.getLogger(__name__)


class OpenAIProvider(CompletionProvider):
    """Chat completions through the OpenAI SDK."""

    name = "openai"

    def __init__(self, config: ProviderConfig, client=None):
        self.model = config.model_name
        self.temperature = config.temperature
        self.max_tokens = config.max_tokens

        if client is None:
            if not config.api_key:
                raise ValueError(f"API key not set for provider '{config.provider}'")

            from openai import AsyncOpenAI
            client = AsyncOpenAI(
                api_key=config.api_key,
                base_url=config.resolved_base_url,
                timeout=config.request_timeout,
                max_retries=0,  # retries belong to Temporal
            )
        self._client = client
        self.name = config.provider

        logger.info(f"OpenAI-compatible provider initialized: provider={self.name}, model={self.model}")

    async def complete(self, prompt: str, *, system: Optional[str] = None) -> str:
        from openai import OpenAIError

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        start_time = time.time()
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as e:
            raise ProviderError(f"{self.name} request failed: {e}") from e

        if not response.choices:
            raise ProviderError(f"{self.name} returned no choices")

        text = response.choices[0].message.content or ""
        logger.debug(f"{self.name}/{self.model} answered in {time.time() - start_time:.1f}s")
        return text


class AnthropicProvider(CompletionProvider):
    """Messages API through the Anthropic SDK."""

    name = "anthropic"

    def __init__(self, config: ProviderConfig, client=None):
        self.model = config.model_name
        self.temperature = config.temperature
        self.max_tokens = config.max_tokens

        if client is None:
            if not config.api_key:
                raise ValueError("ANTHROPIC_API_KEY environment variable not set")

            from anthropic import AsyncAnthropic
            client = AsyncAnthropic(
                api_key=config.api_key,
                timeout=config.request_timeout,
                max_retries=0,
            )
        self._client = client

        logger.info(f"Anthropic provider initialized: model={self.model}")

    async def complete(self, prompt: str, *, system: Optional[str] = None) -> str:
        from anthropic import AnthropicError

        kwargs = {}
        if system:
            kwargs["system"] = system

        start_time = time.time()
        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[{"role": "user", "content": prompt}],
                **kwargs,
            )
        except AnthropicError as e:
            raise ProviderError(f"anthropic request failed: {e}") from e

        text = "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )
        logger.debug(f"anthropic/{self.model} answered in {time.time() - start_time:.1f}s")
        return text


def build_provider(config: ProviderConfig) -> CompletionProvider:
    """Create the completion provider named in the config."""
    if config.provider in ("openai", "minimax"):
        return OpenAIProvider(config)
    if config.provider == "anthropic":
        return AnthropicProvider(config)
    raise ValueError(f"Provider '{config.provider}' has no completion backend")
