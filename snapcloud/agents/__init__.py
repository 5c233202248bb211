"""
SnapCloud collaborators.

The capabilities the orchestration workflow delegates to:
- TaskSplitter: requirement -> ordered tasks
- ArtifactGenerator: tasks -> diagram, template, cost estimate
- ArtifactAuditor: template -> audit report

One implementation per generative-AI provider plus offline versions.
All response parsing stays inside these implementations.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .artifact_generator import LLMArtifactGenerator, StaticArtifactGenerator
from .auditor import LLMAuditor, RuleBasedAuditor
from .base import (
    ArtifactAuditor,
    ArtifactGenerator,
    CompletionProvider,
    GeneratedArtifacts,
    TaskSplitter,
)
from .config import ProviderConfig
from .providers import AnthropicProvider, OpenAIProvider, build_provider
from .task_splitter import HeuristicTaskSplitter, LLMTaskSplitter

logger = logging.getLogger(__name__)


@dataclass
class Collaborators:
    """Everything the activities need, built once per worker."""

    splitter: TaskSplitter
    generator: ArtifactGenerator
    auditor: ArtifactAuditor


def build_collaborators(
    config: ProviderConfig,
    provider: Optional[CompletionProvider] = None,
) -> Collaborators:
    """
    Select collaborator implementations for a provider configuration.

    Args:
        config: Provider configuration
        provider: Pre-built completion provider (skips SDK client creation)
    """
    if config.provider == "static":
        if config.auditor == "llm":
            raise ValueError("LLM auditor needs a real provider, not 'static'")
        logger.warning(
            "Provider 'static' selected: every requirement gets the same reference blueprint"
        )
        return Collaborators(
            splitter=HeuristicTaskSplitter(),
            generator=StaticArtifactGenerator(),
            auditor=RuleBasedAuditor(),
        )

    provider = provider or build_provider(config)
    auditor = LLMAuditor(provider) if config.auditor == "llm" else RuleBasedAuditor()
    return Collaborators(
        splitter=LLMTaskSplitter(provider),
        generator=LLMArtifactGenerator(provider),
        auditor=auditor,
    )


__all__ = [
    "ArtifactAuditor",
    "ArtifactGenerator",
    "CompletionProvider",
    "GeneratedArtifacts",
    "TaskSplitter",
    "ProviderConfig",
    "OpenAIProvider",
    "AnthropicProvider",
    "build_provider",
    "LLMTaskSplitter",
    "HeuristicTaskSplitter",
    "LLMArtifactGenerator",
    "StaticArtifactGenerator",
    "LLMAuditor",
    "RuleBasedAuditor",
    "Collaborators",
    "build_collaborators",
]
