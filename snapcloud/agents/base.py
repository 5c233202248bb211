"""
Collaborator interfaces for SnapCloud.

The workflow depends on three capabilities only:
- TaskSplitter: requirement -> ordered task descriptions
- ArtifactGenerator: tasks -> diagram, template, cost estimate
- ArtifactAuditor: template -> audit report

Implementations must be safe to call more than once with the same input:
activities run at-least-once, so a worker crash after a successful call
but before Temporal records it repeats the call.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from snapcloud.orchestrator.models import AuditReport


@dataclass
class GeneratedArtifacts:
    """Raw output of an ArtifactGenerator, before bundle validation."""

    diagram: str
    template: str
    cost_json: Dict[str, Any] = field(default_factory=dict)
    cost_table: str = ""
    warnings: List[str] = field(default_factory=list)


class CompletionProvider(ABC):
    """A generative-AI text completion backend."""

    name: str = "provider"

    @abstractmethod
    async def complete(self, prompt: str, *, system: Optional[str] = None) -> str:
        """Return the model's text answer. Raises ProviderError on failure."""


class TaskSplitter(ABC):
    """Turns one requirement into an ordered list of atomic tasks."""

    @abstractmethod
    async def split(self, requirement: str) -> List[str]:
        """
        Split a requirement into tasks.

        Raises:
            SplitError: collaborator unreachable, or ``unparseable=True``
                when its answer held no usable task list
        """


class ArtifactGenerator(ABC):
    """Turns an ordered task list into generated deliverables."""

    @abstractmethod
    async def generate(self, tasks: List[str]) -> GeneratedArtifacts:
        """
        Generate diagram, template and cost estimate.

        Raises:
            GenerationError: collaborator unreachable or no diagram/template
        """


class ArtifactAuditor(ABC):
    """Reviews a generated CloudFormation template."""

    @abstractmethod
    async def audit(self, template: str) -> AuditReport:
        """Raises AuditError on failure."""
