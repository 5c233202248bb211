"""
Shared fixtures: in-memory collaborators and a scripted completion provider.

The fakes record every call so tests can assert on ordering and on how
many times Temporal retried an activity.
"""

import asyncio
from typing import List, Optional

import pytest

from snapcloud.agents import (
    ArtifactAuditor,
    ArtifactGenerator,
    Collaborators,
    CompletionProvider,
    GeneratedArtifacts,
    TaskSplitter,
)
from snapcloud.orchestrator.errors import ProviderError, SplitError
from snapcloud.orchestrator.models import AuditReport


DIAGRAM = 'graph TD\n    A["Users"] --> B["CloudFront"]\n    B --> C["S3 Bucket"]'
TEMPLATE = """AWSTemplateFormatVersion: '2010-09-09'
Resources:
  SiteBucket:
    Type: AWS::S3::Bucket"""
COST_TABLE = "| Service | Monthly Cost |\n|---------|--------------|\n| S3 | $2.30 |"


# =============================================================================
# Fake collaborators
# =============================================================================

class FakeSplitter(TaskSplitter):
    """Returns ``tasks``; fails the first ``failures`` calls, or every call with ``error``."""

    def __init__(self, tasks: Optional[List[str]] = None):
        self.tasks = tasks if tasks is not None else [
            "Create an S3 bucket for static assets",
            "Put a CloudFront distribution in front of the bucket",
        ]
        self.error: Optional[Exception] = None
        self.failures = 0
        self.delay = 0.0
        self.calls: List[str] = []

    async def split(self, requirement: str) -> List[str]:
        self.calls.append(requirement)
        if self.delay:
            await asyncio.sleep(self.delay)
        if len(self.calls) <= self.failures:
            raise SplitError("Task splitter temporarily unreachable")
        if self.error is not None:
            raise self.error
        return list(self.tasks)


class FakeGenerator(ArtifactGenerator):
    def __init__(self):
        self.artifacts = GeneratedArtifacts(
            diagram=DIAGRAM,
            template=TEMPLATE,
            cost_json={"totalMonthlyCost": 2.3, "currency": "USD"},
            cost_table=COST_TABLE,
        )
        self.error: Optional[Exception] = None
        self.delay = 0.0
        self.calls: List[List[str]] = []

    async def generate(self, tasks: List[str]) -> GeneratedArtifacts:
        self.calls.append(list(tasks))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return GeneratedArtifacts(
            diagram=self.artifacts.diagram,
            template=self.artifacts.template,
            cost_json=self.artifacts.cost_json,
            cost_table=self.artifacts.cost_table,
            warnings=list(self.artifacts.warnings),
        )


class FakeAuditor(ArtifactAuditor):
    def __init__(self):
        self.error: Optional[Exception] = None
        self.calls: List[str] = []

    async def audit(self, template: str) -> AuditReport:
        self.calls.append(template)
        if self.error is not None:
            raise self.error
        return AuditReport(report="No findings.")


class ScriptedProvider(CompletionProvider):
    """Completion provider answering with a fixed text or raising ProviderError."""

    name = "scripted"

    def __init__(self, answer: str = "", error: Optional[str] = None):
        self.answer = answer
        self.error = error
        self.prompts: List[str] = []
        self.systems: List[Optional[str]] = []

    async def complete(self, prompt: str, *, system: Optional[str] = None) -> str:
        self.prompts.append(prompt)
        self.systems.append(system)
        if self.error is not None:
            raise ProviderError(self.error)
        return self.answer


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_splitter():
    return FakeSplitter()


@pytest.fixture
def fake_generator():
    return FakeGenerator()


@pytest.fixture
def fake_auditor():
    return FakeAuditor()


@pytest.fixture
def collaborators(fake_splitter, fake_generator, fake_auditor):
    """Collaborators wired to the fakes above."""
    return Collaborators(
        splitter=fake_splitter,
        generator=fake_generator,
        auditor=fake_auditor,
    )


@pytest.fixture
def make_provider():
    """Factory for ScriptedProvider instances."""
    return ScriptedProvider
