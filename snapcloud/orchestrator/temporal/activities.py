"""
Temporal Activities for the SnapCloud Orchestrator

Activities are the only units of external work the workflow may delegate:
- split_tasks: requirement -> TaskList
- generate_artifacts: TaskList -> ArtifactBundle
- audit_artifacts: ArtifactBundle -> AuditReport (optional step)

Activities run at-least-once: a worker crash after a collaborator call
succeeded but before Temporal recorded it repeats the call. The
collaborators are therefore required to be side-effect free.

Architecture:
- _impl functions: Pure business logic (testable without Temporal)
- GenerationActivities: Temporal wrappers with heartbeats, holding the
  collaborators built once per worker
"""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

import pydantic
from temporalio import activity

from snapcloud.agents import ArtifactAuditor, ArtifactGenerator, Collaborators, TaskSplitter

from ..errors import AuditError, GenerationError, SplitError, ValidationError
from ..models import ArtifactBundle, AuditReport, CostEstimation, TaskList

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Pure Implementation Functions (for testing)
# =============================================================================

async def _call(awaitable: Awaitable[T], timeout: Optional[float]) -> T:
    if timeout is None:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout=timeout)


async def _split_tasks_impl(
    splitter: TaskSplitter,
    requirement: str,
    *,
    degrade_on_failure: bool = True,
    timeout: Optional[float] = None,
) -> TaskList:
    """
    Pure implementation of split_tasks.

    Args:
        splitter: Task Splitter collaborator
        requirement: Client requirement text
        degrade_on_failure: Fall back to ``[requirement]`` when the splitter
            answers with nothing usable
        timeout: Seconds allowed for the collaborator call

    Returns:
        Ordered, non-empty TaskList (``degraded=True`` for the fallback)

    Raises:
        ValidationError: empty requirement
        SplitError: collaborator unreachable or timed out, or unusable
            output with degrading disabled
    """
    if not requirement or not requirement.strip():
        raise ValidationError("Requirement is empty")

    try:
        descriptions = await _call(splitter.split(requirement), timeout)
    except asyncio.TimeoutError as e:
        raise SplitError(f"Task splitter timed out after {timeout}s") from e
    except SplitError as e:
        if e.unparseable and degrade_on_failure:
            return _degraded_task_list(requirement, e.message)
        raise
    except Exception as e:
        raise SplitError(f"Task splitter failed: {e}") from e

    if not isinstance(descriptions, list):
        descriptions = []
    cleaned = [str(item).strip() for item in descriptions if str(item).strip()]

    if not cleaned:
        reason = "Task splitter returned no tasks"
        if degrade_on_failure:
            return _degraded_task_list(requirement, reason)
        raise SplitError(reason, unparseable=True)

    return TaskList.from_descriptions(cleaned)


def _degraded_task_list(requirement: str, reason: str) -> TaskList:
    logger.warning(f"Task splitting degraded to a single task: {reason}")
    return TaskList.fallback(requirement, reason)


async def _generate_artifacts_impl(
    generator: ArtifactGenerator,
    tasks: TaskList,
    *,
    timeout: Optional[float] = None,
) -> ArtifactBundle:
    """
    Pure implementation of generate_artifacts.

    Task descriptions are handed to the generator in TaskList order.
    The bundle carries no timestamps, so the same collaborator answer
    always yields an equal bundle.

    Raises:
        GenerationError: collaborator unreachable or timed out, or diagram
            or template missing
    """
    try:
        artifacts = await _call(generator.generate(tasks.descriptions()), timeout)
    except asyncio.TimeoutError as e:
        raise GenerationError(f"Artifact generator timed out after {timeout}s") from e
    except GenerationError:
        raise
    except Exception as e:
        raise GenerationError(f"Artifact generator failed: {e}") from e

    warnings = list(artifacts.warnings)
    cost_json = artifacts.cost_json
    if not isinstance(cost_json, dict):
        logger.warning("Cost estimation degraded: JSON is not an object")
        warnings.append("cost estimation JSON is not an object")
        cost_json = {}

    try:
        return ArtifactBundle(
            diagram_mermaid=artifacts.diagram or "",
            cfn_template=artifacts.template or "",
            cost_estimation=CostEstimation(
                breakdown=cost_json,
                table=artifacts.cost_table or "",
            ),
            warnings=warnings,
        )
    except pydantic.ValidationError as e:
        missing = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        raise GenerationError(f"Generated artifacts incomplete: {', '.join(missing)}") from e


async def _audit_artifacts_impl(
    auditor: ArtifactAuditor,
    bundle: ArtifactBundle,
    *,
    timeout: Optional[float] = None,
) -> AuditReport:
    """
    Pure implementation of audit_artifacts.

    Raises:
        AuditError: on any auditor failure
    """
    try:
        return await _call(auditor.audit(bundle.cfn_template), timeout)
    except asyncio.TimeoutError as e:
        raise AuditError(f"Auditor timed out after {timeout}s") from e
    except AuditError:
        raise
    except Exception as e:
        raise AuditError(f"Auditor failed: {e}") from e


# =============================================================================
# Temporal Activity Wrappers (with heartbeats)
# =============================================================================

async def _heartbeating(awaitable: Awaitable[T]) -> T:
    """
    Await ``awaitable`` while heartbeating at a third of the heartbeat timeout.

    Without a heartbeat timeout this is a plain await.
    """
    heartbeat_timeout = activity.info().heartbeat_timeout
    if not heartbeat_timeout:
        return await awaitable

    interval = max(heartbeat_timeout.total_seconds() / 3, 0.1)
    task = asyncio.ensure_future(awaitable)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=interval)
            if done:
                return task.result()
            activity.heartbeat()
    finally:
        if not task.done():
            task.cancel()


class GenerationActivities:
    """
    Activity host for the generation pipeline.

    One instance per worker; its bound methods are registered as
    activities. Collaborators and policy are injected here instead of
    being read from the environment.
    """

    def __init__(
        self,
        collaborators: Collaborators,
        *,
        degrade_on_split_failure: bool = True,
        collaborator_timeout: Optional[float] = None,
    ):
        self.collaborators = collaborators
        self.degrade_on_split_failure = degrade_on_split_failure
        self.collaborator_timeout = collaborator_timeout

    @activity.defn(name="split_tasks")
    async def split_tasks(self, requirement: str) -> TaskList:
        """Split a requirement into an ordered TaskList."""
        activity.heartbeat()
        activity.logger.info(f"Splitting requirement (attempt {activity.info().attempt})")
        tasks = await _heartbeating(
            _split_tasks_impl(
                self.collaborators.splitter,
                requirement,
                degrade_on_failure=self.degrade_on_split_failure,
                timeout=self.collaborator_timeout,
            )
        )
        activity.logger.info(f"Requirement split into {len(tasks)} tasks (degraded={tasks.degraded})")
        return tasks

    @activity.defn(name="generate_artifacts")
    async def generate_artifacts(self, tasks: TaskList) -> ArtifactBundle:
        """Generate diagram, template and cost estimate for a TaskList."""
        activity.heartbeat()
        activity.logger.info(
            f"Generating artifacts for {len(tasks)} tasks (attempt {activity.info().attempt})"
        )
        bundle = await _heartbeating(
            _generate_artifacts_impl(
                self.collaborators.generator,
                tasks,
                timeout=self.collaborator_timeout,
            )
        )
        if bundle.warnings:
            activity.logger.warning(f"Artifacts generated with warnings: {bundle.warnings}")
        return bundle

    @activity.defn(name="audit_artifacts")
    async def audit_artifacts(self, bundle: ArtifactBundle) -> AuditReport:
        """Audit the generated template."""
        activity.heartbeat()
        return await _heartbeating(
            _audit_artifacts_impl(
                self.collaborators.auditor,
                bundle,
                timeout=self.collaborator_timeout,
            )
        )

    def as_list(self) -> list:
        """Bound activity methods, for Worker registration."""
        return [self.split_tasks, self.generate_artifacts, self.audit_artifacts]
