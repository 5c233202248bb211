"""
Tests for Temporal Workflows

Uses Temporal's local test environment; the collaborators are in-memory
fakes, so no model provider is needed.
"""

import asyncio
import uuid

import pytest

from temporalio.contrib.pydantic import pydantic_data_converter
from temporalio.testing import WorkflowEnvironment

from snapcloud.orchestrator.errors import (
    DeadlineExceeded,
    ExecutionNotFound,
    ExecutionPending,
    GenerationError,
    SplitError,
    ValidationError,
)
from snapcloud.orchestrator.models import ExecutionPhase, ExecutionStatus
from snapcloud.orchestrator.temporal import (
    CloudBlueprintWorkflow,
    TemporalClient,
    TemporalConfig,
    create_worker,
)


@pytest.fixture
async def workflow_env():
    """Create Temporal test environment."""
    async with await WorkflowEnvironment.start_local(data_converter=pydantic_data_converter) as env:
        yield env


@pytest.fixture
def temporal_config():
    """Fast retries on a task queue private to the test."""
    return TemporalConfig(
        task_queue=f"snapcloud-test-{uuid.uuid4().hex[:8]}",
        execution_deadline=60.0,
        activity_start_to_close_timeout=10.0,
        activity_heartbeat_timeout=5.0,
        activity_max_retries=3,
        activity_initial_interval=0.1,
        activity_max_interval=0.2,
    )


@pytest.fixture
async def worker(workflow_env, temporal_config, collaborators):
    """Create worker with workflows and activities."""
    async with create_worker(
        workflow_env.client,
        temporal_config,
        collaborators,
        collaborator_timeout=5.0,
    ):
        yield


@pytest.fixture
def client(workflow_env, temporal_config):
    return TemporalClient(temporal_config, client=workflow_env.client)


@pytest.mark.asyncio
async def test_generation_completes(client, worker, fake_splitter, fake_generator):
    """Requirement is split, artifacts generated, ids prefixed."""
    result = await client.generate("Host a static website with a CDN")

    assert result.workflow_id.startswith("snapcloud-")
    assert result.tasks.descriptions() == fake_splitter.tasks
    assert result.bundle.diagram_mermaid.startswith("graph TD")
    assert "AWSTemplateFormatVersion" in result.bundle.cfn_template
    assert result.bundle.cost_estimation.total_monthly_cost == 2.3
    assert result.degraded is False
    assert result.audit is None
    assert fake_generator.calls == [fake_splitter.tasks]


@pytest.mark.asyncio
async def test_unparseable_split_degrades(client, worker, fake_splitter, fake_generator):
    """Unusable splitter output continues with the requirement as the only task."""
    fake_splitter.error = SplitError("answer held no task list", unparseable=True)

    result = await client.generate("simple static website")

    assert result.tasks.descriptions() == ["simple static website"]
    assert result.degraded is True
    assert result.warnings[0].startswith("task splitting degraded")
    assert fake_generator.calls == [["simple static website"]]


@pytest.mark.asyncio
async def test_transient_split_failure_is_retried(client, worker, fake_splitter):
    fake_splitter.failures = 1

    result = await client.generate("simple static website")

    assert len(fake_splitter.calls) == 2
    assert result.degraded is False


@pytest.mark.asyncio
async def test_split_timeout_fails_execution(workflow_env, temporal_config, collaborators, client, fake_splitter, fake_generator):
    """A splitter that never answers in time fails with SplitError after retries."""
    fake_splitter.delay = 2.0

    async with create_worker(
        workflow_env.client,
        temporal_config,
        collaborators,
        collaborator_timeout=0.1,
    ):
        handle = await client.start_generation("simple static website")
        with pytest.raises(SplitError) as exc_info:
            await client.wait_for_result(handle)

    assert exc_info.value.workflow_id == handle.id
    assert len(fake_splitter.calls) == temporal_config.activity_max_retries
    assert fake_generator.calls == []


@pytest.mark.asyncio
async def test_missing_template_fails_execution(client, worker, fake_generator):
    fake_generator.artifacts.template = ""

    handle = await client.start_generation("simple static website")
    with pytest.raises(GenerationError) as exc_info:
        await client.wait_for_result(handle)

    assert exc_info.value.classification == "GenerationError"
    assert exc_info.value.workflow_id == handle.id

    progress = await client.get_progress(handle.id)
    assert progress.phase == ExecutionPhase.FAILED
    assert progress.status == ExecutionStatus.FAILED
    assert progress.error.startswith("GenerationError")
    assert progress.completed_steps == ["splitting_tasks"]


@pytest.mark.asyncio
async def test_audit_report_attached(client, worker, fake_auditor):
    result = await client.generate("simple static website", audit=True)

    assert result.audit is not None
    assert result.audit.report == "No findings."
    assert len(fake_auditor.calls) == 1


@pytest.mark.asyncio
async def test_audit_failure_does_not_fail_execution(client, worker, fake_auditor):
    """The audit is best-effort."""
    fake_auditor.error = RuntimeError("auditor crashed")

    result = await client.generate("simple static website", audit=True)

    assert result.audit is None
    assert result.audit_warning
    assert any(warning.startswith("audit skipped") for warning in result.warnings)
    assert result.bundle.cfn_template


@pytest.mark.asyncio
async def test_identical_requirements_get_distinct_executions(client, worker, fake_splitter):
    results = await asyncio.gather(
        client.generate("simple static website"),
        client.generate("simple static website"),
    )

    assert results[0].workflow_id != results[1].workflow_id
    assert results[0].bundle == results[1].bundle
    assert len(fake_splitter.calls) == 2


@pytest.mark.asyncio
async def test_workflow_progress_query(client, worker):
    """Test querying workflow progress."""
    handle = await client.start_generation("simple static website", audit=True)

    # Wait for completion
    await handle.result()

    progress = await handle.query(CloudBlueprintWorkflow.progress)
    assert progress.workflow_id == handle.id
    assert progress.phase == ExecutionPhase.COMPLETED
    assert progress.status == ExecutionStatus.COMPLETED
    assert progress.completed_steps == ["splitting_tasks", "generating_artifacts", "auditing"]
    assert progress.started_at is not None
    assert progress.error is None


@pytest.mark.asyncio
async def test_facade_timeout_leaves_execution_running(client, worker, fake_splitter):
    """Giving up the wait does not cancel the execution."""
    fake_splitter.delay = 1.0

    handle = await client.start_generation("simple static website")
    with pytest.raises(ExecutionPending) as exc_info:
        await client.wait_for_result(handle, timeout=0.1)
    assert exc_info.value.workflow_id == handle.id

    result = await client.wait_for_result(handle)
    assert result.workflow_id == handle.id


@pytest.mark.asyncio
async def test_deadline_exceeded(workflow_env, collaborators, fake_splitter, fake_generator):
    """The aggregate deadline ends the execution even mid-activity."""
    config = TemporalConfig(
        task_queue=f"snapcloud-test-{uuid.uuid4().hex[:8]}",
        execution_deadline=1.0,
        activity_start_to_close_timeout=10.0,
        activity_heartbeat_timeout=5.0,
        activity_initial_interval=0.1,
    )
    fake_splitter.delay = 3.0
    client = TemporalClient(config, client=workflow_env.client)

    async with create_worker(workflow_env.client, config, collaborators):
        handle = await client.start_generation("simple static website")
        with pytest.raises(DeadlineExceeded) as exc_info:
            await client.wait_for_result(handle)

    assert exc_info.value.workflow_id == handle.id
    assert fake_generator.calls == []


@pytest.mark.asyncio
async def test_custom_workflow_id_cannot_be_reused(client, worker):
    handle = await client.start_generation("simple static website", workflow_id="snapcloud-fixed-id")
    await client.wait_for_result(handle)

    with pytest.raises(ValidationError):
        await client.start_generation("simple static website", workflow_id="snapcloud-fixed-id")


@pytest.mark.asyncio
async def test_status_and_result_of_finished_execution(client, worker):
    handle = await client.start_generation("simple static website")
    await client.wait_for_result(handle)

    status = await client.get_workflow_status(handle.id)
    assert status["workflow_id"] == handle.id
    assert status["status"] == "COMPLETED"
    assert status["close_time"] is not None

    result = await client.get_result(handle.id)
    assert result.workflow_id == handle.id


@pytest.mark.asyncio
async def test_unknown_execution_not_found(client, worker):
    with pytest.raises(ExecutionNotFound):
        await client.get_workflow_status("snapcloud-does-not-exist")
