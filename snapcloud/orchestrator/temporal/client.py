"""
Temporal Client for the SnapCloud Orchestrator

Starts generation executions and turns their terminal state into either
a GenerationResult or a typed SnapCloudError.
"""

import asyncio
import logging
import uuid
from datetime import timedelta
from typing import Any, Dict, Optional

from temporalio.client import (
    Client,
    WorkflowExecutionStatus,
    WorkflowFailureError,
    WorkflowHandle,
)
from temporalio.common import WorkflowIDReusePolicy
from temporalio.exceptions import ApplicationError, WorkflowAlreadyStartedError
from temporalio.exceptions import TimeoutError as WorkflowTimeoutError
from temporalio.service import RPCError, RPCStatusCode

from ..errors import (
    DeadlineExceeded,
    EngineUnavailable,
    ExecutionNotFound,
    ExecutionPending,
    SnapCloudError,
    ValidationError,
    WorkflowFailed,
    error_for_classification,
)
from ..models import ExecutionProgress, GenerationInput, GenerationResult
from .config import TemporalConfig
from .worker import connect_client
from .workflows import CloudBlueprintWorkflow

logger = logging.getLogger(__name__)


class TemporalClient:
    """
    Temporal client wrapper for SnapCloud.

    Usage:
        async with TemporalClient(config) as client:
            handle = await client.start_generation("simple static website")
            result = await client.wait_for_result(handle, timeout=60)
    """

    def __init__(self, config: TemporalConfig, client: Optional[Client] = None):
        self.config = config
        self._client: Optional[Client] = client

    async def connect(self) -> "TemporalClient":
        """
        Connect to Temporal server.

        Raises:
            EngineUnavailable: server unreachable
        """
        if self._client is not None:
            return self
        try:
            self._client = await connect_client(self.config)
        except (RPCError, RuntimeError, OSError) as e:
            raise EngineUnavailable(f"Temporal unreachable at {self.config.target}: {e}") from e
        return self

    async def close(self) -> None:
        """Close connection (no-op, the SDK client handles cleanup)."""
        pass

    async def __aenter__(self) -> "TemporalClient":
        return await self.connect()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def connected(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> Client:
        """Get underlying Temporal client."""
        if self._client is None:
            raise RuntimeError("Client not connected. Use 'async with TemporalClient()' or call connect()")
        return self._client

    def new_workflow_id(self) -> str:
        """Unique execution id; never derived from the requirement text."""
        return f"{self.config.workflow_id_prefix}-{uuid.uuid4().hex}"

    def build_input(
        self,
        requirement: str,
        *,
        audit: Optional[bool] = None,
    ) -> GenerationInput:
        return GenerationInput(
            requirement=requirement,
            audit_enabled=self.config.audit_enabled if audit is None else audit,
            deadline_seconds=self.config.execution_deadline,
            options=self.config.activity_options(),
        )

    async def start_generation(
        self,
        requirement: str,
        *,
        audit: Optional[bool] = None,
        workflow_id: Optional[str] = None,
    ) -> WorkflowHandle:
        """
        Start one generation execution.

        Args:
            requirement: Client requirement text
            audit: Run the audit step (defaults to config)
            workflow_id: Custom execution id (defaults to a fresh unique id)

        Returns:
            WorkflowHandle for tracking the execution

        Raises:
            EngineUnavailable: the execution could not be queued
        """
        request = self.build_input(requirement, audit=audit)
        wf_id = workflow_id or self.new_workflow_id()

        try:
            handle = await self.client.start_workflow(
                CloudBlueprintWorkflow.run,
                request,
                id=wf_id,
                task_queue=self.config.task_queue,
                execution_timeout=timedelta(seconds=self.config.execution_timeout),
                id_reuse_policy=WorkflowIDReusePolicy.REJECT_DUPLICATE,
            )
        except WorkflowAlreadyStartedError as e:
            raise ValidationError(f"Execution id already used: {wf_id}", workflow_id=wf_id) from e
        except RPCError as e:
            raise EngineUnavailable(f"Could not start execution: {e.message}", workflow_id=wf_id) from e

        logger.info(f"Started execution {wf_id} on queue '{self.config.task_queue}'")
        return handle

    async def wait_for_result(
        self,
        handle: WorkflowHandle,
        timeout: Optional[float] = None,
    ) -> GenerationResult:
        """
        Block until the execution finishes.

        Raises:
            ExecutionPending: ``timeout`` elapsed, execution still running
            SplitError, GenerationError, DeadlineExceeded, WorkflowFailed:
                the execution failed
            EngineUnavailable: lost contact with the server while waiting
        """
        wf_id = handle.id
        try:
            if timeout is None:
                return await handle.result()
            return await asyncio.wait_for(handle.result(), timeout=timeout)
        except asyncio.TimeoutError as e:
            # Only the wait is abandoned; the execution carries on.
            raise ExecutionPending(
                f"Execution still running after {timeout}s",
                workflow_id=wf_id,
            ) from e
        except WorkflowFailureError as e:
            raise failure_to_error(e, wf_id) from e
        except RPCError as e:
            raise EngineUnavailable(f"Lost contact with Temporal: {e.message}", workflow_id=wf_id) from e

    async def generate(
        self,
        requirement: str,
        *,
        audit: Optional[bool] = None,
        timeout: Optional[float] = None,
    ) -> GenerationResult:
        """Start an execution and wait for it."""
        handle = await self.start_generation(requirement, audit=audit)
        return await self.wait_for_result(handle, timeout=timeout)

    async def get_workflow_status(self, workflow_id: str) -> Dict[str, Any]:
        """
        Get status of an execution.

        Returns:
            Dict with workflow status information
        """
        handle = self.client.get_workflow_handle(workflow_id)
        try:
            desc = await handle.describe()
        except RPCError as e:
            raise _rpc_error(e, workflow_id) from e
        return {
            "workflow_id": workflow_id,
            "status": desc.status.name if desc.status else None,
            "start_time": desc.start_time.isoformat() if desc.start_time else None,
            "close_time": desc.close_time.isoformat() if desc.close_time else None,
        }

    async def get_progress(self, workflow_id: str) -> ExecutionProgress:
        """Query the execution's phase and completed steps."""
        handle = self.client.get_workflow_handle(workflow_id)
        try:
            return await handle.query(CloudBlueprintWorkflow.progress)
        except RPCError as e:
            raise _rpc_error(e, workflow_id) from e

    async def get_result(self, workflow_id: str) -> Optional[GenerationResult]:
        """Result of a completed execution, None while it is running."""
        status = await self.get_workflow_status(workflow_id)
        if status["status"] == WorkflowExecutionStatus.RUNNING.name:
            return None
        handle = self.client.get_workflow_handle_for(CloudBlueprintWorkflow.run, workflow_id)
        return await self.wait_for_result(handle)


def failure_to_error(error: WorkflowFailureError, workflow_id: str) -> SnapCloudError:
    """Map a workflow failure to the matching SnapCloudError."""
    cause = error.cause
    if isinstance(cause, ApplicationError):
        return error_for_classification(cause.type, cause.message, workflow_id=workflow_id)
    if isinstance(cause, WorkflowTimeoutError):
        return DeadlineExceeded("Execution timed out on the server", workflow_id=workflow_id)
    message = str(cause) if cause is not None else str(error)
    return WorkflowFailed(message or "Execution failed", workflow_id=workflow_id)


def _rpc_error(error: RPCError, workflow_id: str) -> SnapCloudError:
    if error.status == RPCStatusCode.NOT_FOUND:
        return ExecutionNotFound(f"Execution not found: {workflow_id}", workflow_id=workflow_id)
    return EngineUnavailable(f"Temporal request failed: {error.message}", workflow_id=workflow_id)
