"""
Temporal Workflows for the SnapCloud Orchestrator

Main workflow: CloudBlueprintWorkflow
- Splits the requirement into ordered tasks
- Generates diagram, CloudFormation template and cost estimate
- Optionally audits the template (best-effort)

The workflow is deterministic: it reads time only through workflow.now(),
takes every policy value from its input and performs no I/O itself. That
is what lets Temporal replay its history after a worker crash and resume
from the last completed activity instead of starting over.
"""

from datetime import timedelta
from typing import Any, Dict, Optional

from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError, ApplicationError, RetryState, TimeoutType
from temporalio.exceptions import TimeoutError as ActivityTimeoutError

with workflow.unsafe.imports_passed_through():
    from ..errors import DeadlineExceeded, GenerationError, SplitError
    from ..models import (
        ActivityOptions,
        ArtifactBundle,
        AuditReport,
        ExecutionPhase,
        ExecutionProgress,
        GenerationInput,
        GenerationResult,
        TaskList,
    )
    from .activities import GenerationActivities

WORKFLOW_NAME = "SnapCloudWorkflow"


@workflow.defn(name=WORKFLOW_NAME)
class CloudBlueprintWorkflow:
    """
    Requirement -> tasks -> artifacts -> (audit) pipeline.

    Phases: SCHEDULED -> SPLITTING_TASKS -> GENERATING_ARTIFACTS ->
    (AUDITING) -> FINALIZING -> COMPLETED | FAILED. Only activity outcomes
    move the execution forward; there are no signals.

    Queries:
    - progress: phase, completed steps and start time
    """

    def __init__(self) -> None:
        self._phase = ExecutionPhase.SCHEDULED
        self._completed_steps: list = []
        self._degraded = False
        self._error: Optional[str] = None
        self._deadline = None

    @workflow.run
    async def run(self, request: GenerationInput) -> GenerationResult:
        """
        Execute the generation pipeline.

        Args:
            request: Requirement plus audit flag, deadline and activity policy

        Returns:
            GenerationResult with tasks, bundle and optional audit report

        Raises:
            ApplicationError: typed SplitError / GenerationError /
                DeadlineExceeded failure ending the execution
        """
        info = workflow.info()
        if request.deadline_seconds:
            self._deadline = workflow.now() + timedelta(seconds=request.deadline_seconds)

        workflow.logger.info(f"Generation started: {info.workflow_id}")

        # Step 1: Split requirement into tasks
        tasks: TaskList = await self._run_step(
            ExecutionPhase.SPLITTING_TASKS,
            GenerationActivities.split_tasks,
            request.requirement,
            options=request.options,
            failure_type=SplitError.classification,
        )
        self._degraded = tasks.degraded
        if tasks.degraded:
            workflow.logger.warning(f"Task list degraded: {tasks.degraded_reason}")

        # Step 2: Generate artifacts from the ordered tasks
        bundle: ArtifactBundle = await self._run_step(
            ExecutionPhase.GENERATING_ARTIFACTS,
            GenerationActivities.generate_artifacts,
            tasks,
            options=request.options,
            failure_type=GenerationError.classification,
        )
        if bundle.warnings:
            self._degraded = True

        # Step 3: Optional audit, never fails the execution
        audit: Optional[AuditReport] = None
        audit_warning: Optional[str] = None
        if request.audit_enabled:
            audit, audit_warning = await self._run_audit(bundle, request.options)

        # Step 4: Finalize
        self._phase = ExecutionPhase.FINALIZING
        warnings = list(bundle.warnings)
        if tasks.degraded and tasks.degraded_reason:
            warnings.insert(0, f"task splitting degraded: {tasks.degraded_reason}")
        if audit_warning:
            warnings.append(f"audit skipped: {audit_warning}")

        result = GenerationResult(
            workflow_id=info.workflow_id,
            tasks=tasks,
            bundle=bundle,
            audit=audit,
            audit_warning=audit_warning,
            warnings=warnings,
        )

        self._phase = ExecutionPhase.COMPLETED
        workflow.logger.info(f"Generation completed: {info.workflow_id}")
        return result

    async def _run_step(
        self,
        phase: ExecutionPhase,
        activity_method,
        arg: Any,
        *,
        options: ActivityOptions,
        failure_type: str,
    ) -> Any:
        self._phase = phase
        remaining = self._remaining()
        if remaining is not None and remaining <= timedelta(0):
            raise self._fail(
                DeadlineExceeded.classification,
                f"Execution deadline reached before {phase.value}",
            )

        try:
            result = await workflow.execute_activity_method(
                activity_method,
                arg,
                **self._activity_kwargs(options, remaining),
            )
        except ActivityError as e:
            if _deadline_hit(e):
                raise self._fail(
                    DeadlineExceeded.classification,
                    f"Execution deadline exceeded during {phase.value}",
                ) from e
            raise self._fail(failure_type, f"{phase.value} failed: {_cause_message(e)}") from e

        self._completed_steps.append(phase.value)
        return result

    async def _run_audit(self, bundle: ArtifactBundle, options: ActivityOptions):
        self._phase = ExecutionPhase.AUDITING
        remaining = self._remaining()
        if remaining is not None and remaining <= timedelta(0):
            workflow.logger.warning("Audit skipped: execution deadline reached")
            return None, "execution deadline reached"

        try:
            report = await workflow.execute_activity_method(
                GenerationActivities.audit_artifacts,
                bundle,
                **self._activity_kwargs(options, remaining),
            )
        except ActivityError as e:
            message = _cause_message(e)
            workflow.logger.warning(f"Audit failed, continuing without report: {message}")
            return None, message

        self._completed_steps.append(ExecutionPhase.AUDITING.value)
        return report, None

    def _activity_kwargs(
        self,
        options: ActivityOptions,
        remaining: Optional[timedelta],
    ) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "start_to_close_timeout": timedelta(seconds=options.start_to_close_seconds),
            "retry_policy": RetryPolicy(
                initial_interval=timedelta(seconds=options.initial_interval_seconds),
                backoff_coefficient=options.backoff_coefficient,
                maximum_interval=timedelta(seconds=options.max_interval_seconds),
                maximum_attempts=options.max_attempts,
                non_retryable_error_types=list(options.non_retryable_error_types),
            ),
        }
        if options.heartbeat_seconds:
            kwargs["heartbeat_timeout"] = timedelta(seconds=options.heartbeat_seconds)
        if remaining is not None:
            # Retries stop once the aggregate budget is spent
            kwargs["schedule_to_close_timeout"] = remaining
        return kwargs

    def _remaining(self) -> Optional[timedelta]:
        if self._deadline is None:
            return None
        return self._deadline - workflow.now()

    def _fail(self, failure_type: str, message: str) -> ApplicationError:
        self._phase = ExecutionPhase.FAILED
        self._error = f"{failure_type}: {message}"
        workflow.logger.error(f"Generation failed ({failure_type}): {message}")
        return ApplicationError(message, type=failure_type, non_retryable=True)

    @workflow.query
    def progress(self) -> ExecutionProgress:
        """Get current execution progress."""
        info = workflow.info()
        return ExecutionProgress(
            workflow_id=info.workflow_id,
            phase=self._phase,
            completed_steps=list(self._completed_steps),
            started_at=info.start_time.isoformat() if info.start_time else None,
            degraded=self._degraded,
            error=self._error,
        )


def _deadline_hit(error: ActivityError) -> bool:
    """True when the aggregate schedule-to-close budget ended the activity."""
    if error.retry_state == RetryState.TIMEOUT:
        return True
    cause = error.cause
    return isinstance(cause, ActivityTimeoutError) and cause.type == TimeoutType.SCHEDULE_TO_CLOSE


def _cause_message(error: ActivityError) -> str:
    cause = error.cause
    if isinstance(cause, ApplicationError) and cause.type:
        return f"{cause.type}: {cause.message}"
    if isinstance(cause, ActivityTimeoutError):
        return f"activity timed out ({cause.type.name if cause.type else 'unknown'})"
    if cause is not None:
        return str(cause)
    return str(error)
