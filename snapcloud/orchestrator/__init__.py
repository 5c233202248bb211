"""
SnapCloud Orchestrator Module.

Durable generation pipeline:
- Splits a requirement into ordered tasks
- Generates diagram, template and cost estimate from the tasks
- Optionally audits the template

Execution is hosted on Temporal (see the ``temporal`` subpackage).
"""

from .errors import (
    AuditError,
    DeadlineExceeded,
    EngineUnavailable,
    ExecutionNotFound,
    ExecutionPending,
    GenerationError,
    ProviderError,
    SnapCloudError,
    SplitError,
    ValidationError,
    WorkflowFailed,
)
from .models import (
    ActivityOptions,
    ArtifactBundle,
    AuditReport,
    CostEstimation,
    ExecutionPhase,
    ExecutionProgress,
    ExecutionStatus,
    GenerationInput,
    GenerationResult,
    Task,
    TaskList,
)

__all__ = [
    # Errors
    "SnapCloudError",
    "ValidationError",
    "SplitError",
    "GenerationError",
    "AuditError",
    "DeadlineExceeded",
    "WorkflowFailed",
    "EngineUnavailable",
    "ExecutionPending",
    "ExecutionNotFound",
    "ProviderError",
    # Models
    "Task",
    "TaskList",
    "CostEstimation",
    "ArtifactBundle",
    "AuditReport",
    "ActivityOptions",
    "GenerationInput",
    "GenerationResult",
    "ExecutionPhase",
    "ExecutionStatus",
    "ExecutionProgress",
]
