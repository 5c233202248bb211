"""
Pydantic models for the SnapCloud generation pipeline.

Everything that crosses a Temporal boundary (workflow input/output,
activity arguments/results, query results) is defined here so that the
pydantic data converter can serialize it on both sides.

Philosophy: the workflow only ever sees these typed values, never raw
model output.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# Enums
# =============================================================================

class ExecutionPhase(str, Enum):
    """Step a WorkflowExecution is in."""
    SCHEDULED = "scheduled"
    SPLITTING_TASKS = "splitting_tasks"
    GENERATING_ARTIFACTS = "generating_artifacts"
    AUDITING = "auditing"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"


class ExecutionStatus(str, Enum):
    """Coarse status of a WorkflowExecution."""
    SCHEDULED = "scheduled"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def for_phase(cls, phase: ExecutionPhase) -> "ExecutionStatus":
        if phase == ExecutionPhase.SCHEDULED:
            return cls.SCHEDULED
        if phase == ExecutionPhase.COMPLETED:
            return cls.COMPLETED
        if phase == ExecutionPhase.FAILED:
            return cls.FAILED
        return cls.RUNNING


# =============================================================================
# Tasks
# =============================================================================

class Task(BaseModel):
    """One atomic unit of work derived from a requirement."""
    position: int = Field(..., ge=0, description="0-based ordinal in the TaskList")
    description: str = Field(..., min_length=1, description="Free-text task")


class TaskList(BaseModel):
    """
    Ordered, non-empty list of tasks.

    ``degraded`` marks a fallback list produced because the Task Splitter
    gave nothing usable; ``degraded_reason`` says why.
    """
    tasks: List[Task] = Field(..., min_length=1)
    degraded: bool = False
    degraded_reason: Optional[str] = None

    @field_validator("tasks")
    @classmethod
    def validate_positions(cls, tasks: List[Task]) -> List[Task]:
        """Positions must be 0..n-1 in list order."""
        for index, task in enumerate(tasks):
            if task.position != index:
                raise ValueError(
                    f"Task at index {index} has position {task.position}"
                )
        return tasks

    @classmethod
    def from_descriptions(cls, descriptions: List[str]) -> "TaskList":
        return cls(
            tasks=[
                Task(position=i, description=text)
                for i, text in enumerate(descriptions)
            ]
        )

    @classmethod
    def fallback(cls, requirement: str, reason: str) -> "TaskList":
        """Single-task list equal to the requirement itself."""
        return cls(
            tasks=[Task(position=0, description=requirement)],
            degraded=True,
            degraded_reason=reason,
        )

    def descriptions(self) -> List[str]:
        return [task.description for task in self.tasks]

    def __len__(self) -> int:
        return len(self.tasks)


# =============================================================================
# Artifacts
# =============================================================================

class CostEstimation(BaseModel):
    """Monthly cost estimate: structured breakdown plus a markdown table."""

    model_config = ConfigDict(populate_by_name=True)

    breakdown: Dict[str, Any] = Field(
        default_factory=dict,
        alias="json",
        description="Structured cost data, empty when the model output was malformed",
    )
    table: str = Field(default="", description="Human-readable markdown table")

    @property
    def total_monthly_cost(self) -> Optional[float]:
        value = self.breakdown.get("totalMonthlyCost")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        return None


class ArtifactBundle(BaseModel):
    """
    Generated deliverables.

    Only valid with a non-empty diagram, a non-empty template and a
    cost estimation (which may itself be empty).
    """
    diagram_mermaid: str = Field(..., min_length=1)
    cfn_template: str = Field(..., min_length=1)
    cost_estimation: CostEstimation
    warnings: List[str] = Field(default_factory=list)

    @field_validator("diagram_mermaid", "cfn_template")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class AuditReport(BaseModel):
    """Result of auditing a generated template."""
    report: str
    findings: List[str] = Field(default_factory=list)


# =============================================================================
# Workflow input / output
# =============================================================================

class ActivityOptions(BaseModel):
    """
    Timeout and retry policy for every activity of one execution.

    Carried inside the workflow input so a replay sees the values the
    execution was started with, whatever the worker's current config.
    """
    start_to_close_seconds: float = Field(default=600.0, gt=0)
    heartbeat_seconds: Optional[float] = Field(default=60.0, gt=0)
    max_attempts: int = Field(default=3, ge=1)
    initial_interval_seconds: float = Field(default=1.0, gt=0)
    backoff_coefficient: float = Field(default=2.0, ge=1.0)
    max_interval_seconds: float = Field(default=60.0, gt=0)
    non_retryable_error_types: List[str] = Field(
        default_factory=lambda: ["ValidationError"]
    )


class GenerationInput(BaseModel):
    """Argument of the generation workflow."""
    requirement: str = Field(..., min_length=1)
    audit_enabled: bool = False
    deadline_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Aggregate time budget for the whole execution",
    )
    options: ActivityOptions = Field(default_factory=ActivityOptions)

    @field_validator("requirement")
    @classmethod
    def validate_requirement(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("requirement must not be blank")
        return value


class GenerationResult(BaseModel):
    """Final result of a completed execution."""
    workflow_id: str
    tasks: TaskList
    bundle: ArtifactBundle
    audit: Optional[AuditReport] = None
    audit_warning: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return self.tasks.degraded or bool(self.bundle.warnings)


class ExecutionProgress(BaseModel):
    """Snapshot returned by the workflow's progress query."""
    workflow_id: str
    phase: ExecutionPhase = ExecutionPhase.SCHEDULED
    status: ExecutionStatus = ExecutionStatus.SCHEDULED
    completed_steps: List[str] = Field(default_factory=list)
    started_at: Optional[str] = None
    degraded: bool = False
    error: Optional[str] = None

    @model_validator(mode="after")
    def sync_status(self) -> "ExecutionProgress":
        self.status = ExecutionStatus.for_phase(self.phase)
        return self
