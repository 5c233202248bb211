"""
Temporal Configuration for SnapCloud

Loaded once at process start (see snapcloud.config.AppConfig) and passed
by reference into the worker and the client. Orchestration code never
reads the environment itself.
"""

import os
from dataclasses import dataclass, field
from typing import Tuple

from ..models import ActivityOptions


@dataclass(frozen=True)
class TemporalConfig:
    """Temporal connection and workflow configuration."""

    # Connection
    host: str = "localhost"
    port: int = 7233
    namespace: str = "default"

    # Task queue shared by every worker of this system
    task_queue: str = "SNAPCLOUD_QUEUE"
    workflow_id_prefix: str = "snapcloud"

    # Timeouts (seconds)
    execution_deadline: float = 1800.0  # aggregate budget per execution
    activity_start_to_close_timeout: float = 600.0  # 10 min per activity attempt
    activity_heartbeat_timeout: float = 60.0

    # Retry Policy
    activity_max_retries: int = 3
    activity_initial_interval: float = 1.0
    activity_backoff_coefficient: float = 2.0
    activity_max_interval: float = 60.0
    non_retryable_error_types: Tuple[str, ...] = field(
        default_factory=lambda: ("ValidationError",)
    )

    # Pipeline behaviour
    audit_enabled: bool = False
    degrade_on_split_failure: bool = True

    @property
    def target(self) -> str:
        """Temporal server address."""
        return f"{self.host}:{self.port}"

    @property
    def execution_timeout(self) -> float:
        """Server-side backstop, slightly above the in-workflow deadline."""
        return self.execution_deadline + 60.0

    def activity_options(self) -> ActivityOptions:
        """Activity policy recorded into each workflow input."""
        return ActivityOptions(
            start_to_close_seconds=self.activity_start_to_close_timeout,
            heartbeat_seconds=self.activity_heartbeat_timeout or None,
            max_attempts=self.activity_max_retries,
            initial_interval_seconds=self.activity_initial_interval,
            backoff_coefficient=self.activity_backoff_coefficient,
            max_interval_seconds=self.activity_max_interval,
            non_retryable_error_types=list(self.non_retryable_error_types),
        )

    @classmethod
    def from_env(cls) -> "TemporalConfig":
        """Load configuration from environment variables."""
        return cls(
            host=os.getenv("TEMPORAL_HOST", "localhost"),
            port=int(os.getenv("TEMPORAL_PORT", "7233")),
            namespace=os.getenv("TEMPORAL_NAMESPACE", "default"),
            task_queue=os.getenv("TEMPORAL_TASK_QUEUE", "SNAPCLOUD_QUEUE"),
            workflow_id_prefix=os.getenv("SNAPCLOUD_WORKFLOW_PREFIX", "snapcloud"),
            execution_deadline=float(os.getenv("SNAPCLOUD_EXECUTION_DEADLINE", "1800")),
            activity_start_to_close_timeout=float(os.getenv("TEMPORAL_ACTIVITY_TIMEOUT", "600")),
            activity_heartbeat_timeout=float(os.getenv("TEMPORAL_HEARTBEAT_TIMEOUT", "60")),
            activity_max_retries=int(os.getenv("TEMPORAL_MAX_RETRIES", "3")),
            activity_initial_interval=float(os.getenv("TEMPORAL_RETRY_INTERVAL", "1.0")),
            activity_backoff_coefficient=float(os.getenv("TEMPORAL_RETRY_BACKOFF", "2.0")),
            activity_max_interval=float(os.getenv("TEMPORAL_RETRY_MAX_INTERVAL", "60")),
            audit_enabled=_env_flag("SNAPCLOUD_AUDIT_ENABLED", False),
            degrade_on_split_failure=_env_flag("SNAPCLOUD_DEGRADE_ON_SPLIT_FAILURE", True),
        )


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")
