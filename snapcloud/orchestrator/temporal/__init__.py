"""
Temporal-based Orchestrator for SnapCloud

Architecture:
- Execution Layer: Temporal (durable execution, event sourcing)
- Work Layer: activities calling the task splitter, artifact generator
  and auditor collaborators
- Facade Layer: TemporalClient, used by the HTTP API gateway and the CLI

Key principle: all I/O happens inside activities; the workflow only
sequences them.
"""

from .activities import GenerationActivities
from .client import TemporalClient, failure_to_error
from .config import TemporalConfig
from .worker import connect_client, create_worker, run_worker
from .workflows import WORKFLOW_NAME, CloudBlueprintWorkflow

__all__ = [
    # Workflows
    "CloudBlueprintWorkflow",
    "WORKFLOW_NAME",
    # Activities
    "GenerationActivities",
    # Infrastructure
    "TemporalConfig",
    "connect_client",
    "create_worker",
    "run_worker",
    "TemporalClient",
    "failure_to_error",
]
