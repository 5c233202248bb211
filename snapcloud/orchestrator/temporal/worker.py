"""
Temporal Worker for the SnapCloud Orchestrator

The Worker polls the SnapCloud task queue and executes:
- Workflows (CloudBlueprintWorkflow)
- Activities (split_tasks, generate_artifacts, audit_artifacts)

Temporal owns the durable queue and the execution history. Two distinct
guarantees follow from it:
- workflow progress is recorded exactly once: after a crash the workflow
  is replayed from history and resumes after its last completed activity
- activities run at least once: an attempt whose completion was not
  recorded is retried, so collaborators must tolerate repeated calls

Usage:
    python -m snapcloud.orchestrator.temporal.worker

Or programmatically:
    from snapcloud.orchestrator.temporal import run_worker
    await run_worker(config.temporal, collaborators)
"""

import asyncio
import logging
from typing import Optional

from temporalio.client import Client
from temporalio.contrib.pydantic import pydantic_data_converter
from temporalio.worker import UnsandboxedWorkflowRunner, Worker

from snapcloud.agents import Collaborators

from .activities import GenerationActivities
from .config import TemporalConfig
from .workflows import CloudBlueprintWorkflow

logger = logging.getLogger(__name__)


async def connect_client(config: TemporalConfig) -> Client:
    """Connect to the Temporal server with the pydantic data converter."""
    return await Client.connect(
        config.target,
        namespace=config.namespace,
        data_converter=pydantic_data_converter,
    )


def create_worker(
    client: Client,
    config: TemporalConfig,
    collaborators: Collaborators,
    *,
    collaborator_timeout: Optional[float] = None,
    task_queue: Optional[str] = None,
) -> Worker:
    """
    Create a Temporal Worker.

    Args:
        client: Connected Temporal client
        config: Temporal configuration
        collaborators: Task splitter, artifact generator and auditor
        collaborator_timeout: Seconds allowed per collaborator call
        task_queue: Override of the configured task queue

    Returns:
        Configured Worker instance
    """
    activities = GenerationActivities(
        collaborators,
        degrade_on_split_failure=config.degrade_on_split_failure,
        collaborator_timeout=collaborator_timeout,
    )

    # Unsandboxed: the workflow module passes pydantic models and the
    # activity class through, and the workflow itself only uses
    # workflow.now() for time.
    return Worker(
        client,
        task_queue=task_queue or config.task_queue,
        workflows=[CloudBlueprintWorkflow],
        activities=activities.as_list(),
        workflow_runner=UnsandboxedWorkflowRunner(),
    )


async def run_worker(
    config: TemporalConfig,
    collaborators: Collaborators,
    *,
    collaborator_timeout: Optional[float] = None,
) -> None:
    """
    Run the Temporal Worker (blocking).

    Connects to the Temporal server and polls for tasks until cancelled.
    Any number of workers may poll the same queue.
    """
    logger.info(f"Connecting to Temporal at {config.target}...")

    client = await connect_client(config)

    logger.info(f"Connected. Starting worker on queue '{config.task_queue}'...")

    worker = create_worker(
        client,
        config,
        collaborators,
        collaborator_timeout=collaborator_timeout,
    )

    try:
        await worker.run()
    except asyncio.CancelledError:
        logger.info("Worker cancelled, shutting down...")
    finally:
        logger.info("Worker stopped.")


def main(config_path: Optional[str] = None):
    """Entry point for running worker from command line."""
    from snapcloud.agents import build_collaborators
    from snapcloud.config import AppConfig

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    config = AppConfig.load(config_path)
    collaborators = build_collaborators(config.provider)

    try:
        asyncio.run(
            run_worker(
                config.temporal,
                collaborators,
                collaborator_timeout=config.provider.request_timeout,
            )
        )
    except KeyboardInterrupt:
        print("\nWorker interrupted by user.")


if __name__ == "__main__":
    main()
