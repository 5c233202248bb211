#!/usr/bin/env python3
"""
SnapCloud CLI — Command Line Interface for the worker, the API and one-off runs.

Usage:
    python -m snapcloud.cli worker
    python -m snapcloud.cli serve [--host HOST] [--port PORT]
    python -m snapcloud.cli generate "<requirement>" [--audit] [--timeout SECONDS]
    python -m snapcloud.cli status <workflow_id>

Examples:
    # Start a worker polling the SnapCloud task queue
    python -m snapcloud.cli worker

    # Generate an architecture and print the deliverables
    python -m snapcloud.cli generate "simple static website"

    # Check on an execution that outlived the facade timeout
    python -m snapcloud.cli status snapcloud-3f0c...
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from snapcloud.config import AppConfig
from snapcloud.orchestrator.errors import SnapCloudError


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(name)s] %(levelname)s: %(message)s' if verbose else '%(message)s'
    )
    # Quiet down noisy loggers
    if not verbose:
        logging.getLogger("temporalio").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("snapcloud.orchestrator").setLevel(logging.WARNING)


def cmd_worker(config: AppConfig, args) -> int:
    """Run a worker until interrupted."""
    from snapcloud.agents import build_collaborators
    from snapcloud.orchestrator.temporal.worker import run_worker

    collaborators = build_collaborators(config.provider)
    print(f"Worker polling '{config.temporal.task_queue}' at {config.temporal.target} "
          f"(provider: {config.provider.provider})")
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
    return 0


def cmd_serve(config: AppConfig, args) -> int:
    """Run the HTTP API."""
    import uvicorn

    from snapcloud.api_gateway import create_app

    host = args.host or config.api.host
    port = args.port or config.api.port
    app = create_app(config=config)
    uvicorn.run(app, host=host, port=port, log_level="info")
    return 0


async def _generate(config: AppConfig, requirement: str, audit: Optional[bool], timeout: Optional[float]):
    from snapcloud.orchestrator.temporal.client import TemporalClient

    async with TemporalClient(config.temporal) as client:
        return await client.generate(requirement, audit=audit, timeout=timeout)


def cmd_generate(config: AppConfig, args) -> int:
    """Run one execution and print its deliverables."""
    result = asyncio.run(_generate(config, args.requirement, args.audit, args.timeout))

    if args.json:
        print(result.model_dump_json(by_alias=True, indent=2))
        return 0

    bundle = result.bundle
    print(f"\nExecution: {result.workflow_id}")
    print("\nTasks:")
    for task in result.tasks.tasks:
        print(f"  {task.position + 1}. {task.description}")
    print("\nDiagram (mermaid):\n")
    print(bundle.diagram_mermaid)
    print("\nCloudFormation template:\n")
    print(bundle.cfn_template)
    print("\nCost estimation:\n")
    print(bundle.cost_estimation.table or json.dumps(bundle.cost_estimation.breakdown, indent=2))
    if result.audit:
        print("\nAudit:\n")
        print(result.audit.report)
    for warning in result.warnings:
        print(f"\nWarning: {warning}")
    return 0


async def _status(config: AppConfig, workflow_id: str) -> dict:
    from snapcloud.orchestrator.temporal.client import TemporalClient

    async with TemporalClient(config.temporal) as client:
        status = await client.get_workflow_status(workflow_id)
        progress = await client.get_progress(workflow_id)
        status["progress"] = progress.model_dump(mode="json")
        return status


def cmd_status(config: AppConfig, args) -> int:
    """Print status and progress of an execution."""
    status = asyncio.run(_status(config, args.workflow_id))
    print(json.dumps(status, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snapcloud",
        description="SnapCloud: natural language to AWS architecture",
    )
    parser.add_argument("--config", help="YAML config file (default: config/snapcloud.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("worker", help="Run a Temporal worker")

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", help="Bind address")
    serve.add_argument("--port", type=int, help="Port")

    generate = subparsers.add_parser("generate", help="Generate an architecture")
    generate.add_argument("requirement", help="Plain-text requirement")
    generate.add_argument("--audit", action="store_true", default=None, help="Run the template audit")
    generate.add_argument("--timeout", type=float, help="Seconds to wait for the result")
    generate.add_argument("--json", action="store_true", help="Print the raw JSON result")

    status = subparsers.add_parser("status", help="Show an execution's status")
    status.add_argument("workflow_id", help="Execution id")

    return parser


COMMANDS = {
    "worker": cmd_worker,
    "serve": cmd_serve,
    "generate": cmd_generate,
    "status": cmd_status,
}


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        config = AppConfig.load(args.config)
        return COMMANDS[args.command](config, args)
    except SnapCloudError as e:
        print(f"Error [{e.classification}]: {e.message}", file=sys.stderr)
        if e.workflow_id:
            print(f"Execution: {e.workflow_id}", file=sys.stderr)
        return 1
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
