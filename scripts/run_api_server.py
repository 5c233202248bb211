#!/usr/bin/env python3
"""
Run API Gateway Server.

Usage:
    python scripts/run_api_server.py

Then test with:
    curl http://localhost:3001/health
    curl -X POST http://localhost:3001/generate -H "Content-Type: application/json" -d '{"requirement": "simple static website"}'

A worker must be polling the task queue (python -m snapcloud.cli worker).
"""

import logging

import uvicorn

from snapcloud.api_gateway import create_app
from snapcloud.config import AppConfig


def main():
    """Run the API server."""
    # Setup logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(name)s] %(levelname)s: %(message)s'
    )

    config = AppConfig.load()

    print("\n" + "=" * 60)
    print("   SnapCloud API Gateway")
    print("=" * 60)
    print(f"\n   Starting server at http://{config.api.host}:{config.api.port}")
    print(f"   Temporal: {config.temporal.target}, queue '{config.temporal.task_queue}'")
    print("\n   Endpoints:")
    print("   - GET  /health               - Liveness")
    print("   - POST /generate             - Generate architecture")
    print("   - GET  /executions/:id       - Execution status")
    print("\n" + "=" * 60)
    print("   Press Ctrl+C to stop")
    print("=" * 60 + "\n")

    # Create and run app
    app = create_app(config=config)
    uvicorn.run(app, host=config.api.host, port=config.api.port, log_level="info")


if __name__ == "__main__":
    main()
