"""
API Gateway for SnapCloud.

Provides HTTP endpoints for:
- Generating architecture deliverables
- Execution status
- Liveness
"""

from .gateway import APIGateway, create_app

__all__ = ["create_app", "APIGateway"]
