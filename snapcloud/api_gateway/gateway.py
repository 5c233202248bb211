"""
API Gateway — HTTP interface for SnapCloud.

Provides REST API endpoints for:
- POST /generate — run one generation execution and wait for it
- GET /executions/{workflow_id} — status, progress and result of an execution
- GET /health — liveness

Each POST /generate starts exactly one execution and never retries on the
caller's behalf. Outcomes:
- 200 with deliverables when the execution completed
- 400 for an empty or malformed requirement (nothing is started)
- 202 when the facade wait elapsed; the execution keeps running
- 500 with a classification when the execution failed (InternalError
  for anything unexpected)
- 503 when Temporal could not be reached to start the execution
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from snapcloud import __version__
from snapcloud.config import AppConfig
from snapcloud.orchestrator.errors import ExecutionPending, SnapCloudError, ValidationError
from snapcloud.orchestrator.models import (
    AuditReport,
    CostEstimation,
    ExecutionProgress,
    GenerationResult,
)
from snapcloud.orchestrator.temporal.client import TemporalClient

logger = logging.getLogger(__name__)

INVALID_INPUT = "Invalid input"


# =============================================================================
# Request/Response Models
# =============================================================================

class GenerateRequest(BaseModel):
    """Request to generate an architecture."""
    requirement: Optional[str] = Field(default=None, description="Plain-text client requirement")
    audit: Optional[bool] = Field(default=None, description="Run the template audit step")


class DeliverablesResponse(BaseModel):
    """Generated artifacts."""

    model_config = ConfigDict(populate_by_name=True)

    diagram_mermaid: str = Field(..., alias="diagramMermaid")
    cfn_template: str = Field(..., alias="cfnTemplate")
    cost_estimation: CostEstimation = Field(..., alias="costEstimation")


class GenerateResponse(BaseModel):
    """Response of a completed execution."""

    model_config = ConfigDict(populate_by_name=True)

    workflow_id: str = Field(..., alias="workflowId")
    tasks: List[str]
    deliverables: DeliverablesResponse
    degraded: bool = False
    warnings: List[str] = Field(default_factory=list)
    audit: Optional[AuditReport] = None
    audit_warning: Optional[str] = Field(default=None, alias="auditWarning")

    @classmethod
    def from_result(cls, result: GenerationResult) -> "GenerateResponse":
        bundle = result.bundle
        return cls(
            workflow_id=result.workflow_id,
            tasks=result.tasks.descriptions(),
            deliverables=DeliverablesResponse(
                diagram_mermaid=bundle.diagram_mermaid,
                cfn_template=bundle.cfn_template,
                cost_estimation=bundle.cost_estimation,
            ),
            degraded=result.degraded,
            warnings=result.warnings,
            audit=result.audit,
            audit_warning=result.audit_warning,
        )


class ExecutionResponse(BaseModel):
    """Status of one execution."""

    model_config = ConfigDict(populate_by_name=True)

    workflow_id: str = Field(..., alias="workflowId")
    status: Optional[str] = None
    start_time: Optional[str] = Field(default=None, alias="startTime")
    close_time: Optional[str] = Field(default=None, alias="closeTime")
    progress: Optional[ExecutionProgress] = None
    result: Optional[GenerateResponse] = None
    error: Optional[Dict[str, str]] = None


# =============================================================================
# API Gateway Class
# =============================================================================

class APIGateway:
    """
    API Gateway for SnapCloud.

    Validates HTTP requests and delegates to the Temporal client.
    """

    def __init__(self, config: AppConfig, client: Optional[TemporalClient] = None):
        """Initialize API Gateway."""
        self.config = config
        self.client = client or TemporalClient(config.temporal)

        logger.info(f"APIGateway initialized (task queue '{config.temporal.task_queue}')")

    @staticmethod
    def validate(request: GenerateRequest) -> str:
        requirement = request.requirement
        if not isinstance(requirement, str) or not requirement.strip():
            raise ValidationError(INVALID_INPUT)
        # Passed through verbatim; a degraded task list repeats it exactly
        return requirement

    # =========================================================================
    # Generation
    # =========================================================================

    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        """Start one execution and block until it ends or the facade times out."""
        requirement = self.validate(request)

        await self.client.connect()
        handle = await self.client.start_generation(requirement, audit=request.audit)
        result = await self.client.wait_for_result(
            handle,
            timeout=self.config.api.facade_timeout,
        )

        logger.info(f"Execution {result.workflow_id} completed with {len(result.tasks)} tasks")
        return GenerateResponse.from_result(result)

    # =========================================================================
    # Execution Status
    # =========================================================================

    async def get_execution(self, workflow_id: str) -> ExecutionResponse:
        """Status, progress and (once finished) result of an execution."""
        await self.client.connect()
        status = await self.client.get_workflow_status(workflow_id)
        progress = await self.client.get_progress(workflow_id)

        response = ExecutionResponse(
            workflow_id=workflow_id,
            status=status["status"],
            start_time=status["start_time"],
            close_time=status["close_time"],
            progress=progress,
        )

        try:
            result = await self.client.get_result(workflow_id)
        except SnapCloudError as e:
            response.error = e.to_dict()
        else:
            if result is not None:
                response.result = GenerateResponse.from_result(result)
        return response


# =============================================================================
# FastAPI Application
# =============================================================================

def error_response(error: SnapCloudError) -> JSONResponse:
    """Translate a SnapCloudError into its HTTP response."""
    if isinstance(error, ValidationError):
        return JSONResponse(status_code=error.http_status, content={"error": error.message})
    if isinstance(error, ExecutionPending):
        return JSONResponse(
            status_code=error.http_status,
            content={
                "status": "running",
                "workflowId": error.workflow_id,
                "message": error.message,
            },
        )
    return JSONResponse(status_code=error.http_status, content=error.to_dict())


def create_app(gateway: Optional[APIGateway] = None, config: Optional[AppConfig] = None) -> FastAPI:
    """Create FastAPI application."""

    if gateway is None:
        gateway = APIGateway(config or AppConfig.load())

    app = FastAPI(
        title="SnapCloud API",
        description="Natural language to AWS architecture diagram, template and cost estimate",
        version=__version__,
    )

    # Store gateway instance
    app.state.gateway = gateway

    @app.exception_handler(SnapCloudError)
    async def handle_snapcloud_error(request: Request, exc: SnapCloudError):
        if exc.http_status >= 500:
            logger.error(f"{request.method} {request.url.path} failed [{exc.classification}]: {exc.message}")
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": INVALID_INPUT})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(f"{request.method} {request.url.path} failed unexpectedly: {exc}", exc_info=exc)
        return error_response(SnapCloudError(str(exc) or "Internal error"))

    # ==========================================================================
    # Routes
    # ==========================================================================

    @app.get("/")
    async def root() -> Dict[str, Any]:
        """API root."""
        return {
            "name": "SnapCloud API",
            "version": __version__,
            "endpoints": {
                "generate": "/generate",
                "executions": "/executions/{workflow_id}",
                "health": "/health",
            },
        }

    @app.get("/health", response_class=PlainTextResponse)
    async def health() -> str:
        """Liveness probe."""
        return "OK"

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(request: GenerateRequest):
        """Generate diagram, template and cost estimate for a requirement."""
        return await gateway.generate(request)

    @app.get("/executions/{workflow_id}", response_model=ExecutionResponse)
    async def get_execution(workflow_id: str):
        """Get execution status and result."""
        return await gateway.get_execution(workflow_id)

    return app
