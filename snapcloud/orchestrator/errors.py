"""
Error taxonomy for SnapCloud.

Every error carries a ``classification`` (the string surfaced to HTTP
callers and used as the Temporal ``ApplicationError`` type) and the HTTP
status the gateway answers with.

Activity exceptions cross the Temporal boundary as ``ApplicationError``
whose ``type`` is the exception class name, so class names here must
match their classification.
"""

from typing import Dict, Optional, Type


class SnapCloudError(Exception):
    """Base class for all SnapCloud errors."""

    classification = "InternalError"
    http_status = 500

    def __init__(self, message: str, *, workflow_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.workflow_id = workflow_id

    def to_dict(self) -> Dict[str, str]:
        data = {"error": self.message, "classification": self.classification}
        if self.workflow_id:
            data["workflowId"] = self.workflow_id
        return data


class ValidationError(SnapCloudError):
    """Malformed or empty requirement. Never retried."""

    classification = "ValidationError"
    http_status = 400


class SplitError(SnapCloudError):
    """
    Task Splitter unreachable or returned unusable output.

    ``unparseable`` is set when the collaborator answered but the answer
    could not be turned into tasks; only those failures may degrade to a
    single-task fallback.
    """

    classification = "SplitError"

    def __init__(
        self,
        message: str,
        *,
        unparseable: bool = False,
        workflow_id: Optional[str] = None,
    ):
        super().__init__(message, workflow_id=workflow_id)
        self.unparseable = unparseable


class GenerationError(SnapCloudError):
    """Artifact Generator unreachable or missing diagram/template."""

    classification = "GenerationError"


class AuditError(SnapCloudError):
    """Audit failed. Best-effort: never fails a workflow."""

    classification = "AuditError"


class DeadlineExceeded(SnapCloudError):
    """Aggregate execution time budget exhausted."""

    classification = "DeadlineExceeded"


class WorkflowFailed(SnapCloudError):
    """Workflow ended in a way that has no more specific classification."""

    classification = "WorkflowFailed"


class EngineUnavailable(SnapCloudError):
    """Temporal server unreachable; the request was never queued."""

    classification = "EngineUnavailable"
    http_status = 503


class ExecutionPending(SnapCloudError):
    """Facade wait elapsed while the execution keeps running."""

    classification = "ExecutionPending"
    http_status = 202


class ExecutionNotFound(SnapCloudError):
    """No execution with the given workflow id."""

    classification = "NotFound"
    http_status = 404


class ProviderError(SnapCloudError):
    """Transport or API failure talking to a generative-AI provider."""

    classification = "ProviderError"


_BY_CLASSIFICATION: Dict[str, Type[SnapCloudError]] = {
    cls.classification: cls
    for cls in (
        ValidationError,
        SplitError,
        GenerationError,
        AuditError,
        DeadlineExceeded,
        WorkflowFailed,
        EngineUnavailable,
    )
}


def error_for_classification(
    classification: Optional[str],
    message: str,
    *,
    workflow_id: Optional[str] = None,
) -> SnapCloudError:
    """Rebuild a typed error from a classification string."""
    cls = _BY_CLASSIFICATION.get(classification or "", WorkflowFailed)
    return cls(message, workflow_id=workflow_id)
