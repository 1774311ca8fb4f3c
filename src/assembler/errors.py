from dataclasses import dataclass
from typing import Optional

from assembler.schemas import JobFailure


class PipelineError(Exception):
    """Base for every error surfaced to callers of the assembly service"""

    kind = "pipeline_error"
    status_code = 500
    summary = "Video processing failed"

    def __init__(self, message: str, job_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.job_id = job_id

    def to_failure(self) -> JobFailure:
        return JobFailure(
            error=self.summary,
            kind=self.kind,
            details=self.message,
            job_id=self.job_id,
        )


class ValidationError(PipelineError):
    """Missing or invalid input; raised before any side effect"""

    kind = "validation_error"
    status_code = 400
    summary = "Invalid request"


class EncodingError(PipelineError):
    """The external encoder failed, timed out, or could not be started"""

    kind = "encoding_error"
    status_code = 500
    summary = "Video processing failed"

    def __init__(self, message: str, job_id: Optional[str] = None, diagnostic: str = ""):
        super().__init__(message, job_id)
        self.diagnostic = diagnostic


class NotFoundError(PipelineError):
    kind = "not_found"
    status_code = 404
    summary = "File not found"


@dataclass
class CleanupWarning:
    """A best-effort deletion that failed. Logged, never raised."""

    path: str
    reason: str

    def __str__(self) -> str:
        return f"could not remove {self.path}: {self.reason}"
