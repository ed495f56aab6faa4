# core/exceptions.py
"""Domain exceptions shared by services and the API layer"""
from typing import Optional

from core.enums import ErrorCode, IngestionStage


class DocumentProcessingError(Exception):
    """Raised when document processing fails with a specific error code"""

    def __init__(self, message: str, error_code: ErrorCode):
        self.message = message
        self.error_code = error_code
        super().__init__(message)

    def __str__(self):
        # Format used for logging
        return f"[{self.error_code.value}] {self.message}"


class OperationCancelled(Exception):
    """The caller went away; the pipeline stopped at a stage boundary"""

    def __init__(self, stage: Optional[IngestionStage] = None):
        self.stage = stage
        where = f" at {stage.value}" if stage else ""
        super().__init__(f"Request aborted by client{where}")


class ModelInvocationError(Exception):
    """A chat model candidate failed (transport error or bad response)"""

    def __init__(self, message: str, model: Optional[str] = None):
        self.model = model
        super().__init__(message)


class ModelTimeoutError(ModelInvocationError):
    """A chat model candidate did not answer within its time budget"""


class InvalidModelResponse(ModelInvocationError):
    """The candidate answered but the payload did not have the expected shape"""


class VectorIndexError(Exception):
    """The vector index is unreachable or rejected the request"""


class NotFoundError(Exception):
    """Requested file or section has no indexed content"""
