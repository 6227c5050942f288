"""
Error taxonomy for the data layer.

Every error carries a machine-readable code, a human-readable message and,
where one applies, the field or relation that failed. Services raise these
directly; SQLAlchemy exceptions never escape the service/session seam.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    CONFIGURATION = "CONFIGURATION_ERROR"
    CONNECTION = "CONNECTION_ERROR"
    VALIDATION = "VALIDATION_ERROR"
    CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"
    REFERENCE = "REFERENCE_ERROR"
    REFERENCE_CHECK_FAILED = "REFERENCE_CHECK_FAILED"
    NOT_FOUND = "NOT_FOUND"


class DataLayerError(Exception):
    """Base error with code, user-safe message and optional field name."""

    code: ErrorCode = ErrorCode.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def __str__(self) -> str:
        if self.field:
            return f"{self.code.value}: {self.field}: {self.message}"
        return f"{self.code.value}: {self.message}"


class ConfigurationError(DataLayerError):
    """Fatal: the process cannot start with the current configuration."""

    code = ErrorCode.CONFIGURATION


class StorageConnectionError(DataLayerError, ConnectionError):
    """The connection attempt failed. The next acquire() retries from scratch."""

    code = ErrorCode.CONNECTION


class ValidationError(DataLayerError):
    """Input rejected before anything reached storage."""

    code = ErrorCode.VALIDATION


class ConstraintViolation(DataLayerError):
    """A unique index rejected the write."""

    code = ErrorCode.CONSTRAINT_VIOLATION


class EventReferenceError(DataLayerError, LookupError):
    """A booking points at an event that does not exist."""

    code = ErrorCode.REFERENCE

    def __init__(self, event_id, message: str = "event does not exist") -> None:
        super().__init__(message, field="event_id")
        self.event_id = event_id


class ReferenceCheckFailed(DataLayerError):
    """The event existence lookup itself failed; the write is refused."""

    code = ErrorCode.REFERENCE_CHECK_FAILED

    def __init__(self, event_id, cause: BaseException) -> None:
        super().__init__(f"could not verify event: {cause}", field="event_id")
        self.event_id = event_id
        self.cause = cause


class DocumentNotFoundError(DataLayerError, LookupError):
    code = ErrorCode.NOT_FOUND

    def __init__(self, kind: str, document_id) -> None:
        super().__init__(f"{kind} {document_id} not found", field="id")
        self.kind = kind
        self.document_id = document_id
