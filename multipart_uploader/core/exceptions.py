"""
Custom exceptions for the multipart uploader.
Provides specific error types for each stage of an upload.
"""
from typing import Optional


class UploaderException(Exception):
    """Base exception for all uploader errors."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ValidationException(UploaderException):
    """Raised when configuration or input validation fails."""
    pass


class EmptySourceError(ValidationException):
    """Raised when the source file has no bytes to upload."""
    pass


class CredentialError(UploaderException):
    """Raised when credentials fail validation before any network call."""
    pass


class S3Exception(UploaderException):
    """Raised when an S3 operation fails."""
    pass


class SessionInitError(UploaderException):
    """Raised when a multipart upload session cannot be created."""
    pass


class PartUploadError(UploaderException):
    """Raised when a single part exhausts its retry budget."""
    def __init__(self, part_number: int, attempts: int, cause: Optional[BaseException] = None):
        self.part_number = part_number
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            f"Failed to upload part #{part_number} after {attempts} attempts: {cause}"
        )


class AbortError(UploaderException):
    """Raised when aborting a multipart upload fails."""
    pass


class CompletionError(UploaderException):
    """Raised when the final complete call fails."""
    pass


class OrchestratorStateError(UploaderException):
    """Raised when an orchestrator is used outside its lifecycle."""
    pass
