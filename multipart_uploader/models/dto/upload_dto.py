"""
Data Transfer Objects for upload results.
Defines the finalized object descriptor and the terminal upload outcome.
"""
from typing import Optional
from pydantic import BaseModel, Field, PrivateAttr
from multipart_uploader.core.exceptions import UploaderException


class FinalizedObject(BaseModel):
    """Descriptor of an object committed by a complete call."""
    bucket: str
    key: str
    location: Optional[str] = None
    etag: Optional[str] = None
    version_id: Optional[str] = None


class UploadOutcome(BaseModel):
    """Terminal result of one orchestrated upload."""
    succeeded: bool = Field(..., description="Whether the object was finalized")
    bucket: str
    key: str
    upload_id: Optional[str] = None
    final_object: Optional[FinalizedObject] = None
    error_type: Optional[str] = Field(default=None, description="Exception class name of the failure")
    message: Optional[str] = None
    part_number: Optional[int] = None
    abort_attempted: bool = False
    abort_succeeded: Optional[bool] = None
    abort_error: Optional[str] = None
    parts_uploaded: int = 0
    attempts: int = 0

    _error: Optional[UploaderException] = PrivateAttr(default=None)

    @classmethod
    def failure(cls, error: UploaderException, **fields) -> "UploadOutcome":
        """Build a failed outcome that remembers the exception that ended the run."""
        outcome = cls(
            succeeded=False,
            error_type=type(error).__name__,
            message=error.message,
            **fields
        )
        outcome._error = error
        return outcome

    def raise_for_failure(self) -> None:
        """
        Re-raise the error that ended a failed upload.

        Raises:
            UploaderException: The recorded error, if the upload failed
        """
        if self.succeeded:
            return
        if self._error is not None:
            raise self._error
        raise UploaderException(self.message or "Upload failed")
