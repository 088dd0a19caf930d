"""
Upload Orchestrator for multipart uploads.
Drives a single upload from initiate through part uploads to complete or abort.
"""
import logging
from enum import Enum
from typing import List, Optional
from multipart_uploader.core.config import Settings
from multipart_uploader.core.exceptions import (
    AbortError,
    CompletionError,
    EmptySourceError,
    OrchestratorStateError,
    PartUploadError,
    SessionInitError,
    UploaderException,
)
from multipart_uploader.models.dto.upload_dto import UploadOutcome
from multipart_uploader.models.part import CompletedPart
from multipart_uploader.models.upload_session import UploadSession
from multipart_uploader.repositories.storage_client import StorageClient
from multipart_uploader.services.part_planner import count_parts, plan_parts
from multipart_uploader.services.part_uploader import PartUploader

logger = logging.getLogger(__name__)


class UploadState(str, Enum):
    """Lifecycle states of an UploadOrchestrator."""
    IDLE = "idle"
    INITIATING = "initiating"
    UPLOADING_PARTS = "uploading_parts"
    COMPLETING = "completing"
    ABORTING = "aborting"
    DONE = "done"


class UploadOrchestrator:
    """
    Runs one multipart upload to a terminal outcome.

    Parts are uploaded sequentially in ascending part number order. A part that
    exhausts its retries aborts the session; a failed complete is reported
    without an abort. An orchestrator is single-use.
    """

    def __init__(
        self,
        storage: StorageClient,
        settings: Settings,
        part_uploader: Optional[PartUploader] = None
    ):
        self.storage = storage
        self.settings = settings
        self.part_uploader = part_uploader or PartUploader(
            storage,
            max_retries=settings.max_retries,
            backoff_seconds=settings.retry_backoff_seconds,
            backoff_max_seconds=settings.retry_backoff_max_seconds
        )
        self.state = UploadState.IDLE
        self.session: Optional[UploadSession] = None
        self.completed_parts: List[CompletedPart] = []
        self.attempts = 0

    def upload(self, data: bytes, object_key: str, content_type: Optional[str] = None) -> UploadOutcome:
        """
        Upload data as object_key in the configured bucket.

        Args:
            data: Entire content of the source file
            object_key: Key of the object to create
            content_type: MIME type of the object

        Returns:
            UploadOutcome describing the finalized object or the failure

        Raises:
            OrchestratorStateError: If this orchestrator already ran
        """
        if self.state != UploadState.IDLE:
            raise OrchestratorStateError(
                f"Orchestrator is {self.state.value}; start a new one for another upload"
            )
        try:
            return self._run(data, object_key, content_type)
        finally:
            self.state = UploadState.DONE

    def _run(self, data: bytes, object_key: str, content_type: Optional[str]) -> UploadOutcome:
        bucket = self.settings.aws_bucket_name
        size = len(data)

        if size == 0:
            return self._fail(
                EmptySourceError("Source is empty; nothing to upload"),
                bucket=bucket,
                key=object_key
            )

        self.state = UploadState.INITIATING
        try:
            self.session = self.storage.create_multipart_upload(
                bucket=bucket,
                object_key=object_key,
                content_type=content_type
            )
        except Exception as e:
            error = SessionInitError(f"Failed to start multipart upload: {_describe(e)}")
            error.__cause__ = e
            return self._fail(error, bucket=bucket, key=object_key)

        session = self.session
        total_parts = count_parts(size, self.settings.max_part_size)
        logger.info(
            "Created multipart upload request %s for s3://%s/%s (%d bytes, %d parts)",
            session.upload_id, session.bucket, session.object_key, size, total_parts,
            extra={"extra": {"upload_id": session.upload_id, "total_parts": total_parts}}
        )

        self.state = UploadState.UPLOADING_PARTS
        remaining = size
        for part_range in plan_parts(size, self.settings.max_part_size):
            chunk = data[part_range.offset:part_range.end]
            try:
                completed = self.part_uploader.upload_part(session, part_range, chunk)
            except PartUploadError as e:
                self.attempts += self.part_uploader.last_attempts
                return self._abort(e)
            self.attempts += self.part_uploader.last_attempts
            self.completed_parts.append(completed)
            remaining -= part_range.length
            logger.debug(
                "Part %d/%d stored, %d bytes remaining",
                part_range.part_number, total_parts, remaining
            )

        self.state = UploadState.COMPLETING
        try:
            final_object = self.storage.complete_multipart_upload(
                session=session,
                parts=list(self.completed_parts)
            )
        except Exception as e:
            error = CompletionError(
                f"Failed to complete multipart upload {session.upload_id}: {_describe(e)}"
            )
            error.__cause__ = e
            return self._fail(error, **self._session_fields())

        logger.info(
            "Successfully uploaded file: s3://%s/%s (%d parts, ETag: %s)",
            final_object.bucket, final_object.key, len(self.completed_parts), final_object.etag
        )
        return UploadOutcome(
            succeeded=True,
            final_object=final_object,
            parts_uploaded=len(self.completed_parts),
            attempts=self.attempts,
            **self._session_fields()
        )

    def _abort(self, error: PartUploadError) -> UploadOutcome:
        """Abort the current session after a part failure."""
        self.state = UploadState.ABORTING
        session = self.session
        context = {"upload_id": session.upload_id, "part_number": error.part_number}
        logger.error("%s", error.message, extra={"extra": context})
        logger.info(
            "Aborting multipart upload for UploadId#%s", session.upload_id,
            extra={"extra": context}
        )

        try:
            self.storage.abort_multipart_upload(session=session)
        except Exception as e:
            abort_error = AbortError(
                f"Failed to abort multipart upload {session.upload_id}: {_describe(e)}"
            )
            abort_error.__cause__ = e
            logger.error("%s", abort_error.message, extra={"extra": context})
            return self._fail(
                error,
                log=False,
                part_number=error.part_number,
                abort_attempted=True,
                abort_succeeded=False,
                abort_error=abort_error.message,
                **self._session_fields()
            )

        return self._fail(
            error,
            log=False,
            part_number=error.part_number,
            abort_attempted=True,
            abort_succeeded=True,
            **self._session_fields()
        )

    def _fail(self, error: UploaderException, log: bool = True, **fields) -> UploadOutcome:
        if log:
            logger.error("%s", error.message)
        return UploadOutcome.failure(
            error,
            parts_uploaded=len(self.completed_parts),
            attempts=self.attempts,
            **fields
        )

    def _session_fields(self) -> dict:
        return {
            'bucket': self.session.bucket,
            'key': self.session.object_key,
            'upload_id': self.session.upload_id,
        }


def _describe(error: Exception) -> str:
    return error.message if isinstance(error, UploaderException) else str(error)
