"""
Part Uploader for multipart uploads.
Uploads a single part with a bounded number of attempts.
"""
import logging
import random
import time
from typing import Callable
from multipart_uploader.core.config import DEFAULT_MAX_RETRIES
from multipart_uploader.core.exceptions import PartUploadError, ValidationException
from multipart_uploader.models.part import CompletedPart, PartRange
from multipart_uploader.models.upload_session import UploadSession
from multipart_uploader.repositories.storage_client import StorageClient

logger = logging.getLogger(__name__)

MISSING_ETAG = "<missing>"


class PartUploader:
    """Uploads one part at a time, retrying every failure up to max_retries attempts."""

    def __init__(
        self,
        storage: StorageClient,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_seconds: float = 0.0,
        backoff_max_seconds: float = 30.0,
        sleep: Callable[[float], None] = time.sleep
    ):
        if max_retries < 1:
            raise ValidationException(f"max_retries must be >= 1, got: {max_retries}")
        self.storage = storage
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self.backoff_max_seconds = backoff_max_seconds
        self.sleep = sleep
        self.last_attempts = 0

    def upload_part(self, session: UploadSession, part_range: PartRange, data: bytes) -> CompletedPart:
        """
        Upload the bytes of one part range.

        Args:
            session: Active upload session
            part_range: Range the bytes belong to
            data: Part content, exactly part_range.length bytes

        Returns:
            CompletedPart with the part number and ETag

        Raises:
            PartUploadError: If every attempt fails
        """
        part_number = part_range.part_number
        context = {"upload_id": session.upload_id, "part_number": part_number}
        last_error = None

        for attempt in range(1, self.max_retries + 1):
            self.last_attempts = attempt
            try:
                etag = self.storage.upload_part(
                    session=session,
                    part_number=part_number,
                    body=data,
                    content_length=part_range.length
                )
            except Exception as e:
                last_error = e
                logger.warning(
                    "Upload of part #%d failed (attempt %d/%d): %s",
                    part_number, attempt, self.max_retries, e,
                    extra={"extra": dict(context, attempt=attempt)}
                )
                if attempt < self.max_retries:
                    self._backoff(attempt)
                continue

            if not etag:
                logger.warning(
                    "Uploaded part #%d but no ETag was returned", part_number,
                    extra={"extra": context}
                )
                etag = MISSING_ETAG
            logger.info(
                "Uploaded part #%d, ETag: %s", part_number, etag,
                extra={"extra": dict(context, etag=etag)}
            )
            return CompletedPart(part_number=part_number, etag=etag)

        raise PartUploadError(part_number, self.max_retries, last_error) from last_error

    def _backoff(self, attempt: int) -> None:
        """Sleep before the next attempt; no delay unless backoff_seconds is set."""
        if self.backoff_seconds <= 0:
            return
        ceiling = min(self.backoff_max_seconds, self.backoff_seconds * (2 ** (attempt - 1)))
        self.sleep(random.uniform(0, ceiling))
