"""
Storage client protocol.
Defines the initiate, upload-part, complete and abort operations the orchestrator consumes.
"""
from typing import Optional, Protocol, Sequence
from multipart_uploader.models.dto.upload_dto import FinalizedObject
from multipart_uploader.models.part import CompletedPart
from multipart_uploader.models.upload_session import UploadSession


class StorageClient(Protocol):
    """
    Protocol for multipart-capable object storage backends.

    Every method raises S3Exception when the underlying call fails.
    """

    def create_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: Optional[str] = None,
    ) -> UploadSession:
        """
        Start a multipart upload session.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            content_type: MIME type of the final object.

        Returns:
            UploadSession carrying the upload id for subsequent calls.
        """
        ...

    def upload_part(
        self,
        *,
        session: UploadSession,
        part_number: int,
        body: bytes,
        content_length: int,
    ) -> Optional[str]:
        """
        Upload the bytes of one part.

        Args:
            session: Session returned by create_multipart_upload.
            part_number: Part number (1-based, max 10000).
            body: Part content.
            content_length: Number of bytes in body.

        Returns:
            The ETag reported for the part, or None if the service sent none.
        """
        ...

    def complete_multipart_upload(
        self,
        *,
        session: UploadSession,
        parts: Sequence[CompletedPart],
    ) -> FinalizedObject:
        """Commit the ordered list of parts as the final object."""
        ...

    def abort_multipart_upload(self, *, session: UploadSession) -> None:
        """Discard the session and any parts already stored under it."""
        ...
