"""
Upload Session domain model.
Identifies one in-progress multipart upload on the storage service.
"""


class UploadSession:
    """Domain model for a multipart upload session."""

    def __init__(self, bucket: str, object_key: str, upload_id: str):
        self.bucket = bucket
        self.object_key = object_key
        self.upload_id = upload_id

    def __eq__(self, other):
        if not isinstance(other, UploadSession):
            return NotImplemented
        return (
            self.bucket == other.bucket
            and self.object_key == other.object_key
            and self.upload_id == other.upload_id
        )

    def __hash__(self):
        return hash((self.bucket, self.object_key, self.upload_id))

    def __repr__(self):
        return f"UploadSession(bucket={self.bucket}, object_key={self.object_key}, upload_id={self.upload_id})"
