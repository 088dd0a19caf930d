"""
Shared test fixtures and utilities.
"""
from unittest.mock import Mock
import pytest
from multipart_uploader.core.config import Settings
from multipart_uploader.models.dto.upload_dto import FinalizedObject
from multipart_uploader.models.upload_session import UploadSession

MiB = 1024 * 1024
KiB = 1024


@pytest.fixture
def settings():
    """Settings with test credentials and 5 MiB parts, ignoring any .env file."""
    return Settings(
        _env_file=None,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        aws_bucket_name="test-bucket",
        region="us-east-1",
        max_part_size=5 * MiB,
        max_retries=10
    )


@pytest.fixture
def upload_session():
    """Session returned by the mocked storage client."""
    return UploadSession(bucket="test-bucket", object_key="multipartupload/data.bin", upload_id="upload-1")


@pytest.fixture
def mock_storage(upload_session):
    """Mock StorageClient whose calls all succeed."""
    storage = Mock()
    storage.create_multipart_upload.return_value = upload_session
    storage.upload_part.side_effect = lambda **kwargs: f'"etag-{kwargs["part_number"]}"'
    storage.complete_multipart_upload.return_value = FinalizedObject(
        bucket="test-bucket",
        key="multipartupload/data.bin",
        location="https://test-bucket.s3.amazonaws.com/multipartupload/data.bin",
        etag='"final-etag-3"'
    )
    storage.abort_multipart_upload.return_value = None
    return storage
