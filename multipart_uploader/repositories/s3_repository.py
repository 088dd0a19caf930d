"""
S3 Repository for multipart upload operations.
Implements the StorageClient protocol on top of boto3.
"""
from typing import Sequence
import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from multipart_uploader.core.config import Settings
from multipart_uploader.core.exceptions import CredentialError, S3Exception, ValidationException
from multipart_uploader.models.dto.upload_dto import FinalizedObject
from multipart_uploader.models.part import CompletedPart
from multipart_uploader.models.upload_session import UploadSession


class S3Repository:
    """Repository for S3 multipart upload operations."""

    def __init__(self, settings: Settings):
        """
        Validate credentials and build the S3 client.

        Args:
            settings: Uploader settings with credentials, endpoint and region

        Raises:
            CredentialError: If the credentials are blank or cannot be resolved
            ValidationException: If the endpoint or other client settings are invalid
        """
        self.session = self._build_session(settings)
        config = Config(s3={'addressing_style': 'path'}) if settings.api_url else None
        try:
            self.s3_client = self.session.client(
                's3',
                endpoint_url=settings.api_url,
                config=config
            )
        except (ValueError, BotoCoreError) as e:
            raise ValidationException(f"Invalid S3 client configuration: {str(e)}") from e

    @staticmethod
    def _build_session(settings: Settings) -> boto3.Session:
        """Create a boto3 session from static credentials, without any network call."""
        access_key = settings.aws_access_key_id.strip()
        secret_key = settings.aws_secret_access_key.strip()
        if not access_key or not secret_key:
            raise CredentialError("Access key ID and secret access key are required")

        session = boto3.Session(
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=settings.region or None
        )
        credentials = session.get_credentials()
        if credentials is None:
            raise CredentialError("Bad credentials: no credentials could be resolved")
        frozen = credentials.get_frozen_credentials()
        if not frozen.access_key or not frozen.secret_key:
            raise CredentialError("Bad credentials: incomplete access key pair")
        return session

    def create_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str = None
    ) -> UploadSession:
        """
        Start a multipart upload.

        Returns:
            UploadSession with the upload id issued by S3

        Raises:
            S3Exception: If the request fails or S3 returns no upload id
        """
        params = {'Bucket': bucket, 'Key': object_key}
        if content_type:
            params['ContentType'] = content_type

        try:
            response = self.s3_client.create_multipart_upload(**params)
        except (ClientError, BotoCoreError) as e:
            raise S3Exception(f"Failed to create multipart upload: {str(e)}") from e

        upload_id = response.get('UploadId')
        if not upload_id:
            raise S3Exception("S3 response missing UploadId")

        return UploadSession(
            bucket=response.get('Bucket', bucket),
            object_key=response.get('Key', object_key),
            upload_id=upload_id
        )

    def upload_part(
        self,
        *,
        session: UploadSession,
        part_number: int,
        body: bytes,
        content_length: int
    ) -> str:
        """
        Upload one part of a multipart upload.

        Returns:
            ETag of the stored part, or None if S3 sent none

        Raises:
            S3Exception: If the upload fails
        """
        try:
            response = self.s3_client.upload_part(
                Body=bytes(body),
                Bucket=session.bucket,
                Key=session.object_key,
                PartNumber=part_number,
                UploadId=session.upload_id,
                ContentLength=content_length
            )
        except (ClientError, BotoCoreError) as e:
            raise S3Exception(f"Failed to upload part #{part_number}: {str(e)}") from e
        return response.get('ETag')

    def complete_multipart_upload(
        self,
        *,
        session: UploadSession,
        parts: Sequence[CompletedPart]
    ) -> FinalizedObject:
        """
        Commit the uploaded parts, in the order given, as the final object.

        Raises:
            S3Exception: If S3 rejects the complete call
        """
        multipart_payload = {
            'Parts': [
                {'ETag': part.etag, 'PartNumber': part.part_number}
                for part in parts
            ]
        }

        try:
            response = self.s3_client.complete_multipart_upload(
                Bucket=session.bucket,
                Key=session.object_key,
                UploadId=session.upload_id,
                MultipartUpload=multipart_payload
            )
        except (ClientError, BotoCoreError) as e:
            raise S3Exception(f"Failed to complete multipart upload: {str(e)}") from e

        return FinalizedObject(
            bucket=response.get('Bucket', session.bucket),
            key=response.get('Key', session.object_key),
            location=response.get('Location'),
            etag=response.get('ETag'),
            version_id=response.get('VersionId')
        )

    def abort_multipart_upload(self, *, session: UploadSession) -> None:
        """
        Abort a multipart upload and discard its stored parts.

        Raises:
            S3Exception: If the abort call fails
        """
        try:
            self.s3_client.abort_multipart_upload(
                Bucket=session.bucket,
                Key=session.object_key,
                UploadId=session.upload_id
            )
        except (ClientError, BotoCoreError) as e:
            raise S3Exception(f"Failed to abort multipart upload: {str(e)}") from e
