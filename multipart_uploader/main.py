"""
Command line entry point for the multipart uploader.
Uploads one file to an S3-compatible bucket using a multipart upload.
"""
import argparse
import logging
import sys
from typing import List, Optional
from pydantic import ValidationError
from multipart_uploader.core.config import Settings
from multipart_uploader.core.exceptions import CredentialError, ValidationException
from multipart_uploader.core.logging import setup_logging
from multipart_uploader.repositories.s3_repository import S3Repository
from multipart_uploader.services.file_service import FileService
from multipart_uploader.services.upload_orchestrator import UploadOrchestrator

logger = logging.getLogger("multipart_uploader.main")

# Flag destination -> Settings field
_OVERRIDES = {
    'access_key': 'aws_access_key_id',
    'secret_key': 'aws_secret_access_key',
    'bucket': 'aws_bucket_name',
    'api_url': 'api_url',
    'region': 'region',
    'part_size': 'max_part_size',
    'max_retries': 'max_retries',
    'log_level': 'log_level',
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="multipart-upload",
        usage="%(prog)s [flags] <file>",
        description="Upload a file to S3 using a multipart upload."
    )
    parser.add_argument("--access-key", help="S3 Access Key ID (env: AWS_ACCESS_KEY_ID)")
    parser.add_argument("--secret-key", help="S3 Secret Access Key (env: AWS_SECRET_ACCESS_KEY)")
    parser.add_argument("--bucket", help="S3 Bucket Name (env: AWS_BUCKET_NAME)")
    parser.add_argument("--api-url", help="S3 API URL (env: API_URL)")
    parser.add_argument("--region", help="S3 Region (env: REGION)")
    parser.add_argument("--part-size", type=int, help="Maximum part size in bytes (env: MAX_PART_SIZE)")
    parser.add_argument("--max-retries", type=int, help="Attempts per part (env: MAX_RETRIES)")
    parser.add_argument("--key", help="Object key; defaults to KEY_PREFIX plus the file name")
    parser.add_argument("--log-level", help="Log level (env: LOG_LEVEL)")
    parser.add_argument("file", help="File to upload")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Environment settings with command line flags applied on top."""
    overrides = {
        field: getattr(args, dest)
        for dest, field in _OVERRIDES.items()
        if getattr(args, dest) is not None
    }
    return Settings(**overrides)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args)
    except ValidationError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    missing = settings.missing_required()
    if missing:
        print(
            "Error: AWS Access Key ID, Secret Access Key, Bucket Name and Region are required. "
            f"Missing: {', '.join(missing)}",
            file=sys.stderr
        )
        parser.print_help(sys.stderr)
        return 1

    setup_logging(settings.log_level, settings.log_format)
    logger.info("File to upload: %s", args.file)

    file_service = FileService()
    try:
        storage = S3Repository(settings)
        source = file_service.load(args.file)
        object_key = args.key or file_service.object_key(settings.key_prefix, args.file)
    except CredentialError as e:
        logger.error("Bad credentials: %s", e.message)
        return 1
    except ValidationException as e:
        logger.error("%s", e.message)
        return 1

    orchestrator = UploadOrchestrator(storage, settings)
    outcome = orchestrator.upload(source.data, object_key, source.content_type)
    if not outcome.succeeded:
        return 1

    print(outcome.final_object.model_dump_json())
    return 0


if __name__ == "__main__":
    sys.exit(main())
