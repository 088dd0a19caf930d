"""
Unit tests for UploadOrchestrator.
Tests the initiate, upload, complete and abort sequencing with a mocked storage client.
"""
import logging
import pytest
from multipart_uploader.core.exceptions import (
    CompletionError,
    EmptySourceError,
    OrchestratorStateError,
    PartUploadError,
    S3Exception,
    SessionInitError,
)
from multipart_uploader.models.part import CompletedPart
from multipart_uploader.services.part_uploader import PartUploader
from multipart_uploader.services.upload_orchestrator import UploadOrchestrator, UploadState

MiB = 1024 * 1024
KEY = "multipartupload/data.bin"


def _failing_on(part_number):
    """upload_part side effect that always fails for one part number."""
    def upload_part(**kwargs):
        if kwargs["part_number"] == part_number:
            raise S3Exception(f"Failed to upload part #{part_number}: InternalError")
        return f'"etag-{kwargs["part_number"]}"'
    return upload_part


class TestUploadOrchestrator:
    """Test suite for UploadOrchestrator."""

    @pytest.fixture
    def orchestrator(self, mock_storage, settings):
        """Create UploadOrchestrator with mocked storage."""
        return UploadOrchestrator(mock_storage, settings)

    @pytest.fixture
    def twelve_mib(self):
        """12 MiB source whose parts hold distinct bytes."""
        return b"a" * (5 * MiB) + b"b" * (5 * MiB) + b"c" * (2 * MiB)

    def test_upload_three_parts_success(self, orchestrator, mock_storage, upload_session, twelve_mib):
        """Test 12 MiB in 5 MiB parts uploads three parts and completes them in order."""
        outcome = orchestrator.upload(twelve_mib, KEY, "application/octet-stream")

        assert outcome.succeeded is True
        assert outcome.final_object.etag == '"final-etag-3"'
        assert outcome.upload_id == "upload-1"
        assert outcome.parts_uploaded == 3
        assert outcome.attempts == 3
        assert outcome.error_type is None

        mock_storage.create_multipart_upload.assert_called_once_with(
            bucket="test-bucket",
            object_key=KEY,
            content_type="application/octet-stream"
        )
        calls = mock_storage.upload_part.call_args_list
        assert [c.kwargs["part_number"] for c in calls] == [1, 2, 3]
        assert [c.kwargs["content_length"] for c in calls] == [5 * MiB, 5 * MiB, 2 * MiB]
        assert [bytes(c.kwargs["body"][:1]) for c in calls] == [b"a", b"b", b"c"]
        assert b"".join(bytes(c.kwargs["body"]) for c in calls) == twelve_mib
        assert all(type(c.kwargs["body"]) is bytes for c in calls)
        assert [len(c.kwargs["body"]) for c in calls] == [5 * MiB, 5 * MiB, 2 * MiB]

        mock_storage.complete_multipart_upload.assert_called_once_with(
            session=upload_session,
            parts=[
                CompletedPart(part_number=1, etag='"etag-1"'),
                CompletedPart(part_number=2, etag='"etag-2"'),
                CompletedPart(part_number=3, etag='"etag-3"'),
            ]
        )
        mock_storage.abort_multipart_upload.assert_not_called()
        assert orchestrator.state == UploadState.DONE

    def test_complete_receives_ascending_parts(self, orchestrator, mock_storage):
        """Test parts handed to complete are never reordered."""
        orchestrator.upload(b"z" * (23 * MiB), KEY)

        parts = mock_storage.complete_multipart_upload.call_args.kwargs["parts"]
        numbers = [p.part_number for p in parts]
        assert numbers == sorted(numbers)
        assert numbers == [1, 2, 3, 4, 5]

    def test_small_file_succeeds_after_nine_failures(self, orchestrator, mock_storage):
        """Test a 1 KiB upload that fails nine times then succeeds."""
        mock_storage.upload_part.side_effect = [S3Exception("RequestTimeout")] * 9 + ['"etag-1"']

        outcome = orchestrator.upload(b"k" * 1024, KEY)

        assert outcome.succeeded is True
        assert outcome.attempts == 10
        assert mock_storage.upload_part.call_count == 10
        mock_storage.complete_multipart_upload.assert_called_once()
        parts = mock_storage.complete_multipart_upload.call_args.kwargs["parts"]
        assert parts == [CompletedPart(part_number=1, etag='"etag-1"')]

    def test_part_failure_aborts_session(self, orchestrator, mock_storage, upload_session, twelve_mib):
        """Test part 2 of 3 exhausting retries aborts once and never completes."""
        mock_storage.upload_part.side_effect = _failing_on(2)

        outcome = orchestrator.upload(twelve_mib, KEY)

        assert outcome.succeeded is False
        assert outcome.error_type == "PartUploadError"
        assert outcome.part_number == 2
        assert outcome.abort_attempted is True
        assert outcome.abort_succeeded is True
        assert outcome.abort_error is None
        assert outcome.parts_uploaded == 1
        assert outcome.attempts == 1 + 10

        mock_storage.abort_multipart_upload.assert_called_once_with(session=upload_session)
        mock_storage.complete_multipart_upload.assert_not_called()
        part_numbers = [c.kwargs["part_number"] for c in mock_storage.upload_part.call_args_list]
        assert 3 not in part_numbers
        assert part_numbers.count(2) == 10

        with pytest.raises(PartUploadError) as exc_info:
            outcome.raise_for_failure()
        assert exc_info.value.part_number == 2

    @pytest.mark.parametrize("failing_part", [2, 3])
    def test_abort_called_once_for_any_later_part(self, mock_storage, settings, twelve_mib, failing_part):
        """Test the abort is issued exactly once whichever part fails."""
        mock_storage.upload_part.side_effect = _failing_on(failing_part)
        orchestrator = UploadOrchestrator(mock_storage, settings)

        outcome = orchestrator.upload(twelve_mib, KEY)

        assert outcome.part_number == failing_part
        assert mock_storage.abort_multipart_upload.call_count == 1
        mock_storage.complete_multipart_upload.assert_not_called()

    def test_abort_failure_reports_both_causes(self, orchestrator, mock_storage, twelve_mib, caplog):
        """Test a failed abort is reported after the part failure."""
        mock_storage.upload_part.side_effect = _failing_on(2)
        mock_storage.abort_multipart_upload.side_effect = S3Exception("Failed to abort multipart upload: AccessDenied")

        with caplog.at_level(logging.INFO, logger="multipart_uploader"):
            outcome = orchestrator.upload(twelve_mib, KEY)

        assert outcome.succeeded is False
        assert outcome.error_type == "PartUploadError"
        assert outcome.abort_attempted is True
        assert outcome.abort_succeeded is False
        assert "AccessDenied" in outcome.abort_error
        assert mock_storage.abort_multipart_upload.call_count == 1

        error_records = [r for r in caplog.records if r.levelno == logging.ERROR]
        errors = [r.getMessage() for r in error_records]
        assert len(errors) == 2
        assert "part #2" in errors[0]
        assert "AccessDenied" in errors[1]
        assert all(r.extra == {"upload_id": "upload-1", "part_number": 2} for r in error_records)

    def test_session_init_failure(self, orchestrator, mock_storage):
        """Test a failed initiate uploads nothing and attempts no abort."""
        mock_storage.create_multipart_upload.side_effect = S3Exception("Failed to create multipart upload: NoSuchBucket")

        outcome = orchestrator.upload(b"data", KEY)

        assert outcome.succeeded is False
        assert outcome.error_type == "SessionInitError"
        assert "NoSuchBucket" in outcome.message
        assert outcome.upload_id is None
        assert outcome.abort_attempted is False
        mock_storage.upload_part.assert_not_called()
        mock_storage.abort_multipart_upload.assert_not_called()
        mock_storage.complete_multipart_upload.assert_not_called()

        with pytest.raises(SessionInitError):
            outcome.raise_for_failure()

    def test_completion_failure_does_not_abort(self, orchestrator, mock_storage, twelve_mib):
        """Test a failed complete is reported without an abort."""
        mock_storage.complete_multipart_upload.side_effect = S3Exception("Failed to complete multipart upload: InvalidPart")

        outcome = orchestrator.upload(twelve_mib, KEY)

        assert outcome.succeeded is False
        assert outcome.error_type == "CompletionError"
        assert "InvalidPart" in outcome.message
        assert outcome.abort_attempted is False
        assert outcome.parts_uploaded == 3
        mock_storage.complete_multipart_upload.assert_called_once()
        mock_storage.abort_multipart_upload.assert_not_called()

        with pytest.raises(CompletionError):
            outcome.raise_for_failure()

    def test_empty_source_rejected(self, orchestrator, mock_storage):
        """Test a zero-length source is rejected before any storage call."""
        outcome = orchestrator.upload(b"", KEY)

        assert outcome.succeeded is False
        assert outcome.error_type == "EmptySourceError"
        assert outcome.abort_attempted is False
        assert mock_storage.method_calls == []

        with pytest.raises(EmptySourceError):
            outcome.raise_for_failure()

    def test_orchestrator_is_single_use(self, orchestrator):
        """Test a finished orchestrator refuses another upload."""
        orchestrator.upload(b"data", KEY)

        with pytest.raises(OrchestratorStateError):
            orchestrator.upload(b"more", KEY)

    def test_orchestrator_single_use_after_failure(self, orchestrator, mock_storage):
        """Test a failed run also ends the orchestrator's lifecycle."""
        mock_storage.create_multipart_upload.side_effect = S3Exception("down")
        orchestrator.upload(b"data", KEY)

        assert orchestrator.state == UploadState.DONE
        with pytest.raises(OrchestratorStateError):
            orchestrator.upload(b"data", KEY)

    def test_retry_budget_comes_from_settings(self, mock_storage, settings):
        """Test the default PartUploader uses max_retries from settings."""
        settings.max_retries = 2
        mock_storage.upload_part.side_effect = S3Exception("down")
        orchestrator = UploadOrchestrator(mock_storage, settings)

        outcome = orchestrator.upload(b"data", KEY)

        assert outcome.error_type == "PartUploadError"
        assert mock_storage.upload_part.call_count == 2

    def test_injected_part_uploader_is_used(self, mock_storage, settings):
        """Test a supplied PartUploader replaces the default one."""
        uploader = PartUploader(mock_storage, max_retries=1)
        mock_storage.upload_part.side_effect = [S3Exception("once"), '"etag"']
        orchestrator = UploadOrchestrator(mock_storage, settings, part_uploader=uploader)

        outcome = orchestrator.upload(b"data", KEY)

        assert outcome.succeeded is False
        assert mock_storage.upload_part.call_count == 1
        mock_storage.abort_multipart_upload.assert_called_once()

    def test_success_outcome_raise_for_failure_is_noop(self, orchestrator):
        """Test raise_for_failure does nothing for a successful upload."""
        outcome = orchestrator.upload(b"data", KEY)

        outcome.raise_for_failure()
