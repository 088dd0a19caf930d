"""
File Service for loading upload sources.
Reads the source file into memory and works out its content type and object key.
"""
import mimetypes
import os
from typing import Optional
from multipart_uploader.core.exceptions import ValidationException

SNIFF_LENGTH = 512
DEFAULT_CONTENT_TYPE = "application/octet-stream"

_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"%PDF-", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b\x08", "application/x-gzip"),
)


class SourceFile:
    """In-memory content of a file to upload."""

    def __init__(self, name: str, data: bytes, content_type: str):
        self.name = name
        self.data = data
        self.content_type = content_type

    @property
    def size(self) -> int:
        return len(self.data)

    def __repr__(self):
        return f"SourceFile(name={self.name}, size={self.size}, content_type={self.content_type})"


class FileService:
    """Service for reading source files."""

    def load(self, path: str) -> SourceFile:
        """
        Read a file fully into memory.

        Args:
            path: Path of the file to upload

        Returns:
            SourceFile with the content and detected content type

        Raises:
            ValidationException: If the path is not a readable regular file
        """
        if not os.path.isfile(path):
            raise ValidationException(f"Not a regular file: {path}")
        try:
            with open(path, 'rb') as f:
                data = f.read()
        except OSError as e:
            raise ValidationException(f"Error opening file: {str(e)}") from e

        return SourceFile(
            name=os.path.basename(path),
            data=data,
            content_type=self.detect_content_type(data, path)
        )

    def detect_content_type(self, data: bytes, filename: Optional[str] = None) -> str:
        """
        Guess the MIME type from the leading bytes, then from the file name.

        Falls back to application/octet-stream.
        """
        head = data[:SNIFF_LENGTH]
        for signature, content_type in _SIGNATURES:
            if head.startswith(signature):
                return content_type

        if filename:
            guessed, _ = mimetypes.guess_type(filename)
            if guessed:
                return guessed

        if head and self._looks_like_text(head):
            return "text/plain; charset=utf-8"
        return DEFAULT_CONTENT_TYPE

    def object_key(self, prefix: str, path: str) -> str:
        """Build the object key: prefix followed by the file's base name."""
        name = os.path.basename(path)
        if not name:
            raise ValidationException(f"Cannot derive an object key from: {path}")
        if prefix and not prefix.endswith('/'):
            prefix += '/'
        return f"{prefix}{name}"

    @staticmethod
    def _looks_like_text(head: bytes) -> bool:
        if b"\x00" in head:
            return False
        try:
            head.decode('utf-8')
        except UnicodeDecodeError as e:
            # a multi-byte character may straddle the sniff boundary
            return e.reason == 'unexpected end of data'
        return True
