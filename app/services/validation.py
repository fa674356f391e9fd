"""Request and per-file validation."""

import mimetypes
from collections.abc import Collection

from app.core.errors import (
    MissingDirectoryError,
    NoFilesError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
)
from app.core.settings import Settings
from app.models.upload import FileBlob, UploadRequest

DEFAULT_MIME_TYPE = "application/octet-stream"

# Not registered by every platform mime.types file
mimetypes.add_type("image/webp", ".webp")


def validate_request(request: UploadRequest) -> None:
    """Raise a RequestValidationError when the batch cannot be processed at all."""
    if not request.directory:
        raise MissingDirectoryError()
    if not request.files:
        raise NoFilesError()


def validate_file(
    blob: FileBlob,
    allowed_types: Collection[str] = Settings.ALLOWED_FILE_TYPES,
    max_file_size: int = Settings.MAX_FILE_SIZE,
) -> None:
    """Raise a FileRejectedError when ``blob`` breaks the type or size limits.

    Pure check: type first, then size.
    """
    if blob.mime_type not in allowed_types:
        raise UnsupportedMediaTypeError()
    if blob.size_bytes > max_file_size:
        raise PayloadTooLargeError()


def detect_mime_type(filename: str) -> str:
    """Guess a MIME type from a filename, for parts sent without a Content-Type."""
    mime_type, _ = mimetypes.guess_type(filename, strict=False)
    return mime_type or DEFAULT_MIME_TYPE


def normalize_mime_type(content_type: str) -> str:
    """Declared part type without parameters, ``image/JPEG; x=y`` -> ``image/jpeg``."""
    return content_type.split(";", 1)[0].strip().lower()


def to_blob(filename: str, content: bytes, content_type: str = "") -> FileBlob:
    """Build a FileBlob, trusting the part's declared type and guessing from the name only when none was sent."""
    mime_type = normalize_mime_type(content_type) or detect_mime_type(filename)
    return FileBlob(original_name=filename, mime_type=mime_type, content=content)
