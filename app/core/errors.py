"""Error taxonomy for the upload gateway."""


class GatewayError(Exception):
    """Base class for errors raised by the upload gateway."""

    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class ConfigurationError(GatewayError):
    """Settings cannot produce a usable service (e.g. no bucket)."""


# -----------------------------------------------------------------------------
# Request level: the whole request is rejected, nothing is uploaded
# -----------------------------------------------------------------------------


class RequestValidationError(GatewayError):
    """The request shape is invalid."""


class MissingDirectoryError(RequestValidationError):
    message = "Directory name is required"


class NoFilesError(RequestValidationError):
    message = "No files uploaded"


class MalformedMultipartError(RequestValidationError):
    message = "Malformed multipart/form-data body"


# -----------------------------------------------------------------------------
# File level
# -----------------------------------------------------------------------------


class FileRejectedError(GatewayError):
    """A single file breaks the type or size constraints."""


class UnsupportedMediaTypeError(FileRejectedError):
    message = "Invalid file type. Only JPG, PNG, GIF, and WEBP are allowed."


class PayloadTooLargeError(FileRejectedError):
    message = "File size too large. Maximum size is 5MB"


class StorageWriteError(GatewayError):
    """The object store refused or failed a write. Message is the backend's own."""
