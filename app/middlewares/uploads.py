"""Transport-level limits for file upload endpoints."""

from collections.abc import Collection, Iterable

from robyn import Request, Response, status_codes

from app.core.errors import FileRejectedError, MalformedMultipartError, PayloadTooLargeError
from app.core.logger import LogIcon, logger
from app.core.router import FILE_UPLOAD_ENDPOINTS, json_response, parse_multipart_form
from app.core.settings import Settings
from app.middlewares.base import BaseMiddleware
from app.models.upload import FILES_FIELD, ErrorResponse
from app.services.validation import to_blob, validate_file


class UploadLimitsMiddleware(BaseMiddleware):
    """Rejects a whole request as soon as one part breaks the type or size limits.

    Oversized parts answer 400 with a fixed message. Disallowed types answer
    500, which is what clients of the upload API already handle.
    """

    def __init__(
        self,
        endpoints: Iterable[str] | None = None,
        allowed_types: Collection[str] = Settings.ALLOWED_FILE_TYPES,
        max_file_size: int = Settings.MAX_FILE_SIZE,
        field_name: str = FILES_FIELD,
    ) -> None:
        super().__init__(endpoints if endpoints is not None else FILE_UPLOAD_ENDPOINTS)
        self.allowed_types = allowed_types
        self.max_file_size = max_file_size
        self.field_name = field_name

    def before(self, request: Request) -> Request | Response:
        try:
            parts = parse_multipart_form(request).files(self.field_name)
        except MalformedMultipartError as ex:
            logger.warning("Rejected malformed multipart body", icon=LogIcon.FORBIDDEN)
            return json_response(ErrorResponse(message=ex.message), status_codes.HTTP_400_BAD_REQUEST)

        for part in parts:
            try:
                blob = to_blob(part.filename, part.content, part.content_type)
                validate_file(blob, self.allowed_types, self.max_file_size)
            except PayloadTooLargeError as ex:
                logger.warning(
                    "Rejected oversized file", icon=LogIcon.FORBIDDEN, filename=part.filename, size=len(part.content)
                )
                return json_response(ErrorResponse(message=ex.message), status_codes.HTTP_400_BAD_REQUEST)
            except FileRejectedError as ex:
                logger.warning(
                    "Rejected file type", icon=LogIcon.FORBIDDEN, filename=part.filename, content_type=part.content_type
                )
                return json_response(
                    ErrorResponse(message=ex.message, error=ex.message),
                    status_codes.HTTP_500_INTERNAL_SERVER_ERROR,
                )

        return request
