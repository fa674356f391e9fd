"""Batch upload orchestration: validate, fan out, join, summarize."""

import asyncio
from collections.abc import Collection, Sequence

from app.core.logger import LogIcon, logger
from app.core.settings import Settings
from app.models.upload import BatchReport, FileBlob, UploadFailure, UploadOutcome, UploadRequest, UploadSuccess
from app.services.filenames import build_object_key, generate_filename
from app.services.storage import ObjectStorage
from app.services.validation import validate_file, validate_request


def summarize(outcomes: Sequence[UploadOutcome]) -> BatchReport:
    """Fold per-file outcomes into a report; successful when any file succeeded."""
    success_count = sum(1 for outcome in outcomes if outcome.success)
    fail_count = len(outcomes) - success_count

    message = f"{success_count} file(s) uploaded successfully"
    if fail_count > 0:
        message += f", {fail_count} failed"

    return BatchReport(success=success_count > 0, message=message, results=list(outcomes))


class UploadOrchestrator:
    """Runs one batch: one concurrent upload task per file, joined once.

    Every task returns an outcome instead of raising, so a failing file can
    neither cancel its siblings nor unwind the batch.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        timeout: float | None = None,
        allowed_types: Collection[str] = Settings.ALLOWED_FILE_TYPES,
        max_file_size: int = Settings.MAX_FILE_SIZE,
    ) -> None:
        self._storage = storage
        self._timeout = timeout
        self._allowed_types = allowed_types
        self._max_file_size = max_file_size

    async def run_batch(self, request: UploadRequest) -> BatchReport:
        """Upload every file of ``request`` under its directory.

        Raises RequestValidationError before any upload starts when the
        directory or the file list is missing.
        """
        validate_request(request)

        logger.info(
            "Starting batch upload",
            icon=LogIcon.UPLOAD,
            directory=request.directory,
            files=len(request.files),
        )
        outcomes = await asyncio.gather(*(self._upload_one(request.directory, blob) for blob in request.files))
        report = summarize(outcomes)

        logger.info(report.message, icon=LogIcon.COMPLETE if report.success else LogIcon.WARNING)
        return report

    async def _upload_one(self, directory: str, blob: FileBlob) -> UploadOutcome:
        new_name = generate_filename(blob.original_name)
        key = build_object_key(directory, new_name)

        try:
            validate_file(blob, allowed_types=self._allowed_types, max_file_size=self._max_file_size)
            stored = await asyncio.wait_for(
                self._storage.put_object(key, blob.content, blob.mime_type),
                timeout=self._timeout,
            )
        except Exception as ex:
            error = self._failure_message(ex)
            icon = LogIcon.TIMEOUT if isinstance(ex, TimeoutError) else LogIcon.ERROR
            logger.error("Upload failed", icon=icon, original_name=blob.original_name, key=key, error=error)
            return UploadFailure(original_name=blob.original_name, new_name=new_name, error=error)

        logger.info("Uploaded file", icon=LogIcon.SUCCESS, original_name=blob.original_name, key=key)
        return UploadSuccess(
            original_name=blob.original_name,
            new_name=new_name,
            key=stored.key,
            url=stored.url,
            bucket=stored.bucket,
            region=stored.region,
            etag=stored.etag,
        )

    def _failure_message(self, ex: Exception) -> str:
        """Only our own deadline reads as a timeout; anything else keeps its own text."""
        if isinstance(ex, TimeoutError) and self._timeout is not None:
            return f"Upload timed out after {self._timeout}s"
        return str(ex) or type(ex).__name__
