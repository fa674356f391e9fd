"""Upload domain models and HTTP payloads."""

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Form field names of the upload API
FILES_FIELD = "files"
DIRECTORY_FIELD = "directory"


@dataclass(frozen=True, slots=True)
class FileBlob:
    """One uploaded file, alive only for the request that carried it."""

    original_name: str
    mime_type: str
    content: bytes = field(repr=False)

    @property
    def size_bytes(self) -> int:
        return len(self.content)


@dataclass(frozen=True, slots=True)
class UploadRequest:
    """A batch: target directory plus the files to store under it."""

    directory: str
    files: list[FileBlob] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class StoredObject:
    """What the object store reports back for a successful write."""

    key: str
    url: str
    bucket: str
    region: str
    etag: str


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class UploadSuccess(CamelModel):
    success: Literal[True] = True
    original_name: str
    new_name: str
    key: str
    url: str
    bucket: str
    region: str
    etag: str


class UploadFailure(CamelModel):
    success: Literal[False] = False
    original_name: str
    new_name: str
    error: str


UploadOutcome = UploadSuccess | UploadFailure


class BatchReport(CamelModel):
    """Aggregated result of one batch. ``success`` is true when any file made it."""

    success: bool
    message: str
    results: list[UploadOutcome]


class ErrorResponse(CamelModel):
    success: Literal[False] = False
    message: str
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str
    timestamp: str
