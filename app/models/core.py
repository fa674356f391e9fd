"""Core models for request/response handling."""

from dataclasses import dataclass, field
from enum import StrEnum


class BodyType(StrEnum):
    """Body content type classification for request parsing."""

    PYDANTIC = "pydantic"
    JSONABLE = "jsonable"
    RAW = "raw"


@dataclass(frozen=True, slots=True)
class FilePart:
    """One file part of a multipart body. ``content_type`` is empty when the client sent none."""

    field_name: str
    filename: str
    content_type: str
    content: bytes = field(repr=False)


class MultipartForm:
    """File parts, in wire order, and text fields of a multipart/form-data request."""

    __slots__ = ("parts", "fields")

    def __init__(self, parts: list[FilePart] | None = None, fields: dict[str, str] | None = None) -> None:
        self.parts = parts or []
        self.fields = fields or {}

    def __bool__(self) -> bool:
        return bool(self.parts)

    def __iter__(self):
        return iter(self.parts)

    def __len__(self) -> int:
        return len(self.parts)

    def files(self, field_name: str) -> list[FilePart]:
        """File parts sent under ``field_name``, duplicates included."""
        return [part for part in self.parts if part.field_name == field_name]

    def field(self, name: str, default: str = "") -> str:
        """Get a text field value."""
        return self.fields.get(name, default)
