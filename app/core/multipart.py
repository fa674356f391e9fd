"""multipart/form-data body parsing on top of python-multipart."""

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from app.core.errors import MalformedMultipartError
from app.models.core import FilePart, MultipartForm

FORM_DATA = b"multipart/form-data"


def safe_decode(raw: bytes, charset: str = "utf-8") -> str:
    try:
        return raw.decode(charset)
    except UnicodeDecodeError:
        return raw.decode("latin-1")


class PartCollector:
    """MultipartParser callback sink.

    Every part with a ``filename`` becomes a FilePart, kept in the order it
    arrived even when names repeat. Other parts are text fields, last one wins.
    """

    def __init__(self) -> None:
        self.parts: list[FilePart] = []
        self.fields: dict[str, str] = {}
        self._headers: dict[bytes, bytes] = {}
        self._header_field = b""
        self._header_value = b""
        self._data = bytearray()

    def on_part_begin(self) -> None:
        self._headers = {}
        self._data = bytearray()

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        self._headers[self._header_field.lower()] = self._header_value
        self._header_field = b""
        self._header_value = b""

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        self._data += data[start:end]

    def on_part_end(self) -> None:
        _, options = parse_options_header(self._headers.get(b"content-disposition", b""))
        name = safe_decode(options.get(b"name", b""))
        filename = options.get(b"filename")

        if filename is None:
            self.fields[name] = safe_decode(bytes(self._data))
            return

        self.parts.append(
            FilePart(
                field_name=name,
                filename=safe_decode(filename),
                content_type=safe_decode(self._headers.get(b"content-type", b"")).strip(),
                content=bytes(self._data),
            )
        )

    def callbacks(self) -> dict:
        return {
            "on_part_begin": self.on_part_begin,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
        }


def parse_multipart(body: bytes | str | None, content_type: str | None) -> MultipartForm:
    """Parse a request body into a MultipartForm.

    Non-multipart or empty bodies give an empty form. Raises
    MalformedMultipartError when the boundary is missing or the body is broken.
    """
    mime_type, params = parse_options_header(content_type or "")
    if mime_type != FORM_DATA or not body:
        return MultipartForm()

    boundary = params.get(b"boundary")
    if not boundary:
        raise MalformedMultipartError()

    if isinstance(body, str):
        body = body.encode("utf-8")

    collector = PartCollector()
    parser = MultipartParser(boundary, collector.callbacks())
    try:
        parser.write(body)
        parser.finalize()
    except MultipartParseError as ex:
        raise MalformedMultipartError() from ex

    return MultipartForm(parts=collector.parts, fields=collector.fields)
