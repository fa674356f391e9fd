"""Test fixtures for robyn-upload-gateway unit tests."""

import asyncio
import json
from dataclasses import dataclass, field

import boto3
import pytest

from app.core.errors import StorageWriteError
from app.core.lifespan import State
from app.models.core import FilePart, MultipartForm
from app.models.upload import FileBlob, StoredObject
from app.services.storage import S3Storage, build_public_url

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
BOUNDARY = "gateway-test-boundary"


# -----------------------------------------------------------------------------
# Mock classes for Robyn Request
# -----------------------------------------------------------------------------


@dataclass
class MockHeaders:
    """Mock Headers object for Robyn Request."""

    _data: dict = field(default_factory=dict)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key, default)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __setitem__(self, key: str, value: str) -> None:
        self._data[key] = value


@dataclass
class MockRequest:
    """Mock Request object for Robyn."""

    _body: dict | str = field(default_factory=dict)
    headers: MockHeaders = field(default_factory=MockHeaders)
    method: str = "GET"
    path: str = "/"
    body: bytes | str = b""

    def json(self) -> dict:
        if isinstance(self._body, str):
            return json.loads(self._body)
        return self._body


# -----------------------------------------------------------------------------
# Storage doubles
# -----------------------------------------------------------------------------


class FakeStorage:
    """In-memory ObjectStorage that refuses writes of chosen payloads."""

    bucket = "test-bucket"
    region = "us-east-1"

    def __init__(self, fail_on: set[bytes] | None = None, delay: float = 0.0) -> None:
        self.fail_on = fail_on or set()
        self.delay = delay
        self.calls: list[tuple[str, bytes, str]] = []

    async def put_object(self, key: str, content: bytes, content_type: str) -> StoredObject:
        self.calls.append((key, content, content_type))
        if self.delay:
            await asyncio.sleep(self.delay)
        if content in self.fail_on:
            raise StorageWriteError("Access Denied")
        return StoredObject(
            key=key,
            url=build_public_url(self.bucket, f"s3.{self.region}.amazonaws.com", key),
            bucket=self.bucket,
            region=self.region,
            etag='"d41d8cd98f00b204e9800998ecf8427e"',
        )


def make_blob(name: str = "photo.png", mime_type: str = "image/png", content: bytes = PNG_BYTES) -> FileBlob:
    return FileBlob(original_name=name, mime_type=mime_type, content=content)


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def s3_client():
    """Real boto3 S3 client with dummy credentials, meant to be wrapped in a Stubber."""
    client = boto3.client(
        "s3",
        region_name="eu-west-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    yield client
    client.close()


@pytest.fixture
def s3_storage(s3_client) -> S3Storage:
    return S3Storage(s3_client, bucket="uploads", region="eu-west-1")


# -----------------------------------------------------------------------------
# State fixture
# -----------------------------------------------------------------------------


@pytest.fixture(scope="session")
def test_state() -> State:
    """Create a test state container."""
    return State()


@pytest.fixture
def global_dependencies(test_state: State) -> dict:
    """Setup global dependencies for tests."""
    yield {"state": test_state}
    test_state.clear()


@pytest.fixture
def make_mock_request():
    """Factory fixture to create mock requests."""

    def _make(
        body: dict | None = None,
        raw_body: bytes | str = b"",
        headers: dict[str, str] | None = None,
    ) -> MockRequest:
        return MockRequest(
            _body=body or {},
            headers=MockHeaders(headers or {}),
            body=raw_body,
        )

    return _make


def encode_multipart(
    parts: list[tuple[str, str, str | None, bytes]],
    fields: dict[str, str] | None = None,
    boundary: str = BOUNDARY,
) -> bytes:
    """Encode ``(field, filename, content_type, content)`` parts as a form-data body."""
    chunks: list[bytes] = []
    for name, value in (fields or {}).items():
        chunks.append(
            f'--{boundary}\r\nContent-Disposition: form-data; name="{name}"\r\n\r\n{value}\r\n'.encode()
        )
    for name, filename, content_type, content in parts:
        head = f'--{boundary}\r\nContent-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
        if content_type:
            head += f"Content-Type: {content_type}\r\n"
        chunks.append(head.encode() + b"\r\n" + content + b"\r\n")
    chunks.append(f"--{boundary}--\r\n".encode())
    return b"".join(chunks)


@pytest.fixture
def make_upload_request(make_mock_request):
    """Factory fixture to create mock multipart/form-data upload requests."""

    def _make(
        parts: list[tuple[str, str, str | None, bytes]] | None = None,
        fields: dict[str, str] | None = None,
    ) -> MockRequest:
        return make_mock_request(
            raw_body=encode_multipart(parts or [], fields),
            headers={"content-type": f"multipart/form-data; boundary={BOUNDARY}"},
        )

    return _make


@pytest.fixture
def make_form():
    """Factory fixture to build a MultipartForm of ``files`` parts from ``(filename, content[, content_type])``."""

    def _make(*files: tuple, directory: str | None = None) -> MultipartForm:
        parts = [
            FilePart(field_name="files", filename=f[0], content_type=f[2] if len(f) > 2 else "", content=f[1])
            for f in files
        ]
        return MultipartForm(parts=parts, fields={"directory": directory} if directory is not None else {})

    return _make


@pytest.fixture
def make_file_blob():
    """Factory fixture to create FileBlobs, a small PNG by default."""
    return make_blob


@pytest.fixture
def make_storage():
    """Factory fixture to create FakeStorage instances."""
    return FakeStorage


@pytest.fixture
def multipart_body():
    """Encoder fixture: ``multipart_body(*parts, fields=...)`` -> form-data bytes."""

    def _encode(*parts: tuple, fields: dict[str, str] | None = None) -> bytes:
        return encode_multipart(list(parts), fields)

    return _encode
