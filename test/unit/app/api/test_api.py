"""Tests for the upload and health endpoints."""

import re

import pytest

from app.api.health import health_status, utc_timestamp
from app.api.upload import build_upload_request, handle_upload
from app.core.router import FILE_UPLOAD_ENDPOINTS, parse_multipart_form, parse_response
from app.middlewares.uploads import UploadLimitsMiddleware
from app.models.upload import BatchReport, ErrorResponse
from app.services.orchestrator import UploadOrchestrator


class ExplodingOrchestrator:
    async def run_batch(self, request):
        raise RuntimeError("event loop is closed")


def test_upload_endpoint_is_guarded_by_transport_limits() -> None:
    assert "/api/upload" in FILE_UPLOAD_ENDPOINTS


# -----------------------------------------------------------------------------
# build_upload_request Tests
# -----------------------------------------------------------------------------


class TestBuildUploadRequest:
    """Tests for build_upload_request."""

    def test_declared_types_are_used(self, make_form) -> None:
        form = make_form(("a.png", b"1", "image/png"), ("b", b"2", "image/jpeg"), directory="avatars")

        request = build_upload_request(form)

        assert request.directory == "avatars"
        assert [(f.original_name, f.mime_type) for f in request.files] == [("a.png", "image/png"), ("b", "image/jpeg")]

    def test_name_is_fallback_when_type_missing(self, make_form) -> None:
        request = build_upload_request(make_form(("a.webp", b"1"), directory="d"))

        assert request.files[0].mime_type == "image/webp"

    def test_only_files_field_is_uploaded(self, make_upload_request) -> None:
        form = parse_multipart_form(
            make_upload_request(
                [("files", "a.png", "image/png", b"1"), ("avatar", "b.png", "image/png", b"2")],
                fields={"directory": "d"},
            )
        )

        assert [f.original_name for f in build_upload_request(form).files] == ["a.png"]


# -----------------------------------------------------------------------------
# handle_upload Tests
# -----------------------------------------------------------------------------


class TestHandleUpload:
    """Tests for handle_upload status mapping."""

    async def test_success_is_200_report(self, fake_storage, make_form) -> None:
        form = make_form(("a.png", b"1"), ("b.png", b"2"), directory="d")

        status, body = await handle_upload(form, UploadOrchestrator(fake_storage))

        assert status == 200
        assert isinstance(body, BatchReport)
        assert body.message == "2 file(s) uploaded successfully"

    async def test_partial_failure_is_still_200(self, make_storage, make_form) -> None:
        form = make_form(("a.png", b"ok"), ("b.png", b"bad"), directory="d")

        status, body = await handle_upload(form, UploadOrchestrator(make_storage(fail_on={b"bad"})))

        assert status == 200
        assert body.success is True
        assert body.message == "1 file(s) uploaded successfully, 1 failed"

    async def test_total_failure_is_still_200(self, make_storage, make_form) -> None:
        form = make_form(("a.png", b"bad"), directory="d")

        status, body = await handle_upload(form, UploadOrchestrator(make_storage(fail_on={b"bad"})))

        assert status == 200
        assert body.success is False

    @pytest.mark.parametrize(
        ("files", "directory", "message"),
        [
            ([("a.png", b"1")], None, "Directory name is required"),
            ([], "d", "No files uploaded"),
        ],
    )
    async def test_request_validation_is_400(self, fake_storage, make_form, files, directory, message) -> None:
        status, body = await handle_upload(make_form(*files, directory=directory), UploadOrchestrator(fake_storage))

        assert status == 400
        assert body == ErrorResponse(message=message)
        assert fake_storage.calls == []

    async def test_unexpected_error_is_500(self, make_form) -> None:
        form = make_form(("a.png", b"1"), directory="d")

        status, body = await handle_upload(form, ExplodingOrchestrator())

        assert status == 500
        assert body == ErrorResponse(message="Upload failed", error="event loop is closed")

    async def test_response_shape(self, fake_storage, make_form) -> None:
        form = make_form(("a.png", b"1"), directory="d")

        response = parse_response(await handle_upload(form, UploadOrchestrator(fake_storage)))
        payload = response.description

        assert response.status_code == 200
        for key in ('"success":true', '"results":[', '"originalName":"a.png"', '"newName":', '"etag":'):
            assert key in payload
        assert '"error"' not in payload


# -----------------------------------------------------------------------------
# Multipart body to report
# -----------------------------------------------------------------------------


class TestUploadFromMultipartBody:
    """A raw form-data request through the transport limits and the handler."""

    async def _upload(self, request, storage) -> BatchReport:
        assert UploadLimitsMiddleware(endpoints=["/api/upload"]).before(request) is request
        status, report = await handle_upload(parse_multipart_form(request), UploadOrchestrator(storage))
        assert status == 200
        return report

    async def test_same_named_parts_each_get_an_outcome(self, fake_storage, make_upload_request) -> None:
        request = make_upload_request(
            [("files", "photo.jpg", "image/jpeg", b"from-a"), ("files", "photo.jpg", "image/jpeg", b"from-b")],
            fields={"directory": "trips"},
        )

        report = await self._upload(request, fake_storage)

        assert report.message == "2 file(s) uploaded successfully"
        assert [r.original_name for r in report.results] == ["photo.jpg", "photo.jpg"]
        assert len({r.key for r in report.results}) == 2
        assert sorted(content for _, content, _ in fake_storage.calls) == [b"from-a", b"from-b"]

    async def test_extensionless_jpeg_is_accepted(self, fake_storage, make_upload_request) -> None:
        request = make_upload_request([("files", "scan", "image/jpeg", b"\xff\xd8\xff")], fields={"directory": "d"})

        report = await self._upload(request, fake_storage)

        assert report.success is True
        assert report.results[0].new_name.endswith(".")
        assert fake_storage.calls[0][2] == "image/jpeg"

    async def test_results_follow_part_order(self, fake_storage, make_upload_request) -> None:
        names = [f"img{i}.png" for i in range(5)]
        request = make_upload_request(
            [("files", name, "image/png", name.encode()) for name in names], fields={"directory": "d"}
        )

        report = await self._upload(request, fake_storage)

        assert [r.original_name for r in report.results] == names


# -----------------------------------------------------------------------------
# Health Tests
# -----------------------------------------------------------------------------


def test_utc_timestamp_is_iso8601_zulu() -> None:
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", utc_timestamp())


def test_health_status() -> None:
    health = health_status()

    assert health.status == "ok"
    assert health.message == "Backend API is running"
    assert health.timestamp.endswith("Z")
