"""Multi-file upload endpoint."""

from robyn import status_codes

from app.core.errors import RequestValidationError
from app.core.logger import LogIcon, logger
from app.core.router import Router
from app.core.settings import settings as st
from app.models.core import MultipartForm
from app.models.upload import DIRECTORY_FIELD, FILES_FIELD, BatchReport, ErrorResponse, UploadRequest
from app.services.orchestrator import UploadOrchestrator
from app.services.validation import to_blob

router = Router(__file__, prefix="/api")


def build_upload_request(form: MultipartForm) -> UploadRequest:
    return UploadRequest(
        directory=form.field(DIRECTORY_FIELD),
        files=[to_blob(part.filename, part.content, part.content_type) for part in form.files(FILES_FIELD)],
    )


async def handle_upload(
    form: MultipartForm,
    orchestrator: UploadOrchestrator,
) -> tuple[int, BatchReport | ErrorResponse]:
    """Run the batch and map its result onto an HTTP status and body."""
    try:
        report = await orchestrator.run_batch(build_upload_request(form))
    except RequestValidationError as ex:
        logger.warning("Rejected upload request", icon=LogIcon.VALIDATION, reason=ex.message)
        return status_codes.HTTP_400_BAD_REQUEST, ErrorResponse(message=ex.message)
    except Exception as ex:
        logger.exception("Upload error", icon=LogIcon.ERROR)
        return status_codes.HTTP_500_INTERNAL_SERVER_ERROR, ErrorResponse(message="Upload failed", error=str(ex))

    return status_codes.HTTP_200_OK, report


@router.post("/upload")
async def upload_files(form: MultipartForm, global_dependencies):
    """Upload every ``files`` part of the form under the ``directory`` field."""
    storage = global_dependencies["state"].storage
    orchestrator = UploadOrchestrator(storage, timeout=st.UPLOAD_TIMEOUT)
    return await handle_upload(form, orchestrator)
