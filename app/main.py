"""robyn-upload-gateway - multi-file image uploads to S3-compatible storage, powered by Robyn."""

import os

from robyn import ALLOW_CORS, Robyn, status_codes

from app.api.health import router as health_router
from app.api.upload import router as upload_router
from app.core.lifespan import create_lifespan
from app.core.logger import LogIcon, logger
from app.core.router import json_response
from app.core.settings import settings as st
from app.events.storage import StorageEvent
from app.middlewares.base import MiddlewareHandler
from app.middlewares.uploads import UploadLimitsMiddleware
from app.models.upload import ErrorResponse

app = Robyn(__file__)

# Cross-origin allow-list
ALLOW_CORS(app, origins=st.ALLOWED_ORIGINS)

# Lifespan events
lifespan = create_lifespan(app)
lifespan.register(StorageEvent)

app.startup_handler(lifespan.startup)
app.shutdown_handler(lifespan.shutdown)

# Routers
app.include_router(health_router)
app.include_router(upload_router)

# Middlewares, after routers so upload endpoints are known
middlewares = MiddlewareHandler(app)
middlewares.register(
    UploadLimitsMiddleware,
    allowed_types=st.ALLOWED_FILE_TYPES,
    max_file_size=st.MAX_FILE_SIZE,
)


@app.exception
def handle_exception(error: Exception):
    logger.error("Unhandled error", icon=LogIcon.ERROR, error=str(error))
    return json_response(
        ErrorResponse(message=str(error) or "Internal server error"),
        status_codes.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def main() -> None:
    logger.info("STARTING %s | HOST=%s | PORT=%s", st.API_NAME, st.API_HOST, st.API_PORT, icon=LogIcon.START)
    logger.info(
        "API endpoints",
        icon=LogIcon.NETWORK,
        health=f"GET {st.api_url}/api/health",
        upload=f"POST {st.api_url}/api/upload",
    )
    # Robyn reads its body limit from the environment when the server starts
    os.environ.setdefault("ROBYN_MAX_PAYLOAD_SIZE", str(st.MAX_REQUEST_SIZE))
    app.start(host=st.API_HOST, port=st.API_PORT)


if __name__ == "__main__":
    main()
