"""Object storage client lifespan event."""

from app.core.lifespan import BaseEvent
from app.core.logger import LogIcon, logger
from app.core.settings import settings as st
from app.services.storage import S3Storage


class StorageEvent(BaseEvent[S3Storage]):
    """Builds the process-wide S3 client once and closes its pool on shutdown."""

    name = "storage"

    async def startup(self) -> S3Storage:
        storage = S3Storage.from_settings(st)
        logger.info(
            "Object storage ready",
            icon=LogIcon.STORAGE,
            bucket=storage.bucket,
            region=storage.region,
            endpoint=st.STORAGE_ENDPOINT or "aws",
        )
        return storage

    async def shutdown(self, instance: S3Storage) -> None:
        instance.close()
