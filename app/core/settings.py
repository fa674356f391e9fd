"""Unified settings for robyn-upload-gateway."""

import importlib.metadata
import tomllib
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MEBIBYTE = 1024 * 1024


def read_pyproject(pyproject_path: Path) -> dict:
    """Read pyproject.toml into a dict, empty when the file is not shipped."""
    if not pyproject_path.is_file():
        return {}
    with pyproject_path.open("rb") as file_handle:
        return tomllib.load(file_handle)


def get_version(project: dict) -> str:
    """Get version from installed package metadata or fallback to pyproject."""
    name = project.get("name", "robyn-upload-gateway")
    try:
        return importlib.metadata.version(name)
    except importlib.metadata.PackageNotFoundError:
        return project.get("version", "0.0.0")


class Settings(BaseSettings):
    """Unified settings for the upload gateway.

    Built once at process start and never mutated; services receive the
    values they need explicitly instead of reading this module.
    """

    DEBUG: bool = True
    ENVIRONMENT: Literal["DEV", "PROD"] = "DEV"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # ClassVar to prevent Pydantic from trying to load from env
    BASE_DIR: ClassVar[Path] = Path(__file__).parent.parent.parent
    PROJECT: ClassVar[dict] = read_pyproject(BASE_DIR / "pyproject.toml").get("project", {})
    API_NAME: ClassVar[str] = PROJECT.get("name", "robyn-upload-gateway")
    API_DESCRIPTION: ClassVar[str] = PROJECT.get("description", "Upload gateway")
    API_VERSION: ClassVar[str] = get_version(PROJECT)

    # Server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = Field(default=3001, validation_alias=AliasChoices("API_PORT", "PORT"))
    ALLOWED_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Object storage
    AWS_REGION: str = "us-east-1"
    AWS_BUCKET_NAME: str | None = None
    AWS_ACCESS_KEY_ID: str | None = None
    AWS_SECRET_ACCESS_KEY: str | None = None
    STORAGE_ENDPOINT: str | None = None
    STORAGE_PUBLIC_HOST: str | None = None
    STORAGE_MAX_CONNECTIONS: int = 10

    # Uploads
    UPLOAD_TIMEOUT: float | None = None
    MAX_REQUEST_SIZE: int = 50 * MEBIBYTE
    MAX_FILE_SIZE: ClassVar[int] = 5 * MEBIBYTE
    ALLOWED_FILE_TYPES: ClassVar[frozenset[str]] = frozenset(
        {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
    )

    @property
    def api_url(self) -> str:
        return f"http://{self.API_HOST}:{self.API_PORT}"

    @property
    def storage_public_host(self) -> str:
        """Host part of public object URLs, AWS virtual-hosted style by default."""
        return self.STORAGE_PUBLIC_HOST or f"s3.{self.AWS_REGION}.amazonaws.com"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )


settings = Settings()  # type: ignore
