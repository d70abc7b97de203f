from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables and defaults.

    Covers where mock definitions live on disk, how mock files are named,
    the fallback content type for mocks that do not declare one, the admin
    route prefix and the bind address used by `run()`. Every field can be
    overridden with a `MOCKWARP_`-prefixed environment variable or a `.env`
    file.
    """

    # Mock Storage
    mocks_dir: str = Field(
        default="./mocks",
        description="Root directory holding mock definitions, organized by request path.",
    )
    mock_file_extension: str = Field(
        default=".mock",
        description="Suffix of mock files. A GET request is served from '<directory>/GET<suffix>'.",
    )

    # Response Defaults
    default_content_type: str = Field(
        default="text/html; charset=utf-8",
        description="Content-Type sent when a mock definition does not set one itself.",
    )

    # Admin Routes
    admin_prefix: str = Field(
        default="/__mockwarp",
        description="Path prefix for the health and metrics endpoints, chosen so it does not collide with mocked paths.",
    )

    # Server
    host: str = Field(default="127.0.0.1", description="Host the server binds to.")
    port: int = Field(default=8000, ge=1, le=65535, description="Port the server binds to.")
    log_level: str = Field(
        default="DEBUG",
        description="Level applied to the mockwarp logger at startup.",
    )

    model_config = SettingsConfigDict(
        env_prefix="MOCKWARP_",
        env_file=".env",
        env_file_encoding="utf-8",
        validate_assignment=True,
        extra="allow",
    )


settings = Settings()
