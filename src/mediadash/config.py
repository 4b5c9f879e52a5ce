"""Environment-sourced settings.

Every value can be overridden with a ``MEDIADASH_``-prefixed environment
variable or a ``.env`` file in the working directory.
"""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MEDIADASH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    API_BASE_URL: str = "http://127.0.0.1:8000"
    HTTP_TIMEOUT: float = Field(default=30.0, gt=0)

    # Seconds between stats/items refreshes and between progress polls.
    REFRESH_INTERVAL: float = Field(default=5.0, gt=0)
    PROGRESS_INTERVAL: float = Field(default=0.7, gt=0)
    PROGRESS_MAX_POLLS: int = Field(default=1000, ge=1)

    LATEST_LIMIT: int = Field(default=10, ge=1)
    LOG_LEVEL: str = "INFO"


settings = Settings()
