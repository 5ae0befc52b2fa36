from functools import lru_cache
from typing import Iterable

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_PATH = "x7k9p2m-q8z-send-v3"
# Blank values count as missing
MISSING_ERROR_TYPES = {"missing", "string_too_short"}


class Settings(BaseSettings):
    telegram_token: str = Field(..., min_length=1, validation_alias="TELEGRAM_TOKEN")
    telegram_chat_id: str = Field(..., min_length=1, validation_alias="TELEGRAM_CHAT_ID")
    secret_path: str = Field(DEFAULT_SECRET_PATH, validation_alias="SECRET_PATH")

    host: str = Field("0.0.0.0", validation_alias="HOST")
    port: int = Field(3000, validation_alias="PORT")
    cors_allow_origins: str = Field("*", validation_alias="CORS_ALLOW_ORIGINS")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

    telegram_api_url: str = Field("https://api.telegram.org", validation_alias="TELEGRAM_API_URL")
    telegram_polling_enabled: bool = Field(True, validation_alias="TELEGRAM_POLLING_ENABLED")
    telegram_poll_timeout: int = Field(30, validation_alias="TELEGRAM_POLL_TIMEOUT")
    telegram_poll_retry_seconds: float = Field(3.0, validation_alias="TELEGRAM_POLL_RETRY_SECONDS")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    @field_validator("telegram_token", "telegram_chat_id", mode="before")
    @classmethod
    def _strip_required(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("secret_path")
    @classmethod
    def _strip_slashes(cls, value: str) -> str:
        value = value.strip().strip("/")
        return value or DEFAULT_SECRET_PATH

    @field_validator("telegram_poll_timeout")
    @classmethod
    def _non_negative_timeout(cls, value: int) -> int:
        if value < 0:
            raise ValueError("Poll timeout must not be negative")
        return value

    @property
    def cors_origins(self) -> list[str]:
        origins = [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]
        return origins or ["*"]

    @property
    def send_path(self) -> str:
        return f"/{self.secret_path}"


def _format_missing(fields: Iterable[str]) -> str:
    """Return a comma-separated list of missing env vars, without duplicates."""
    unique: list[str] = []
    for field in fields:
        if field not in unique:
            unique.append(field)
    return ", ".join(unique)


@lru_cache()
def get_settings() -> Settings:
    """Load settings from the environment once per process."""
    try:
        return Settings()
    except ValidationError as exc:
        missing = [str(error["loc"][0]) for error in exc.errors() if error["type"] in MISSING_ERROR_TYPES]
        if missing:
            raise RuntimeError(f"Missing required environment variables: {_format_missing(missing)}") from exc
        raise RuntimeError(f"Invalid configuration: {exc}") from exc
