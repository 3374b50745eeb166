from __future__ import annotations

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    SUPABASE_URL: AnyUrl
    SUPABASE_SERVICE_ROLE_KEY: str
    GEMINI_API_KEY: str
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_GATE_MODEL: str = "gemini-2.5-flash-lite"
    APP_ENV: str = "local"
    FRONTEND_CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
    )
    PHOTO_BUCKET: str = "submissions"
    SIGNED_URL_TTL_SECONDS: int = Field(default=3600, ge=60)
    FETCH_TIMEOUT_SECONDS: float = Field(default=12.0, gt=0)
    PIPELINE_WORKERS: int = Field(default=4, ge=1)
    PIPELINE_QUEUE_SIZE: int = Field(default=100, ge=1)


settings = Settings()
