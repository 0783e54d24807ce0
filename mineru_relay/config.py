from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="", extra="ignore")

    SERVICE_NAME: str = "mineru-relay"
    API_PREFIX: str = "/api"
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # MinerU
    MINERU_BASE_URL: str = "https://mineru.net/api/v4"
    ENABLE_FORMULA: bool = True
    ENABLE_TABLE: bool = True
    LAYOUT_MODEL: str = "doclayout_yolo"
    DOC_LANGUAGE: str = "vi"
    IS_OCR: bool = True
    DEFAULT_FILE_NAME: str = "document.pdf"

    # presigned storage rejects unexpected headers; only enable when the bucket demands it
    UPLOAD_SEND_CONTENT_TYPE: bool = False

    # markdown -> docx/pdf conversion service
    PANDOC_SERVICE_URL: str = "http://pandoc:4000"

    # per-call timeouts (seconds)
    REQUEST_TIMEOUT_SEC: float = 30.0
    UPLOAD_TIMEOUT_SEC: float = 120.0

    CORS_ORIGINS: list[str] = ["*"]
    ENABLE_METRICS: bool = True

    # Logging
    LOG_DIR: str | None = None  # 为空时只输出到 stdout
    LOG_LEVEL: str = "INFO"
    LOG_RETENTION_DAYS: int = 10


settings = Settings()
