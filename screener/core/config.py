# screener/core/config.py
from typing import Optional
from pydantic import AnyUrl
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    # JSON log lines; when unset, enabled only for APP_ENV=production
    LOG_JSON: Optional[bool] = None

    # MongoDB
    MONGODB_URI: str = "mongodb://localhost:27017/resume_screener"
    MONGODB_DB: str = "resume_screener"

    # LLM
    # Adapter selection: 'mock', 'http', 'gemini' or a dotted module path
    LLM_ADAPTER: str = "mock"
    LLM_API_KEY: Optional[str] = None
    # generic HTTP adapter endpoint
    LLM_HTTP_URL: Optional[AnyUrl] = None
    # gemini adapter
    LLM_MODEL: str = "gemini-2.0-flash"
    LLM_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta"
    # per-attempt wait; the whole call is bounded by attempts * (timeout + backoff)
    LLM_TIMEOUT_SEC: float = 30.0
    LLM_MAX_ATTEMPTS: int = 3
    LLM_RETRY_DELAY_SEC: float = 1.0
    LLM_MAX_OUTPUT_TOKENS: int = 2048
    LLM_TEMPERATURE: float = 0.3

    # Uploads
    UPLOAD_MIN_BYTES: int = 1024
    UPLOAD_MAX_BYTES: int = 5 * 1024 * 1024
    # leading bytes inspected for script / executable markers
    UPLOAD_SCAN_BYTES: int = 1024
    UPLOAD_MAX_FILES: int = 20

    # Ranking
    STANDOUT_FRACTION: float = 0.2

    # Pydantic v2 settings: read from .env file
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def json_logs(self) -> bool:
        if self.LOG_JSON is not None:
            return self.LOG_JSON
        return self.APP_ENV.lower() == "production"

# single shared settings instance
settings = Settings()
