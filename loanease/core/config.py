from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # -------------------------
    # App core settings
    # -------------------------
    APP_NAME: str = "LoanEase Backend"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    LENDER_NAME: str = "LoanEase Finance"
    ALLOW_ORIGINS: List[str] = ["*"]

    # -------------------------
    # Language model (Gemini)
    # -------------------------
    GOOGLE_API_KEY: Optional[str] = None
    GOOGLE_MODEL: str = "gemini-2.5-flash"
    LLM_TIMEOUT_SECONDS: float = 20.0
    LLM_MAX_RETRIES: int = 1
    LLM_HISTORY_WINDOW: int = 6

    # -------------------------
    # Session store
    # -------------------------
    SESSION_MAX_ENTRIES: int = 1000
    SESSION_IDLE_TTL_MINUTES: int = 120

    # -------------------------
    # Loan defaults / uploads
    # -------------------------
    DEFAULT_TENURE_MONTHS: int = 36
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    # -------------------------
    # Pydantic v2 config
    # -------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="forbid"
    )


# Singleton
settings = Settings()
