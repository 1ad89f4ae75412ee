"""
Pydantic Settings — centralized configuration loaded from environment variables.
"""

import os

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Storage ───────────────────────────────
    DATA_DIR: str = "."
    RECORDS_FILE: str = "relevantNumbers.xlsx"

    # ── Spreadsheet column positions (0-based) ──
    COL_TRADER_INVOICE_NUMBER: int = 0
    COL_RELEVANT_NUMBER: int = 1
    COL_DEVICE_NUMBER: int = 2
    COL_BUYER_PIN: int = 5
    COL_BUYER_NAME: int = 6

    # ── Devices ───────────────────────────────
    # JSON object in env, e.g. DEVICES='{"D1": "http://10.0.0.5:8086/api/v3/"}'
    DEVICES: dict[str, str] = Field(default_factory=dict)
    DEVICES_FILE: str = ""
    DEVICE_PIN: str = "0000"

    # Seconds. PIN < fetch < submit, matching device processing time.
    PIN_TIMEOUT: float = 30.0
    FETCH_TIMEOUT: float = 45.0
    CREDIT_NOTE_SUBMIT_TIMEOUT: float = 60.0
    CORRECT_INVOICE_SUBMIT_TIMEOUT: float = 120.0

    # ── Redis / Celery ────────────────────────
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"

    # ── Application ───────────────────────────
    APP_ENV: str = "development"
    LOG_LEVEL: str = ""
    PORT: int = 3000

    model_config = {"env_file": ["../.env", ".env"], "extra": "ignore"}

    @property
    def records_path(self) -> str:
        """RECORDS_FILE resolved against DATA_DIR unless already absolute."""
        if os.path.isabs(self.RECORDS_FILE):
            return self.RECORDS_FILE
        return os.path.join(self.DATA_DIR, self.RECORDS_FILE)

    @property
    def log_level(self) -> str:
        if self.LOG_LEVEL:
            return self.LOG_LEVEL.upper()
        return "DEBUG" if self.APP_ENV == "development" else "INFO"


settings = Settings()


def get_settings() -> Settings:
    """Return the process-wide settings instance (FastAPI dependency)."""
    return settings
