# billing_docs/core/config.py
import os
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


class Settings(BaseModel):
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "Clinic Billing Documents")
    API_V1_STR: str = os.getenv("API_V1_STR", "/api")

    # CORS (env takes priority)
    BACKEND_CORS_ORIGINS: List[str] = _split_csv(
        os.getenv(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ))

    # ---------- Upstream billing API ----------
    BILLING_API_BASE_URL: str = os.getenv("BILLING_API_BASE_URL",
                                          "http://127.0.0.1:8000/api")
    HTTP_TIMEOUT_SECONDS: float = float(
        os.getenv("HTTP_TIMEOUT_SECONDS", "15") or 15)

    # ---------- Logo / image assets ----------
    ASSET_DIR: str = os.getenv("ASSET_DIR", "./assets")
    ASSET_TIMEOUT_SECONDS: float = float(
        os.getenv("ASSET_TIMEOUT_SECONDS", "8") or 8)
    FALLBACK_LOGO_URL: str = os.getenv("FALLBACK_LOGO_URL", "")

    # ---------- Documents ----------
    CURRENCY_CODE: str = os.getenv("CURRENCY_CODE", "INR")
    CURRENCY_WORD: str = os.getenv("CURRENCY_WORD", "Rupees")
    UPI_DEFAULT_NOTE: str = os.getenv("UPI_DEFAULT_NOTE", "Fees")
    TIMEZONE: str = os.getenv("TIMEZONE", "Asia/Kolkata")
    OUTPUT_DIR: str = os.getenv("OUTPUT_DIR", "./output")

    # ---------- Logging ----------
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "")


settings = Settings()
