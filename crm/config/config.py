from decimal import Decimal
from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # ==================== APPLICATION ====================
    PROJECT_NAME: str = "Cosmetic Star CRM API"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # ==================== DATABASE ====================
    DATABASE_URL: str = f"sqlite+aiosqlite:///{BASE_DIR / 'clinic_crm.sqlite'}"
    DATABASE_ECHO: bool = False
    # Create tables on startup (development); production uses alembic
    AUTO_CREATE_TABLES: bool = True

    # ==================== FILE STORAGE ====================
    MEDIA_ROOT: Path = BASE_DIR / "media"
    MEDIA_URL: str = "/media"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    SIGNATURE_FOLDER: str = "signatures"
    PROOF_FOLDER: str = "payment-proofs"

    # ==================== CLINIC ====================
    CLINIC_NAME: str = "Cosmetic Star"
    CLINIC_EMAIL: str = "admin@cosmeticstar.com"
    PRACTITIONER_NAME: str = "Dr. Kavya Sangameswara"
    CURRENCY_SYMBOL: str = "£"
    TIME_SLOTS: List[str] = [
        "09:00", "10:00", "11:00", "12:00",
        "14:00", "15:00", "16:00", "17:00",
    ]
    RECEIPT_PREFIX: str = "CS-RC"
    APPROVAL_THRESHOLD: Decimal = Decimal("1500")

    # ==================== EMAIL ====================
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    FROM_EMAIL: str = "noreply@cosmeticstar.com"
    FROM_NAME: str = "Cosmetic Star Clinic"


settings = Settings()
