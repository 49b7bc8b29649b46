from functools import lru_cache
from pathlib import Path
from typing import List
from urllib.parse import urlparse
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=str(ENV_FILE), case_sensitive=False)

    APP_NAME: str = "SCSVMV Visitor Management System"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    API_V1_PREFIX: str = "/api/v1"
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 8000

    DATABASE_URL: str = "sqlite:///./vms.db"

    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int = 14

    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Visitor pass codes look like SCSVMV102345J.
    UID_PREFIX: str = "SCSVMV"
    UID_RANDOM_LENGTH: int = 6
    UID_MAX_ATTEMPTS: int = 5
    APPROVED_VISITORS_WINDOW_DAYS: int = 30

    SECURITY_ACCESS_PIN: str = ""
    SECURITY_SESSION_HOURS: int = 8

    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASS: str = ""
    SMTP_FROM: str = "noreply@scsvmv.ac.in"
    SMTP_FROM_NAME: str = "SCSVMV Visitor System"
    SMTP_STARTTLS: bool = True
    SMTP_SSL_TLS: bool = False
    MAIL_SUPPRESS_SEND: bool = False
    BARCODE_API_URL: str = "https://bwipjs-api.metafloor.com/"

    # Uploaded visitor photos are written here and served under MEDIA_URL_PREFIX.
    MEDIA_DIR: str = str(Path(__file__).resolve().parents[2] / "media")
    MEDIA_URL_PREFIX: str = "/media"

    SUPERADMIN_EMAIL: str = ""
    SUPERADMIN_PASSWORD: str = ""

    LOGIN_RATE_LIMIT_MAX: int = 5
    LOGIN_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    PASSWORD_RESET_RATE_LIMIT_MAX: int = 3
    PASSWORD_RESET_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    PUBLIC_FORM_RATE_LIMIT_MAX: int = 10
    PUBLIC_FORM_RATE_LIMIT_WINDOW_SECONDS: int = 60 * 60
    RATE_LIMIT_SWEEP_SECONDS: int = 60

    @property
    def cors_origins(self) -> List[str]:
        origins: list[str] = []
        for raw in self.CORS_ORIGINS.split(","):
            value = raw.strip()
            if not value:
                continue
            parsed = urlparse(value)
            if parsed.scheme and parsed.netloc:
                value = f"{parsed.scheme}://{parsed.netloc}"
            origins.append(value.rstrip("/"))
        return origins


@lru_cache
def get_settings() -> Settings:
    return Settings()
