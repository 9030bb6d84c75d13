from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env lives at the project root: tapreview/core/config.py -> tapreview/core -> tapreview -> root
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"


class Settings(BaseSettings):
    secret_key: str = "change-me-in-production"
    database_url: str = "sqlite:///./tapreview.db"
    # Comma separated origin list; production: https://yourdomain.com
    cors_origins: str = "*"
    # Base of the redemption URL embedded in every QR code (/q/{code})
    public_origin: str = "http://localhost:5000"
    # Per-IP request limits
    rate_limit_per_minute: int = 60
    rate_limit_login_per_minute: int = 10
    rate_limit_register_per_minute: int = 3
    rate_limit_claim_per_minute: int = 10
    # Ticket codes
    ticket_code_length: int = 10
    ticket_code_attempts: int = 5
    promo_default_duration_days: int = 7
    environment: str = "development"
    # Email (QR delivery): SMTP
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = "noreply@tapreview.app"
    smtp_from_name: str = "TapReview"
    smtp_use_tls: bool = True
    # Optional bootstrap admin, created at startup when the email is unknown
    admin_email: str = ""
    admin_username: str = "admin"
    admin_password: str = ""

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator("secret_key", "admin_password", "smtp_password", mode="before")
    @classmethod
    def strip_secret(cls, v: str | None) -> str:
        """Avoids failures caused by stray whitespace in copied secrets."""
        return (v or "").strip()

    @field_validator("public_origin", mode="before")
    @classmethod
    def strip_origin(cls, v: str | None) -> str:
        return (v or "").strip().rstrip("/") or "http://localhost:5000"


settings = Settings()


def is_mail_configured() -> bool:
    return bool((settings.smtp_host or "").strip() and (settings.smtp_from or "").strip())
