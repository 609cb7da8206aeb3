"""OTP Gate — configuration loaded from environment."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── OTP lifecycle ─────────────────────────────────────
    otp_digit_width: int = Field(default=5, ge=4, le=10)
    otp_ttl_ms: int = Field(default=300_000, gt=0)
    otp_max_attempts: int = Field(default=5, ge=1)
    otp_sweep_interval_seconds: float = Field(default=60.0, ge=0)

    # ── SMS (Twilio) ──────────────────────────────────────
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_from_number: str = ""
    twilio_api_base_url: str = "https://api.twilio.com/2010-04-01"

    # ── Email (SMTP) ──────────────────────────────────────
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    email_from: str = ""

    # ── HTTP ──────────────────────────────────────────────
    # Comma-separated list of browser origins, or "*" for any.
    cors_allow_origins: str = "*"

    # ── App ───────────────────────────────────────────────
    app_name: str = "OTP Gate"
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton settings instance
settings = Settings()
