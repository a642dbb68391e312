from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    # ── Database ──────────────────────────────────────────────
    database_hostname: str = "localhost"
    database_port: str = "5432"
    database_password: str = ""
    database_name: str = "woworganics"
    database_username: str = "postgres"
    # Full DSN override, e.g. sqlite:///./dev.db for local hacking
    database_url_override: Optional[str] = None

    # ── JWT ───────────────────────────────────────────────────
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    refresh_token_expire_days: int = 7
    reset_token_expire_minutes: int = 15

    # ── SMTP (transactional email) ────────────────────────────
    mail_username: str
    mail_password: str
    mail_from: str
    mail_from_name: str = "WOW! Organics"
    mail_server: str = "smtp.gmail.com"
    mail_port: int = 587
    # fastapi-mail won't open an SMTP connection when this is set
    mail_suppress_send: bool = False

    # ── Razorpay ──────────────────────────────────────────────
    razorpay_key_id: str
    razorpay_key_secret: str

    # ── 2Factor (SMS OTP) ─────────────────────────────────────
    two_factor_api_key: str = ""
    two_factor_base_url: str = "https://2factor.in/API/V1"

    # ── App ───────────────────────────────────────────────────
    environment: str = "development"
    cors_origins: str = "http://localhost:5173"
    otp_expiry_minutes: int = 10
    store_settings_ttl_seconds: int = 300
    store_name: str = "WOW! Organics"
    support_email: str = "support@woworganics.com"

    @property
    def cors_origins_list(self) -> list[str]:
        """Split comma-separated origins into a list, stripping whitespace."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql://{self.database_username}:{self.database_password}"
            f"@{self.database_hostname}:{self.database_port}/{self.database_name}"
        )

    class Config:
        env_file = ".env"
        # Case-insensitive so RAZORPAY_KEY_ID and razorpay_key_id both work
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings loader: reads .env once and reuses.
    Use this everywhere instead of instantiating Settings() directly.
    """
    return Settings()


# Module-level singleton for convenience imports
settings = get_settings()
