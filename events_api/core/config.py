import os
from dataclasses import dataclass


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Community Events API")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str | None = os.getenv("LOG_FILE") or None
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "5000"))

    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./community_events.db")
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    jwt_secret: str = os.getenv("JWT_SECRET", "change_me")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

    stripe_secret_key: str = os.getenv("STRIPE_SECRET_KEY", "")
    payment_currency: str = os.getenv("PAYMENT_CURRENCY", "usd")
    payment_min_amount: float = float(os.getenv("PAYMENT_MIN_AMOUNT", "1"))

    # Record the organizer as the first participant of a new event.
    organizer_auto_join: bool = _env_bool("ORGANIZER_AUTO_JOIN", "true")


# Environment variables must be set before this module is imported.
settings = Settings()


def get_redis_url():
    return settings.redis_url
