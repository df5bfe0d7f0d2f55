"""
Runtime configuration for the Alliance Portal API.

Every setting comes from the environment (optionally a local .env file);
nothing secret lives in source.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Portal configuration settings"""

    # Database / cache
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./alliance_portal.db")
    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    LEADERBOARD_CACHE_TTL = int(os.getenv("LEADERBOARD_CACHE_TTL", 5))

    # HTTP
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    RATE_LIMIT_ENABLED = _flag("RATE_LIMIT_ENABLED")
    LOGIN_RATE_LIMIT = os.getenv("LOGIN_RATE_LIMIT", "10/minute")
    IMPORT_RATE_LIMIT = os.getenv("IMPORT_RATE_LIMIT", "5/minute")

    # Identity
    DEFAULT_MEMBER_PASSWORD = os.getenv("DEFAULT_MEMBER_PASSWORD", "Changeme123")
    SESSION_TTL_HOURS = int(os.getenv("SESSION_TTL_HOURS", 24 * 7))
    RESET_TOKEN_TTL_MINUTES = int(os.getenv("RESET_TOKEN_TTL_MINUTES", 60))
    MIN_PASSWORD_LENGTH = 6

    # Blob storage
    STORAGE_ROOT = os.getenv("STORAGE_ROOT", "./storage")
    PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://127.0.0.1:8000")

    # Mail
    PORTAL_NAME = os.getenv("PORTAL_NAME", "HDX Alliance Portal")
    PORTAL_URL = os.getenv("PORTAL_URL", "http://localhost:3000")
    SEND_EMAIL_URL = os.getenv("SEND_EMAIL_URL", "")
    MAIL_RELAY_TOKEN = os.getenv("MAIL_RELAY_TOKEN", "")
    SMTP_HOST = os.getenv("SMTP_HOST", "")
    SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
    SMTP_USER = os.getenv("SMTP_USER", "")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
    SMTP_SENDER = os.getenv("SMTP_SENDER", "no-reply@localhost")

    # Monitoring
    NEW_RELIC_CONFIG = os.getenv("NEW_RELIC_CONFIG", "newrelic.ini")

    @classmethod
    def cors_origins(cls) -> list[str]:
        """Get the list of allowed CORS origins"""
        return [origin.strip() for origin in cls.CORS_ORIGINS.split(",") if origin.strip()]

    @classmethod
    def is_sqlite(cls) -> bool:
        return cls.DATABASE_URL.startswith("sqlite")
