# backend/marketpos/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def normalize_database_url(url: str) -> str:
    """
    Normalize a DATABASE_URL for SQLAlchemy.

    - postgres:// is rewritten to postgresql:// (SQLAlchemy dropped the alias)
    - MySQL URLs get charset=utf8mb4 unless a charset is already given, so
      text round-trips as UTF-8 regardless of server defaults
    """
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)

    if url.startswith("mysql") and "charset=" not in url:
        url += ("&" if "?" in url else "?") + "charset=utf8mb4"

    return url


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/marketpos.sqlite3
    SQLALCHEMY_DATABASE_URI = normalize_database_url(
        os.environ.get(
            "DATABASE_URL", #optional alternative location
            "sqlite:///marketpos.sqlite3", #default local location
        )
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SESSION_ABSOLUTE_TIMEOUT_HOURS = int(os.environ.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", "24"))
    SESSION_IDLE_TIMEOUT_HOURS = int(os.environ.get("SESSION_IDLE_TIMEOUT_HOURS", "8"))

    # Invoice e-mail (disabled unless explicitly turned on)
    MAIL_ENABLED = _env_flag("MAIL_ENABLED")
    MAIL_SERVER = os.environ.get("MAIL_SERVER", "localhost")
    MAIL_PORT = int(os.environ.get("MAIL_PORT", "587"))
    MAIL_USE_TLS = _env_flag("MAIL_USE_TLS", True)
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_SENDER = os.environ.get("MAIL_SENDER", "no-reply@marketpos.local")

    STORE_NAME = os.environ.get("STORE_NAME", "Mini Mart")
    CURRENCY_LABEL = os.environ.get("CURRENCY_LABEL", "VND")

    # Include exception text in 500 responses (never enable in production)
    DEBUG_ERRORS = _env_flag("DEBUG_ERRORS")


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    MAIL_ENABLED = False
    DEBUG_ERRORS = True
