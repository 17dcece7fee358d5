# backend/storefront/config.py
from __future__ import annotations
import os

from dotenv import load_dotenv

# Local development reads backend/.env; real deployments set the environment directly
load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw else default


def _engine_options(database_uri: str) -> dict:
    """
    Pool settings for the shared engine.

    SQLite uses a single-file or in-memory pool that rejects sizing arguments,
    so those are only passed to server databases.
    """
    if database_uri.startswith("sqlite"):
        return {}
    return {
        "pool_pre_ping": True,
        "pool_size": _int_env("DB_POOL_SIZE", 10),
        "pool_timeout": _int_env("DB_POOL_TIMEOUT", 30),
        "pool_recycle": _int_env("DB_POOL_RECYCLE", 1800),
    }


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite file next to the app by default; PostgreSQL in production
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///storefront.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options(SQLALCHEMY_DATABASE_URI)

    # Bearer tokens
    JWT_SECRET = os.environ.get("JWT_SECRET", SECRET_KEY)
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRES_HOURS = _int_env("JWT_EXPIRES_HOURS", 48)

    PASSWORD_RESET_TTL_MINUTES = _int_env("PASSWORD_RESET_TTL_MINUTES", 60)
    BCRYPT_ROUNDS = _int_env("BCRYPT_ROUNDS", 12)

    CORS_ORIGINS = [
        o.strip()
        for o in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
        ).split(",")
        if o.strip()
    ]
    FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:5173")

    # Object storage for product images, payment proofs and shipping bills
    S3_BUCKET_NAME = os.environ.get("S3_BUCKET_NAME")
    S3_BASE_URL = os.environ.get("S3_BASE_URL")
    AWS_REGION = os.environ.get("AWS_REGION")
    AWS_ACCESS_KEY_ID = os.environ.get("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY = os.environ.get("AWS_SECRET_ACCESS_KEY")
    MAX_IMAGE_BYTES = 5 * 1024 * 1024
    MAX_CONTENT_LENGTH = _int_env("MAX_CONTENT_LENGTH", 10 * 1024 * 1024)

    # Transactional email
    RESEND_API_KEY = os.environ.get("RESEND_API_KEY")
    RESEND_FROM_EMAIL = os.environ.get("RESEND_FROM_EMAIL", "onboarding@resend.dev")
    EMAIL_ENABLED = True

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    JWT_SECRET = "test-secret"
    BCRYPT_ROUNDS = 4
    EMAIL_ENABLED = False
    S3_BUCKET_NAME = None
