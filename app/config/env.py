"""
Environment configuration for Django settings.

Values are read from process environment variables and, for local
development, from an env file (``ENV_FILE``, default ``.env.development``
next to the ``app`` directory). Docker passes variables directly.

Nested sections use ``__`` as delimiter, e.g. ``DATABASE__HOST=db``.

Usage (settings.py only):
    from config.env import get_env

    env = get_env()
    DEBUG = env.debug
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent

ENV_FILE = os.environ.get("ENV_FILE", str(BASE_DIR.parent / ".env.development"))


class DatabaseSettings(BaseModel):
    # "sqlite" runs without external services (local dev, test suite)
    engine: Literal["sqlite", "postgresql"] = "sqlite"
    name: str = "ledger.sqlite3"
    user: str = "postgres"
    password: str = "postgres"
    host: str = "db"
    port: int = 5432
    connect_timeout: int = 10


class StripeSettings(BaseModel):
    # Get your API keys from: https://dashboard.stripe.com/apikeys
    secret_key: str = ""
    publishable_key: str = ""
    # Each webhook endpoint has its own signing secret
    webhook_secret: str = ""
    api_timeout_seconds: int = 10
    max_retries: int = 3


class PayoutSettings(BaseModel):
    currency: str = "usd"
    balance_max_attempts: int = Field(default=3, ge=1)
    lock_ttl_seconds: int = Field(default=120, ge=1)
    lock_timeout_seconds: float = Field(default=10.0, ge=0)
    transfer_retry_window_seconds: int = Field(default=86400, ge=0)


class CheckoutSettings(BaseModel):
    success_url: str = "http://localhost:3000/checkout/success?session_id={CHECKOUT_SESSION_ID}"
    cancel_url: str = "http://localhost:3000/checkout/cancel"


class EnvSettings(BaseSettings):
    """Top-level environment settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    # SECURITY WARNING: override in every deployed environment
    secret_key: str = Field(default="django-insecure-change-me", min_length=8)
    debug: bool = False
    allowed_hosts: list[str] = ["localhost", "127.0.0.1"]
    log_level: str = "INFO"
    log_file_name: str = "django.log"
    redis_url: str = "redis://redis:6379/0"

    database: DatabaseSettings = DatabaseSettings()
    stripe: StripeSettings = StripeSettings()
    payout: PayoutSettings = PayoutSettings()
    checkout: CheckoutSettings = CheckoutSettings()

    # Production-only hardening
    secure_ssl_redirect: bool = True
    session_cookie_secure: bool = True
    csrf_cookie_secure: bool = True
    secure_hsts_seconds: int = 31536000

    def database_config(self) -> dict:
        """Build the Django DATABASES["default"] entry."""
        db = self.database
        if db.engine == "sqlite":
            return {
                "ENGINE": "django.db.backends.sqlite3",
                "NAME": BASE_DIR / db.name,
            }
        return {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": db.name,
            "USER": db.user,
            "PASSWORD": db.password,
            "HOST": db.host,
            "PORT": db.port,
            # psycopg3 native connection options
            "OPTIONS": {"connect_timeout": db.connect_timeout},
        }


@lru_cache()
def get_env() -> EnvSettings:
    return EnvSettings()
