"""
Django settings for the ledger service.

This is the single settings file for all environments. Configuration is driven
by environment variables parsed by pydantic-settings (see config.env),
following the 12-factor app methodology.

Environment files:
    - .env.development: Development settings (DEBUG=True, relaxed security)
    - .env.production: Production settings (DEBUG=False, hardened security)

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/topics/settings/

For the full list of settings and their values, see:
https://docs.djangoproject.com/en/5.2/ref/settings/
"""

from datetime import timedelta

from config.env import BASE_DIR, get_env

# =============================================================================
# Environment Configuration
# =============================================================================
env = get_env()

# =============================================================================
# Core Settings
# =============================================================================
# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = env.secret_key

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = env.debug

ALLOWED_HOSTS = env.allowed_hosts

# =============================================================================
# Application Definition
# =============================================================================
INSTALLED_APPS = [
    # Django core apps
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third-party apps - REST & Auth
    "rest_framework",
    "rest_framework_simplejwt",
    # Local apps
    "core",
    "payments",
]

MIDDLEWARE = [
    # Security middleware (should be first)
    "django.middleware.security.SecurityMiddleware",
    # Django default middleware
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"
ASGI_APPLICATION = "config.asgi.application"

# =============================================================================
# Database Configuration
# =============================================================================
# https://docs.djangoproject.com/en/5.2/ref/settings/#databases
# SQLite by default; set DATABASE__ENGINE=postgresql for psycopg3
DATABASES = {
    "default": env.database_config(),
}

# =============================================================================
# Cache Configuration
# =============================================================================
# https://docs.djangoproject.com/en/5.2/topics/cache/
# The same Redis instance backs the payout distributed lock (payments.locks)
CACHES = {
    "default": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": env.redis_url,
        "OPTIONS": {
            "CLIENT_CLASS": "django_redis.client.DefaultClient",
            # Gracefully handle Redis connection failures
            "IGNORE_EXCEPTIONS": True,
        },
    }
}

# =============================================================================
# Authentication Configuration
# =============================================================================
# Password validation
# https://docs.djangoproject.com/en/5.2/ref/settings/#auth-password-validators
AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"
    },
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# =============================================================================
# Django REST Framework Configuration
# =============================================================================
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        # JWT authentication (primary for API clients)
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        # Session authentication (for browsable API and admin)
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
}

# Add browsable API in debug mode
if DEBUG:
    REST_FRAMEWORK["DEFAULT_RENDERER_CLASSES"].append(
        "rest_framework.renderers.BrowsableAPIRenderer"
    )

# =============================================================================
# Simple JWT Configuration
# =============================================================================
SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=60),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=7),
    "ALGORITHM": "HS256",
    "SIGNING_KEY": SECRET_KEY,
    "AUTH_HEADER_TYPES": ("Bearer",),
    "AUTH_HEADER_NAME": "HTTP_AUTHORIZATION",
    "USER_ID_FIELD": "id",
    "USER_ID_CLAIM": "user_id",
}

# =============================================================================
# Stripe Configuration
# =============================================================================
# Use test keys (sk_test_...) for development, live keys (sk_live_...) for production
STRIPE_SECRET_KEY = env.stripe.secret_key
STRIPE_PUBLISHABLE_KEY = env.stripe.publishable_key

# Webhook signing secret from: https://dashboard.stripe.com/webhooks
STRIPE_WEBHOOK_SECRET = env.stripe.webhook_secret

# API timeout in seconds (default: 10)
STRIPE_API_TIMEOUT_SECONDS = env.stripe.api_timeout_seconds

# Maximum retry attempts for transient failures (default: 3)
STRIPE_MAX_RETRIES = env.stripe.max_retries

# =============================================================================
# Payout Configuration
# =============================================================================
# Currency for reviewer transfers
PAYOUT_CURRENCY = env.payout.currency

# Compare-and-swap attempts when reserving a reviewer balance
PAYOUT_BALANCE_MAX_ATTEMPTS = env.payout.balance_max_attempts

# Per-reviewer distributed lock: auto-expiry and acquisition wait (seconds)
PAYOUT_LOCK_TTL_SECONDS = env.payout.lock_ttl_seconds
PAYOUT_LOCK_TIMEOUT_SECONDS = env.payout.lock_timeout_seconds

# How long a reserved payout may re-send its transfer under the same
# idempotency key. Stripe keeps idempotency keys for at least 24 hours.
PAYOUT_TRANSFER_RETRY_WINDOW_SECONDS = env.payout.transfer_retry_window_seconds

# =============================================================================
# Checkout Configuration
# =============================================================================
CHECKOUT_SUCCESS_URL = env.checkout.success_url
CHECKOUT_CANCEL_URL = env.checkout.cancel_url

# =============================================================================
# Internationalization
# =============================================================================
# https://docs.djangoproject.com/en/5.2/topics/i18n/
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# =============================================================================
# Static Files (CSS, JavaScript, Images)
# =============================================================================
# https://docs.djangoproject.com/en/5.2/howto/static-files/
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# =============================================================================
# Default Primary Key Field Type
# =============================================================================
# https://docs.djangoproject.com/en/5.2/ref/settings/#default-auto-field
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# =============================================================================
# Logging Configuration
# =============================================================================
LOG_LEVEL = env.log_level

LOG_FILE_NAME = env.log_file_name
LOG_DIR = BASE_DIR / "logs"

# Ensure log directory exists (handles local development without Docker)
LOG_DIR.mkdir(parents=True, exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {process:d} {thread:d} {message}",
            "style": "{",
        },
        "simple": {
            "format": "{levelname} {message}",
            "style": "{",
        },
        "file": {
            # Detailed format for persistent logs with timestamp, level, logger name, and location
            "format": "[{asctime}] {levelname} {name} {module}:{lineno} - {message}",
            "style": "{",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
        "file": {
            # Max 10MB per file, keeps 5 backups
            "level": "DEBUG",
            "class": "logging.handlers.RotatingFileHandler",
            "filename": LOG_DIR / LOG_FILE_NAME,
            "maxBytes": 10 * 1024 * 1024,  # 10MB
            "backupCount": 5,
            "formatter": "file",
            "encoding": "utf-8",
        },
    },
    "root": {
        "handlers": ["console", "file"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {
            "handlers": ["console", "file"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "django.request": {
            "handlers": ["console", "file"],
            "level": "ERROR",
            "propagate": False,
        },
        # Ledger events: webhook receipt, reconciliation, payouts
        "payments": {
            "handlers": ["console", "file"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}

# =============================================================================
# Security Settings (Production Only)
# =============================================================================
# These settings are enforced only when DEBUG=False
if not DEBUG:
    # HTTPS/SSL settings
    SECURE_SSL_REDIRECT = env.secure_ssl_redirect
    SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

    # Cookie security
    SESSION_COOKIE_SECURE = env.session_cookie_secure
    CSRF_COOKIE_SECURE = env.csrf_cookie_secure

    # HSTS (HTTP Strict Transport Security)
    SECURE_HSTS_SECONDS = env.secure_hsts_seconds
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_HSTS_PRELOAD = True

    # Additional security headers
    SECURE_CONTENT_TYPE_NOSNIFF = True
    X_FRAME_OPTIONS = "DENY"
