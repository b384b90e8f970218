"""
PATH: backend/settings/base.py

BASE SETTINGS (shared by dev + prod)

Covers:
- Throttling for public checkout / tracking / payment callbacks
- Frontend redirect base (payment result page)
- Payment providers (SSLCommerz hosted gateway, bKash tokenized checkout)
- Delivery fee policy + size surcharge (configuration data, not code)
- Courier rate-check provider
- Sentry (optional): error visibility in production
"""

from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

import environ
from corsheaders.defaults import default_headers, default_methods

# -----------------------------------------
# BASE DIRECTORY
# -----------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# -----------------------------------------
# TEST MODE DETECTION
# -----------------------------------------
TESTING = "test" in sys.argv

# -----------------------------------------
# ENV (django-environ)
# -----------------------------------------
env = environ.Env(
    DEBUG=(bool, True),
    SECRET_KEY=(str, ""),
    TIME_ZONE=(str, "Asia/Dhaka"),
    ALLOWED_HOSTS=(list, ["localhost", "127.0.0.1"]),
    CORS_ALLOWED_ORIGINS=(list, ["http://localhost:5173"]),
    CSRF_TRUSTED_ORIGINS=(list, ["http://localhost:5173"]),
    DATABASE_URL=(str, f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
    LOG_LEVEL=(str, "INFO"),
    # Throttling
    THROTTLE_ANON_RATE=(str, "60/min"),
    THROTTLE_USER_RATE=(str, "600/min"),
    THROTTLE_PUBLIC_POLL_RATE=(str, "120/min"),
    THROTTLE_PUBLIC_WRITE_RATE=(str, "1000/min" if TESTING else "10/min"),
    THROTTLE_WEBHOOK_RATE=(str, "600/min"),
    THROTTLE_AUTH_RATE=(str, "1000/min" if TESTING else "20/min"),
    # Storefront (payment-result redirects)
    CLIENT_URL=(str, "http://localhost:5173"),
    # Checkout
    CHECKOUT_REQUIRE_POSTAL_CODE=(bool, False),
    # SSLCommerz (hosted gateway)
    SSLCZ_STORE_ID=(str, ""),
    SSLCZ_STORE_PASSWORD=(str, ""),
    SSLCZ_IS_LIVE=(bool, False),
    # bKash (tokenized checkout)
    BKASH_BASE_URL=(str, "https://tokenized.sandbox.bka.sh/v1.2.0-beta"),
    BKASH_USERNAME=(str, ""),
    BKASH_PASSWORD=(str, ""),
    BKASH_APP_KEY=(str, ""),
    BKASH_APP_SECRET=(str, ""),
    # Callback authenticity (HMAC over pass-through ids)
    PAYMENT_CALLBACK_SECRET=(str, ""),
    # Courier rate check
    COURIER_CHECK_URL=(str, ""),
    COURIER_API_KEY=(str, ""),
    # Sentry (optional; enable by setting SENTRY_DSN)
    SENTRY_DSN=(str, ""),
    SENTRY_ENVIRONMENT=(str, "development"),
    SENTRY_TRACES_SAMPLE_RATE=(float, 0.0),
    SENTRY_SEND_PII=(bool, False),
)

# -----------------------------------------
# LOAD .env
# -----------------------------------------
env_file_1 = BASE_DIR / ".env"
env_file_2 = BASE_DIR.parent / ".env"

if env_file_1.exists():
    env.read_env(str(env_file_1))
elif env_file_2.exists():
    env.read_env(str(env_file_2))

# -----------------------------------------
# CORE SECURITY
# -----------------------------------------
SECRET_KEY = (env("SECRET_KEY") or "dev-insecure-change-me").strip()
DEBUG = env.bool("DEBUG")
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS")

# -----------------------------------------
# I18N / TZ
# -----------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = (env("TIME_ZONE") or "UTC").strip()
USE_I18N = True
USE_TZ = True

# -----------------------------------------
# AUTH USER MODEL (custom, phone identity)
# -----------------------------------------
AUTH_USER_MODEL = "users.User"

AUTHENTICATION_BACKENDS = [
    "users.auth_backends.PhoneBackend",
]

AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
        "OPTIONS": {"min_length": 8},
    },
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# -----------------------------------------
# INSTALLED APPS
# -----------------------------------------
INSTALLED_APPS = [
    "corsheaders",
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "rest_framework_simplejwt",
    "drf_spectacular",
    "django_filters",
    "users",
    "products",
    "orders.apps.OrdersConfig",
    "payments.apps.PaymentsConfig",
]

# -----------------------------------------
# MIDDLEWARE
# -----------------------------------------
MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "backend.urls"
WSGI_APPLICATION = "backend.wsgi.application"
APPEND_SLASH = True

# -----------------------------------------
# TEMPLATES (required for Django admin)
# -----------------------------------------
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [str(BASE_DIR / "templates")],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

# -----------------------------------------
# REST FRAMEWORK
# -----------------------------------------
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": ("rest_framework.permissions.IsAuthenticated",),
    "DEFAULT_FILTER_BACKENDS": ("django_filters.rest_framework.DjangoFilterBackend",),
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": 20,
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "DEFAULT_THROTTLE_CLASSES": (
        "rest_framework.throttling.AnonRateThrottle",
        "rest_framework.throttling.UserRateThrottle",
    ),
    "DEFAULT_THROTTLE_RATES": {
        "anon": env("THROTTLE_ANON_RATE"),
        "user": env("THROTTLE_USER_RATE"),
        "public_poll": env("THROTTLE_PUBLIC_POLL_RATE"),
        "public_write": env("THROTTLE_PUBLIC_WRITE_RATE"),
        "webhook": env("THROTTLE_WEBHOOK_RATE"),
        "auth": env("THROTTLE_AUTH_RATE"),
    },
}

if TESTING:
    # Shared LocMem cache would otherwise carry throttle history across tests.
    REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = ()

# -----------------------------------------
# SIMPLE JWT
# -----------------------------------------
SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=30),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=30),
    "ROTATE_REFRESH_TOKENS": True,
}

# -----------------------------------------
# DATABASE
# -----------------------------------------
DATABASES = {
    "default": env.db("DATABASE_URL"),
}

# -----------------------------------------
# STOREFRONT (payment-result redirects)
# -----------------------------------------
CLIENT_URL = (env("CLIENT_URL") or "http://localhost:5173").strip()

# -----------------------------------------
# CHECKOUT
# -----------------------------------------
CURRENCY = "BDT"
CHECKOUT_REQUIRE_POSTAL_CODE = env.bool("CHECKOUT_REQUIRE_POSTAL_CODE")

# Flat per-unit surcharge for oversized variants (e.g. "XXL", "XXL2").
SIZE_SURCHARGE = {
    "AMOUNT": "50.00",
    "SIZE_PREFIXES": ["XXL"],
}

# Ordered decision table. Exact district rules are checked before keyword
# (substring) rules; the first match wins, otherwise DEFAULT applies.
DELIVERY_FEE_POLICY = {
    "OVERRIDE_LABELS": {
        "inside": "Inside Dhaka",
        "outside": "Outside Dhaka",
    },
    "DISTRICT_RULES": [
        {"districts": ["dhaka"], "fee": "80.00", "label": "Inside Dhaka"},
        {"districts": ["gazipur"], "fee": "120.00", "label": "Dhaka Suburbs"},
    ],
    "KEYWORD_RULES": [
        {"keywords": ["savar"], "fee": "120.00", "label": "Dhaka Suburbs"},
        {"keywords": ["keraniganj"], "fee": "120.00", "label": "Dhaka Suburbs"},
    ],
    "DEFAULT": {"fee": "150.00", "label": "Outside Dhaka"},
}

# -----------------------------------------
# PAYMENTS
# -----------------------------------------
PAYMENTS = {
    "SSLCOMMERZ": {
        "STORE_ID": (env("SSLCZ_STORE_ID") or "").strip(),
        "STORE_PASSWORD": (env("SSLCZ_STORE_PASSWORD") or "").strip(),
        "IS_LIVE": env.bool("SSLCZ_IS_LIVE"),
        "TIMEOUT": 20,
    },
    "BKASH": {
        "BASE_URL": (env("BKASH_BASE_URL") or "").strip().rstrip("/"),
        "USERNAME": (env("BKASH_USERNAME") or "").strip(),
        "PASSWORD": (env("BKASH_PASSWORD") or "").strip(),
        "APP_KEY": (env("BKASH_APP_KEY") or "").strip(),
        "APP_SECRET": (env("BKASH_APP_SECRET") or "").strip(),
        "TIMEOUT": 15,
        "TOKEN_REFRESH_MARGIN_SECONDS": 30,
    },
    "CALLBACK_SECRET": (env("PAYMENT_CALLBACK_SECRET") or "").strip() or SECRET_KEY,
}

# -----------------------------------------
# COURIER
# -----------------------------------------
COURIER = {
    "CHECK_URL": (env("COURIER_CHECK_URL") or "").strip(),
    "API_KEY": (env("COURIER_API_KEY") or "").strip(),
    "TIMEOUT": 15,
}

# -----------------------------------------
# LOGGING
# -----------------------------------------
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING" if TESTING else env("LOG_LEVEL"),
    },
}

# -----------------------------------------
# SENTRY (optional)
# -----------------------------------------
SENTRY_DSN = (env("SENTRY_DSN") or "").strip()
SENTRY_ENVIRONMENT = (env("SENTRY_ENVIRONMENT") or "development").strip()
SENTRY_TRACES_SAMPLE_RATE = float(env("SENTRY_TRACES_SAMPLE_RATE"))
SENTRY_SEND_PII = env.bool("SENTRY_SEND_PII")

if SENTRY_DSN:
    import sentry_sdk
    from sentry_sdk.integrations.django import DjangoIntegration

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=SENTRY_ENVIRONMENT,
        integrations=[DjangoIntegration()],
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        send_default_pii=SENTRY_SEND_PII,
    )

# -----------------------------------------
# CORS / CSRF
# -----------------------------------------
CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS")
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_METHODS = list(default_methods)
CORS_ALLOW_HEADERS = list(default_headers)

CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS")

# -----------------------------------------
# STATIC FILES
# -----------------------------------------
STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# -----------------------------------------
# SWAGGER
# -----------------------------------------
SPECTACULAR_SETTINGS = {
    "TITLE": "Storefront Backend API",
    "DESCRIPTION": "Checkout, orders, payments and tracking API",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}
