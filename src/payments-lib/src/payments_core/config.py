"""
payments_core.config — Environment-driven configuration.

Values are read on every call rather than at import time so a warm
container picks up nothing stale and tests can monkeypatch the environment.
"""

from __future__ import annotations

import os

_TENANTS_TABLE_ENV = "TENANTS_TABLE_NAME"
_USER_ROLES_TABLE_ENV = "USER_ROLES_TABLE_NAME"
_PAYMENT_SETTINGS_TABLE_ENV = "PAYMENT_SETTINGS_TABLE_NAME"
_STRIPE_SECRET_KEY_ENV = "STRIPE_SECRET_KEY"  # pragma: allowlist secret
_STRIPE_API_VERSION_ENV = "STRIPE_API_VERSION"
_DEFAULT_CURRENCY_ENV = "DEFAULT_CURRENCY"
_AUTH_JWT_SECRET_ENV = "AUTH_JWT_SECRET"  # pragma: allowlist secret
_AUTH_JWKS_URL_ENV = "AUTH_JWKS_URL"
_AUTH_AUDIENCE_ENV = "AUTH_AUDIENCE"
_AUTH_ISSUER_ENV = "AUTH_ISSUER"

DEFAULT_STRIPE_API_VERSION = "2023-10-16"


def _env_or_none(name: str) -> str | None:
    value = os.environ.get(name, "").strip()
    return value or None


def aws_region() -> str:
    return os.environ.get("AWS_REGION", "eu-west-2")


def tenants_table_name() -> str:
    return os.environ.get(_TENANTS_TABLE_ENV, "printshop-tenants")


def user_roles_table_name() -> str:
    return os.environ.get(_USER_ROLES_TABLE_ENV, "printshop-user-roles")


def payment_settings_table_name() -> str:
    return os.environ.get(_PAYMENT_SETTINGS_TABLE_ENV, "printshop-payment-settings")


def stripe_secret_key() -> str | None:
    return _env_or_none(_STRIPE_SECRET_KEY_ENV)


def stripe_api_version() -> str:
    return _env_or_none(_STRIPE_API_VERSION_ENV) or DEFAULT_STRIPE_API_VERSION


def default_currency() -> str:
    return (_env_or_none(_DEFAULT_CURRENCY_ENV) or "dkk").lower()


def auth_jwt_secret() -> str | None:
    return _env_or_none(_AUTH_JWT_SECRET_ENV)


def auth_jwks_url() -> str | None:
    return _env_or_none(_AUTH_JWKS_URL_ENV)


def auth_audience() -> str:
    return _env_or_none(_AUTH_AUDIENCE_ENV) or "authenticated"


def auth_issuer() -> str | None:
    return _env_or_none(_AUTH_ISSUER_ENV)
