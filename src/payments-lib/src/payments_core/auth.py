"""
payments_core.auth — Bearer token verification.

Two signing modes, chosen by configuration:
  - AUTH_JWKS_URL set: RS256 tokens verified against the JWKS (keys cached
    for 5 minutes per warm container).
  - otherwise: HS256 tokens verified with the AUTH_JWT_SECRET shared secret.

The verified `sub` claim is the caller id used for authorization.
"""

from __future__ import annotations

from typing import Any

import jwt
from aws_lambda_powertools import Logger
from jwt import PyJWKClient

from payments_core import config
from payments_core.exceptions import Unauthenticated

logger = Logger(service="payments-core")

_BEARER_PREFIX = "bearer "

# Global client — connection and key reuse across warm starts
_jwk_client: PyJWKClient | None = None
_jwk_client_url: str | None = None


def get_jwk_client(jwks_url: str) -> PyJWKClient:
    """Lazy initialization of PyJWKClient, rebuilt if the URL changes."""
    global _jwk_client, _jwk_client_url
    if _jwk_client is None or _jwk_client_url != jwks_url:
        _jwk_client = PyJWKClient(jwks_url, cache_jwk_set=True, lifespan=300)
        _jwk_client_url = jwks_url
    return _jwk_client


def bearer_token(header_value: str | None) -> str:
    if not header_value:
        raise Unauthenticated()
    if not header_value.lower().startswith(_BEARER_PREFIX):
        raise Unauthenticated()
    token = header_value[len(_BEARER_PREFIX) :].strip()
    if not token:
        raise Unauthenticated()
    return token


def _decode(token: str) -> dict[str, Any]:
    audience = config.auth_audience()
    issuer = config.auth_issuer()
    jwks_url = config.auth_jwks_url()
    if jwks_url:
        signing_key = get_jwk_client(jwks_url).get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            audience=audience,
            issuer=issuer,
        )

    secret = config.auth_jwt_secret()
    if not secret:
        logger.error("Neither AUTH_JWKS_URL nor AUTH_JWT_SECRET is configured")
        raise Unauthenticated()
    return jwt.decode(
        token,
        secret,
        algorithms=["HS256"],
        audience=audience,
        issuer=issuer,
    )


def verify_claims(header_value: str | None) -> dict[str, Any]:
    """Verify the bearer token and return its claims; `sub` is guaranteed non-empty."""
    token = bearer_token(header_value)
    try:
        payload = _decode(token)
    except jwt.ExpiredSignatureError as exc:
        logger.warning("Bearer token has expired")
        raise Unauthenticated() from exc
    except jwt.PyJWTError as exc:
        logger.warning(f"Invalid bearer token: {exc}")
        raise Unauthenticated() from exc

    caller_id = payload.get("sub")
    if not isinstance(caller_id, str) or not caller_id.strip():
        logger.warning("Bearer token has no subject")
        raise Unauthenticated()
    return dict(payload, sub=caller_id.strip())


def verify_caller(header_value: str | None) -> str:
    """Verify the bearer token and return the caller id (the `sub` claim)."""
    return verify_claims(header_value)["sub"]
