"""
create_payment_intent.handler — Storefront checkout PaymentIntent Lambda.

Unauthenticated by design: shoppers pay without a platform account.  The
charge is routed to the tenant's connected account when it is eligible,
otherwise to the platform account.  The response tells the storefront
which completion flow to use.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from aws_lambda_powertools import Logger, Tracer
from payments_core import ChargeRouter, InvalidInput, PaymentsError, PaymentStore, config, http
from payments_core.provider import StripeProvider

logger = Logger(service="create-payment-intent")
tracer = Tracer()

_MAX_METADATA_KEYS = 40
_MAX_IDEMPOTENCY_KEY_LENGTH = 255


@dataclass(frozen=True)
class PaymentDependencies:
    store: Any
    provider: Any


def _dependencies() -> PaymentDependencies:
    return PaymentDependencies(store=PaymentStore(), provider=StripeProvider())


def _amount(value: Any) -> int:
    """amount_ore must be a positive whole number of minor units."""
    if isinstance(value, bool) or value is None:
        raise InvalidInput("amount_ore must be a positive number")
    try:
        amount = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInput("amount_ore must be a positive number") from exc
    if amount != amount or amount in (float("inf"), float("-inf")) or amount <= 0:
        raise InvalidInput("amount_ore must be a positive number")
    if not amount.is_integer():
        raise InvalidInput("amount_ore must be a whole number of minor units")
    return int(amount)


def _currency(value: Any) -> str:
    text = http.str_or_none(value)
    if text is None:
        return config.default_currency()
    if len(text) != 3 or not text.isalpha():
        raise InvalidInput("currency must be a three-letter ISO code")
    return text.lower()


def _metadata(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InvalidInput("metadata must be an object")
    if len(value) > _MAX_METADATA_KEYS:
        raise InvalidInput(f"metadata supports at most {_MAX_METADATA_KEYS} keys")
    return value


def _idempotency_key(event: dict[str, Any], body: dict[str, Any]) -> str | None:
    key = http.str_or_none(body.get("idempotency_key")) or http.str_or_none(
        http.header(event, "Idempotency-Key")
    )
    if key is not None and len(key) > _MAX_IDEMPOTENCY_KEY_LENGTH:
        raise InvalidInput(
            f"idempotency_key must be at most {_MAX_IDEMPOTENCY_KEY_LENGTH} characters"
        )
    return key


@logger.inject_lambda_context(clear_state=True, log_event=False)
@tracer.capture_lambda_handler
def lambda_handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    if http.is_preflight(event):
        return http.preflight()

    try:
        body = http.json_body(event)
        tenant_id = http.require_str(body, "tenant_id")
        amount = _amount(body.get("amount_ore"))
        currency = _currency(body.get("currency"))
        metadata = _metadata(body.get("metadata"))
        idempotency_key = _idempotency_key(event, body)
        logger.append_keys(tenant_id=tenant_id)

        deps = _dependencies()
        router = ChargeRouter(deps.store, deps.provider)
        result = router.create_charge(
            tenant_id,
            amount,
            currency,
            metadata,
            idempotency_key=idempotency_key,
        )
        return http.response(200, result.to_response())
    except PaymentsError as exc:
        if exc.status_code >= 500:
            logger.error("Payment intent creation failed", error=exc.message)
        return http.error(exc.status_code, exc.message)
    except Exception:
        logger.exception("Unhandled create-payment-intent error")
        return http.error(500, "Internal server error")
