"""
billing_portal_session.handler — Provider billing portal for a tenant's own subscription.

Lets a tenant admin manage the platform subscription the tenant pays for.
Requires a provider customer on the tenant's subscription row.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from aws_lambda_powertools import Logger, Tracer
from payments_core import (
    InvalidInput,
    NotFound,
    PaymentsError,
    PaymentStore,
    authorize_request,
    http,
)
from payments_core.charges import stripe_field
from payments_core.provider import StripeProvider

logger = Logger(service="billing-portal-session")
tracer = Tracer()


@dataclass(frozen=True)
class PaymentDependencies:
    store: Any
    provider: Any


def _dependencies() -> PaymentDependencies:
    return PaymentDependencies(store=PaymentStore(), provider=StripeProvider())


def _return_url(body: dict[str, Any]) -> str:
    url = http.require_str(body, "return_url")
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise InvalidInput("return_url must be an absolute http(s) URL")
    return url


@logger.inject_lambda_context(clear_state=True, log_event=False)
@tracer.capture_lambda_handler
def lambda_handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    if http.is_preflight(event):
        return http.preflight()

    try:
        body = http.json_body(event)
        tenant_id = http.require_str(body, "tenant_id")
        return_url = _return_url(body)
        logger.append_keys(tenant_id=tenant_id)

        deps = _dependencies()
        grant = authorize_request(event, tenant_id, deps.store)
        logger.append_keys(caller_id=grant.caller_id, access_path=grant.path.value)

        subscription = deps.store.get_subscription(tenant_id)
        if subscription is None or not subscription.customer_id:
            raise NotFound("No Stripe customer found for tenant subscription")

        session = deps.provider.create_billing_portal_session(
            customer_id=subscription.customer_id,
            return_url=return_url,
        )
        return http.response(200, {"url": stripe_field(session, "url")})
    except PaymentsError as exc:
        return http.error(exc.status_code, exc.message)
    except Exception:
        logger.exception("Unhandled billing-portal-session error")
        return http.error(500, "Internal server error")
