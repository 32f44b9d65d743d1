"""
connect_account_session.handler — Client secret for embedded account onboarding.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from aws_lambda_powertools import Logger, Tracer
from payments_core import (
    NotFound,
    PaymentsError,
    PaymentStore,
    UpstreamError,
    authorize_request,
    http,
)
from payments_core.charges import stripe_field
from payments_core.provider import StripeProvider

logger = Logger(service="connect-account-session")
tracer = Tracer()


@dataclass(frozen=True)
class PaymentDependencies:
    store: Any
    provider: Any


def _dependencies() -> PaymentDependencies:
    return PaymentDependencies(store=PaymentStore(), provider=StripeProvider())


@logger.inject_lambda_context(clear_state=True, log_event=False)
@tracer.capture_lambda_handler
def lambda_handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    if http.is_preflight(event):
        return http.preflight()

    try:
        body = http.json_body(event)
        tenant_id = http.require_str(body, "tenant_id")
        logger.append_keys(tenant_id=tenant_id)

        deps = _dependencies()
        grant = authorize_request(event, tenant_id, deps.store)
        logger.append_keys(caller_id=grant.caller_id, access_path=grant.path.value)

        settings = deps.store.load_settings(tenant_id)
        if settings is None or not settings.connected_account_id:
            raise NotFound("Stripe account missing")

        session = deps.provider.create_account_session(settings.connected_account_id)
        client_secret = stripe_field(session, "client_secret")
        if not client_secret:
            raise UpstreamError("Payment provider returned no client secret")
        return http.response(200, {"client_secret": client_secret})
    except PaymentsError as exc:
        return http.error(exc.status_code, exc.message)
    except Exception:
        logger.exception("Unhandled connect-account-session error")
        return http.error(500, "Internal server error")
