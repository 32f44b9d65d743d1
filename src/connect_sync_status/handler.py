"""
connect_sync_status.handler — Refresh a tenant's connected-account status.

Retrieves the provider account and mirrors its enablement flags onto the
settings row.  A DISABLED tenant keeps its DISABLED status; only the
mirrored flags change.  The write is conditional on the row being
unchanged since it was read.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from aws_lambda_powertools import Logger, Tracer
from payments_core import (
    NotFound,
    PaymentsError,
    PaymentStore,
    authorize_request,
    compute_status,
    http,
)
from payments_core.charges import stripe_field
from payments_core.provider import StripeProvider

logger = Logger(service="connect-sync-status")
tracer = Tracer()


@dataclass(frozen=True)
class PaymentDependencies:
    store: Any
    provider: Any


def _dependencies() -> PaymentDependencies:
    return PaymentDependencies(store=PaymentStore(), provider=StripeProvider())


def _account_attributes(account: Any, previous_status: str) -> dict[str, Any]:
    return {
        "status": compute_status(account, previous_status).value,
        "chargesEnabled": bool(stripe_field(account, "charges_enabled", False)),
        "payoutsEnabled": bool(stripe_field(account, "payouts_enabled", False)),
        "detailsSubmitted": bool(stripe_field(account, "details_submitted", False)),
        "country": stripe_field(account, "country"),
        "currency": stripe_field(account, "default_currency"),
    }


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

        account = deps.provider.retrieve_account(settings.connected_account_id)
        saved = deps.store.update_settings(
            tenant_id,
            _account_attributes(account, settings.status),
            expected_updated_at=settings.updated_at,
        )
        logger.info(
            "Connected account status synced",
            previous_status=settings.status.value,
            status=saved.status.value,
        )
        return http.response(200, saved.to_response())
    except PaymentsError as exc:
        return http.error(exc.status_code, exc.message)
    except Exception:
        logger.exception("Unhandled connect-sync-status error")
        return http.error(500, "Internal server error")
