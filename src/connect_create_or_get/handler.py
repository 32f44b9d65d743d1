"""
connect_create_or_get.handler — First onboarding step for tenant payments.

Returns the existing settings when the tenant already has a connected
account.  Otherwise creates an Express account at the provider, prefilled
from the tenant's company details, and stores a new settings row.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from aws_lambda_powertools import Logger, Tracer
from payments_core import (
    PaymentsError,
    PaymentStatus,
    PaymentStore,
    TenantPaymentSettings,
    authorize_request,
    compute_status,
    http,
)
from payments_core.charges import stripe_field
from payments_core.provider import StripeProvider

logger = Logger(service="connect-create-or-get")
tracer = Tracer()

_DEFAULT_COUNTRY = "DK"


@dataclass(frozen=True)
class PaymentDependencies:
    store: Any
    provider: Any


def _dependencies() -> PaymentDependencies:
    return PaymentDependencies(store=PaymentStore(), provider=StripeProvider())


def _connected_attributes(account: Any, previous_status: PaymentStatus | None) -> dict[str, Any]:
    return {
        "connectedAccountId": str(stripe_field(account, "id")),
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

        existing = deps.store.load_settings(tenant_id)
        if existing is not None and existing.connected_account_id:
            return http.response(200, existing.to_response())

        tenant = deps.store.get_tenant(tenant_id)
        account = deps.provider.create_express_account(
            country=(tenant.company_country if tenant else None) or _DEFAULT_COUNTRY,
            email=(tenant.company_email if tenant else None) or grant.caller_email,
            metadata={"tenant_id": tenant_id, "tenant_name": tenant.name if tenant else ""},
        )
        logger.info("Connected account created", account_id=stripe_field(account, "id"))

        if existing is None:
            # A brand-new account can only be PENDING or CONNECTED.
            attributes = _connected_attributes(account, None)
            if attributes["status"] != PaymentStatus.CONNECTED.value:
                attributes["status"] = PaymentStatus.PENDING.value
            saved = deps.store.create_settings(
                TenantPaymentSettings(
                    tenant_id=tenant_id,
                    status=PaymentStatus(attributes["status"]),
                    connected_account_id=attributes["connectedAccountId"],
                    charges_enabled=attributes["chargesEnabled"],
                    payouts_enabled=attributes["payoutsEnabled"],
                    details_submitted=attributes["detailsSubmitted"],
                    country=attributes["country"],
                    currency=attributes["currency"],
                    created_at="",
                    updated_at="",
                )
            )
        else:
            # Row exists without an account (e.g. fee schedule configured first).
            saved = deps.store.update_settings(
                tenant_id,
                _connected_attributes(account, existing.status),
                expected_updated_at=existing.updated_at,
            )
        return http.response(200, saved.to_response())
    except PaymentsError as exc:
        return http.error(exc.status_code, exc.message)
    except Exception:
        logger.exception("Unhandled connect-create-or-get error")
        return http.error(500, "Internal server error")
