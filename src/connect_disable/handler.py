"""
connect_disable.handler — Disable connected-account charging for a tenant.

Local only: the provider account is left untouched.  Once DISABLED, the
tenant is charged at platform level and no sync re-enables it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from aws_lambda_powertools import Logger, Tracer
from payments_core import (
    NotFound,
    PaymentsError,
    PaymentStatus,
    PaymentStore,
    authorize_request,
    http,
)

logger = Logger(service="connect-disable")
tracer = Tracer()


@dataclass(frozen=True)
class PaymentDependencies:
    store: Any


def _dependencies() -> PaymentDependencies:
    return PaymentDependencies(store=PaymentStore())


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
        if settings is None:
            raise NotFound("Payment settings not found for tenant")
        if settings.status == PaymentStatus.DISABLED:
            return http.response(200, settings.to_response())

        saved = deps.store.update_settings(
            tenant_id,
            {"status": PaymentStatus.DISABLED.value},
            expected_updated_at=settings.updated_at,
        )
        logger.info("Connected account disabled", previous_status=settings.status.value)
        return http.response(200, saved.to_response())
    except PaymentsError as exc:
        return http.error(exc.status_code, exc.message)
    except Exception:
        logger.exception("Unhandled connect-disable error")
        return http.error(500, "Internal server error")
