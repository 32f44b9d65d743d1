"""
payments_core — Tenant payment authorization, settings, fees and charge routing.

Shared by every payment Lambda.  Handlers stay thin: parse the request,
verify the caller, authorize(), then call into the store, router or provider.
"""

from payments_core.access import authorize, authorize_request
from payments_core.charges import ChargeRouter, compute_status
from payments_core.exceptions import (
    Conflict,
    Forbidden,
    InvalidInput,
    NotFound,
    PaymentsError,
    Unauthenticated,
    UpstreamError,
)
from payments_core.fees import compute_fee
from payments_core.models import ChargeResult, PaymentStatus, TenantPaymentSettings
from payments_core.store import PaymentStore

__all__ = [
    "ChargeResult",
    "ChargeRouter",
    "Conflict",
    "Forbidden",
    "InvalidInput",
    "NotFound",
    "PaymentStatus",
    "PaymentStore",
    "PaymentsError",
    "TenantPaymentSettings",
    "Unauthenticated",
    "UpstreamError",
    "authorize",
    "authorize_request",
    "compute_fee",
    "compute_status",
]
