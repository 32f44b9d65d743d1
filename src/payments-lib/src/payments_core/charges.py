"""
payments_core.charges — Charge routing and connected-account status.

A tenant is connect-eligible when its settings exist, carry a connected
account id, report charges_enabled, and are not DISABLED.  Eligible
tenants get a direct charge on their connected account with the platform
fee attached; everyone else is charged at platform level with no fee split.
"""

from __future__ import annotations

from typing import Any, Protocol

from aws_lambda_powertools import Logger

from payments_core.exceptions import InvalidInput, UpstreamError
from payments_core.fees import compute_fee
from payments_core.models import ChargeMode, ChargeResult, PaymentStatus, TenantPaymentSettings

logger = Logger(service="payments-core")

_REQUIREMENT_LISTS = ("currently_due", "past_due", "pending_verification")


def stripe_field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from a Stripe object or a plain dict."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def compute_status(
    account: Any, previous_status: PaymentStatus | str | None = None
) -> PaymentStatus:
    """Map a provider account to a settings status.

    DISABLED is sticky: a previously disabled tenant stays disabled no
    matter what the provider reports.
    """
    if previous_status is not None and PaymentStatus(previous_status) == PaymentStatus.DISABLED:
        return PaymentStatus.DISABLED
    if stripe_field(account, "charges_enabled"):
        return PaymentStatus.CONNECTED
    requirements = stripe_field(account, "requirements")
    if any(stripe_field(requirements, name) for name in _REQUIREMENT_LISTS):
        return PaymentStatus.RESTRICTED
    return PaymentStatus.PENDING


class SettingsSource(Protocol):
    def load_settings(self, tenant_id: str) -> TenantPaymentSettings | None: ...


class ChargeProvider(Protocol):
    def create_payment_intent(
        self,
        *,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        application_fee_amount: int | None = None,
        stripe_account: str | None = None,
        idempotency_key: str | None = None,
    ) -> Any: ...


def _charge_metadata(tenant_id: str, metadata: dict[str, Any] | None) -> dict[str, str]:
    merged = {str(k): str(v) for k, v in (metadata or {}).items() if v is not None}
    merged["tenant_id"] = tenant_id
    return merged


class ChargeRouter:
    """Creates a tenant's charge on the right account.

    Settings are loaded fresh on every call.
    """

    def __init__(self, store: SettingsSource, provider: ChargeProvider) -> None:
        self._store = store
        self._provider = provider

    def create_charge(
        self,
        tenant_id: str,
        amount: int,
        currency: str,
        metadata: dict[str, Any] | None = None,
        *,
        idempotency_key: str | None = None,
    ) -> ChargeResult:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidInput("amount_ore must be a positive number")

        settings = self._store.load_settings(tenant_id)
        charge_metadata = _charge_metadata(tenant_id, metadata)

        if settings is not None and settings.is_connect_eligible:
            fee = compute_fee(amount, settings.platform_fee_percent, settings.platform_fee_flat)
            intent = self._provider.create_payment_intent(
                amount=amount,
                currency=currency,
                metadata=charge_metadata,
                application_fee_amount=fee if fee > 0 else None,
                stripe_account=settings.connected_account_id,
                idempotency_key=idempotency_key,
            )
            mode = ChargeMode.DIRECT
        else:
            fee = 0
            intent = self._provider.create_payment_intent(
                amount=amount,
                currency=currency,
                metadata=charge_metadata,
                idempotency_key=idempotency_key,
            )
            mode = ChargeMode.PLATFORM

        client_secret = stripe_field(intent, "client_secret")
        if not client_secret:
            raise UpstreamError("Payment provider returned no client secret")

        logger.info(
            "Charge created",
            tenant_id=tenant_id,
            mode=mode.value,
            amount=amount,
            currency=currency,
            application_fee=fee,
        )
        return ChargeResult(
            client_secret=str(client_secret),
            payment_intent_id=str(stripe_field(intent, "id", "")),
            mode=mode,
            application_fee=fee,
            metadata=charge_metadata,
        )
