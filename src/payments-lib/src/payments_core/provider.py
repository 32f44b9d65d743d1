"""
payments_core.provider — Thin wrapper over the Stripe SDK.

Keeps every Stripe call in one place so handlers and the charge router
depend on a small surface that tests can replace with a fake.  All Stripe
errors are converted to UpstreamError carrying Stripe's user message.
No call is retried.
"""

from __future__ import annotations

from typing import Any

import stripe
from aws_lambda_powertools import Logger

from payments_core import config
from payments_core.exceptions import UpstreamError

logger = Logger(service="payments-core")


def _stripe_message(exc: stripe.StripeError) -> str:
    return exc.user_message or str(exc) or "Payment provider request failed"


class StripeProvider:
    """Stripe calls used by the payment functions."""

    def __init__(self, *, api_key: str | None = None, api_version: str | None = None) -> None:
        self._api_key = api_key or config.stripe_secret_key()
        self._options: dict[str, Any] = {
            "api_key": self._api_key,
            "stripe_version": api_version or config.stripe_api_version(),
        }

    def _call(self, operation: str, func: Any, *args: Any, **kwargs: Any) -> Any:
        if not self._api_key:
            logger.error("STRIPE_SECRET_KEY is not configured", operation=operation)
            raise UpstreamError("Payment provider is not configured")
        try:
            return func(*args, **self._options, **kwargs)
        except stripe.StripeError as exc:
            logger.exception(
                "Stripe request failed",
                operation=operation,
                stripe_code=getattr(exc, "code", None),
                request_id=getattr(exc, "request_id", None),
            )
            raise UpstreamError(_stripe_message(exc)) from exc

    def create_payment_intent(
        self,
        *,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        application_fee_amount: int | None = None,
        stripe_account: str | None = None,
        idempotency_key: str | None = None,
    ) -> Any:
        params: dict[str, Any] = {
            "amount": amount,
            "currency": currency,
            "metadata": metadata,
        }
        if application_fee_amount is not None:
            params["application_fee_amount"] = application_fee_amount
        if stripe_account is not None:
            params["stripe_account"] = stripe_account
        if idempotency_key is not None:
            params["idempotency_key"] = idempotency_key
        return self._call("payment_intent.create", stripe.PaymentIntent.create, **params)

    def retrieve_account(self, account_id: str) -> Any:
        return self._call("account.retrieve", stripe.Account.retrieve, account_id)

    def create_express_account(
        self,
        *,
        country: str,
        email: str | None,
        metadata: dict[str, str],
    ) -> Any:
        params: dict[str, Any] = {
            "type": "express",
            "country": country,
            "capabilities": {
                "card_payments": {"requested": True},
                "transfers": {"requested": True},
            },
            "metadata": metadata,
        }
        if email:
            params["email"] = email
        return self._call("account.create", stripe.Account.create, **params)

    def create_account_session(self, account_id: str) -> Any:
        return self._call(
            "account_session.create",
            stripe.AccountSession.create,
            account=account_id,
            components={"account_onboarding": {"enabled": True}},
        )

    def create_billing_portal_session(self, *, customer_id: str, return_url: str) -> Any:
        return self._call(
            "billing_portal.session.create",
            stripe.billing_portal.Session.create,
            customer=customer_id,
            return_url=return_url,
        )
