"""
tests/test_provider.py — Stripe wrapper: request options and error conversion.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import stripe
from payments_core import UpstreamError
from payments_core.provider import StripeProvider


@pytest.fixture
def provider() -> StripeProvider:
    key = "sk_test_123"  # pragma: allowlist secret
    return StripeProvider(api_key=key, api_version="2023-10-16")


@patch("stripe.PaymentIntent.create")
def test_direct_payment_intent_passes_account_fee_and_idempotency(
    mock_create: MagicMock, provider: StripeProvider
) -> None:
    mock_create.return_value = {"id": "pi_1", "client_secret": "pi_1_secret"}

    provider.create_payment_intent(
        amount=1000,
        currency="dkk",
        metadata={"tenant_id": "t-1"},
        application_fee_amount=50,
        stripe_account="acct_1",
        idempotency_key="idem-1",
    )

    mock_create.assert_called_once_with(
        amount=1000,
        currency="dkk",
        metadata={"tenant_id": "t-1"},
        application_fee_amount=50,
        stripe_account="acct_1",
        idempotency_key="idem-1",
        api_key="sk_test_123",  # pragma: allowlist secret
        stripe_version="2023-10-16",
    )


@patch("stripe.PaymentIntent.create")
def test_platform_payment_intent_omits_unset_options(
    mock_create: MagicMock, provider: StripeProvider
) -> None:
    provider.create_payment_intent(amount=1000, currency="dkk", metadata={"tenant_id": "t-1"})

    kwargs = mock_create.call_args.kwargs
    assert "application_fee_amount" not in kwargs
    assert "stripe_account" not in kwargs
    assert "idempotency_key" not in kwargs


@patch("stripe.Account.retrieve")
def test_stripe_error_becomes_upstream_error(
    mock_retrieve: MagicMock, provider: StripeProvider
) -> None:
    mock_retrieve.side_effect = stripe.InvalidRequestError(
        "No such account: 'acct_missing'", param="account"
    )

    with pytest.raises(UpstreamError) as excinfo:
        provider.retrieve_account("acct_missing")

    assert "No such account" in excinfo.value.message
    assert excinfo.value.status_code == 500


def test_missing_secret_key_fails_on_first_call(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)
    unconfigured = StripeProvider()

    with pytest.raises(UpstreamError):
        unconfigured.retrieve_account("acct_1")


@patch("stripe.Account.create")
def test_express_account_requests_card_and_transfer_capabilities(
    mock_create: MagicMock, provider: StripeProvider
) -> None:
    provider.create_express_account(country="DK", email=None, metadata={"tenant_id": "t-1"})

    kwargs = mock_create.call_args.kwargs
    assert kwargs["type"] == "express"
    assert kwargs["capabilities"] == {
        "card_payments": {"requested": True},
        "transfers": {"requested": True},
    }
    assert "email" not in kwargs


@patch("stripe.billing_portal.Session.create")
def test_billing_portal_session(mock_create: MagicMock, provider: StripeProvider) -> None:
    provider.create_billing_portal_session(customer_id="cus_1", return_url="https://x.example")

    assert mock_create.call_args.kwargs["customer"] == "cus_1"
    assert mock_create.call_args.kwargs["return_url"] == "https://x.example"
