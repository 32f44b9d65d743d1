from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
import pytest
from payments_core import Conflict, PaymentStatus, TenantPaymentSettings
from payments_core.models import TenantRecord, TenantSubscription, UserRoleGrant

JWT_SECRET = "unit-test-signing-secret-0123456789abcdef"  # pragma: allowlist secret
AUDIENCE = "authenticated"


class FakePaymentStore:
    """In-memory stand-in for PaymentStore with the same compare-and-swap rules."""

    def __init__(self) -> None:
        self.grants: dict[str, list[UserRoleGrant]] = {}
        self.tenants: dict[str, TenantRecord] = {}
        self.settings: dict[str, TenantPaymentSettings] = {}
        self.subscriptions: dict[str, TenantSubscription] = {}
        self.updates: list[dict[str, Any]] = []
        self._clock = 0

    def _tick(self) -> str:
        self._clock += 1
        return f"2026-03-01T12:00:{self._clock:02d}.000000Z"

    def add_grant(self, user_id: str, role: str, tenant_id: str | None = None) -> None:
        self.grants.setdefault(user_id, []).append(
            UserRoleGrant(user_id=user_id, role=role, tenant_id=tenant_id)
        )

    def add_tenant(self, tenant_id: str, owner_id: str | None = None, **kwargs: Any) -> None:
        self.tenants[tenant_id] = TenantRecord(
            tenant_id=tenant_id, name=kwargs.pop("name", tenant_id), owner_id=owner_id, **kwargs
        )

    def add_settings(self, tenant_id: str, **kwargs: Any) -> TenantPaymentSettings:
        stamp = self._tick()
        kwargs.setdefault("status", PaymentStatus.CONNECTED)
        settings = TenantPaymentSettings(
            tenant_id=tenant_id, created_at=stamp, updated_at=stamp, **kwargs
        )
        self.settings[tenant_id] = settings
        return settings

    def list_role_grants(self, user_id: str) -> list[UserRoleGrant]:
        return list(self.grants.get(user_id, []))

    def get_tenant(self, tenant_id: str) -> TenantRecord | None:
        return self.tenants.get(tenant_id)

    def load_settings(self, tenant_id: str) -> TenantPaymentSettings | None:
        return self.settings.get(tenant_id)

    def get_subscription(self, tenant_id: str) -> TenantSubscription | None:
        return self.subscriptions.get(tenant_id)

    def create_settings(self, settings: TenantPaymentSettings) -> TenantPaymentSettings:
        if settings.tenant_id in self.settings:
            raise Conflict("Payment settings already exist for tenant")
        stamp = self._tick()
        item = settings.to_item()
        item["createdAt"] = stamp
        item["updatedAt"] = stamp
        saved = TenantPaymentSettings.from_item(item)
        self.settings[settings.tenant_id] = saved
        return saved

    def update_settings(
        self,
        tenant_id: str,
        attributes: dict[str, Any],
        *,
        expected_updated_at: str,
    ) -> TenantPaymentSettings:
        current = self.settings.get(tenant_id)
        if current is None or current.updated_at != expected_updated_at:
            raise Conflict("Payment settings were modified concurrently; retry")
        self.updates.append(dict(attributes))
        item = current.to_item()
        item.update(attributes)
        item["updatedAt"] = self._tick()
        saved = TenantPaymentSettings.from_item(item)
        self.settings[tenant_id] = saved
        return saved


class FakeStripeProvider:
    """Records every provider call and returns plain-dict Stripe objects."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.account: dict[str, Any] = {
            "id": "acct_123",
            "charges_enabled": True,
            "payouts_enabled": True,
            "details_submitted": True,
            "country": "DK",
            "default_currency": "dkk",
            "requirements": {"currently_due": [], "past_due": [], "pending_verification": []},
        }
        self.error: Exception | None = None

    def _record(self, name: str, **kwargs: Any) -> None:
        self.calls.append((name, kwargs))
        if self.error is not None:
            raise self.error

    def create_payment_intent(self, **kwargs: Any) -> dict[str, Any]:
        self._record("create_payment_intent", **kwargs)
        return {"id": "pi_123", "client_secret": "pi_123_secret_abc"}

    def retrieve_account(self, account_id: str) -> dict[str, Any]:
        self._record("retrieve_account", account_id=account_id)
        return dict(self.account, id=account_id)

    def create_express_account(self, **kwargs: Any) -> dict[str, Any]:
        self._record("create_express_account", **kwargs)
        return dict(self.account)

    def create_account_session(self, account_id: str) -> dict[str, Any]:
        self._record("create_account_session", account_id=account_id)
        return {"client_secret": "accs_secret_123"}

    def create_billing_portal_session(self, **kwargs: Any) -> dict[str, Any]:
        self._record("create_billing_portal_session", **kwargs)
        return {"url": "https://billing.stripe.com/p/session/test_123"}


class FakeLambdaContext:
    function_name = "payments"
    memory_limit_in_mb = 256
    invoked_function_arn = "arn:aws:lambda:eu-west-2:111111111111:function:payments"
    aws_request_id = "req-123"


@pytest.fixture(autouse=True)
def auth_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWS_REGION", "eu-west-2")
    monkeypatch.setenv("AUTH_JWT_SECRET", JWT_SECRET)
    monkeypatch.setenv("AUTH_AUDIENCE", AUDIENCE)
    monkeypatch.delenv("AUTH_JWKS_URL", raising=False)
    monkeypatch.delenv("AUTH_ISSUER", raising=False)


@pytest.fixture
def store() -> FakePaymentStore:
    return FakePaymentStore()


@pytest.fixture
def provider() -> FakeStripeProvider:
    return FakeStripeProvider()


@pytest.fixture
def lambda_context() -> FakeLambdaContext:
    return FakeLambdaContext()


def make_token(
    sub: str = "user-001",
    *,
    expires_in: int = 3600,
    secret: str = JWT_SECRET,
    email: str | None = None,
) -> str:
    now = datetime.now(UTC)
    claims: dict[str, Any] = {
        "sub": sub,
        "aud": AUDIENCE,
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
    }
    if email is not None:
        claims["email"] = email
    return jwt.encode(claims, secret, algorithm="HS256")


def make_event(
    body: dict[str, Any] | None = None,
    *,
    token: str | None = None,
    method: str = "POST",
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    all_headers = dict(headers or {})
    if token is not None:
        all_headers["Authorization"] = f"Bearer {token}"
    return {
        "httpMethod": method,
        "headers": all_headers,
        "body": None if body is None else json.dumps(body),
    }


def body_of(response: dict[str, Any]) -> Any:
    return json.loads(response["body"])
