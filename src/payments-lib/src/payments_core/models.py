"""
payments_core.models — DynamoDB table schemas for tenant payment data.

Tables defined here:
    printshop-tenants           — tenant registry, owner lookup
    printshop-user-roles        — role grants per user
    printshop-payment-settings  — connected-account settings and billing
                                  subscription, both under TENANT#{tenantId}

Items are stored with camelCase attribute names; the dataclasses expose
snake_case fields and convert at the table boundary via from_item/to_item.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from typing import Any

PROVIDER_STRIPE = "stripe"
GLOBAL_SCOPE = "GLOBAL"


# ---------------------------------------------------------------------------
# Enums — constrained vocabulary for status/role fields
# ---------------------------------------------------------------------------


class PaymentStatus(StrEnum):
    NOT_CONFIGURED = "not_configured"
    PENDING = "pending"
    RESTRICTED = "restricted"
    CONNECTED = "connected"
    DISABLED = "disabled"


class Role(StrEnum):
    MASTER_ADMIN = "master_admin"
    ADMIN = "admin"
    STAFF = "staff"


# Roles that grant access to exactly the tenant named on the grant.
TENANT_SCOPED_ROLES: frozenset[str] = frozenset({Role.ADMIN.value, Role.STAFF.value})


class ChargeMode(StrEnum):
    DIRECT = "direct"
    PLATFORM = "platform"


class AccessPath(StrEnum):
    MASTER_ADMIN = "master_admin"
    ROLE = "role"
    OWNER = "owner"


def _int_or_none(value: Any) -> int | None:
    if value is None:
        return None
    return int(value)


def _decimal_or_none(value: Any) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


def _drop_none(item: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in item.items() if v is not None}


def _tenant_id_of(item: dict[str, Any]) -> str:
    if item.get("tenantId"):
        return str(item["tenantId"])
    return str(item["PK"]).removeprefix("TENANT#")


# ---------------------------------------------------------------------------
# Table: printshop-tenants
# PK: TENANT#{tenantId}  SK: METADATA
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TenantRecord:
    """Tenant registry record.

    owner_id is an independent access path: it grants access even when the
    owner holds no role grant for the tenant.
    """

    tenant_id: str
    name: str
    owner_id: str | None = None
    company_country: str | None = None
    company_email: str | None = None

    @property
    def pk(self) -> str:
        return f"TENANT#{self.tenant_id}"

    @property
    def sk(self) -> str:
        return "METADATA"

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> TenantRecord:
        return cls(
            tenant_id=str(item["tenantId"]),
            name=str(item.get("name", "")),
            owner_id=item.get("ownerId"),
            company_country=item.get("companyCountry"),
            company_email=item.get("companyEmail"),
        )

    def to_item(self) -> dict[str, Any]:
        return _drop_none(
            {
                "PK": self.pk,
                "SK": self.sk,
                "tenantId": self.tenant_id,
                "name": self.name,
                "ownerId": self.owner_id,
                "companyCountry": self.company_country,
                "companyEmail": self.company_email,
            }
        )


# ---------------------------------------------------------------------------
# Table: printshop-user-roles
# PK: USER#{userId}  SK: ROLE#{role}#{tenantId | GLOBAL}
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UserRoleGrant:
    """A single role held by a user.

    tenant_id=None means the grant is not scoped to a tenant.  Only
    master_admin is meaningful unscoped; an unscoped admin/staff grant
    matches no tenant.
    """

    user_id: str
    role: str
    tenant_id: str | None = None

    @property
    def pk(self) -> str:
        return f"USER#{self.user_id}"

    @property
    def sk(self) -> str:
        return f"ROLE#{self.role}#{self.tenant_id or GLOBAL_SCOPE}"

    def grants_tenant(self, tenant_id: str) -> bool:
        return self.role in TENANT_SCOPED_ROLES and self.tenant_id == tenant_id

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> UserRoleGrant:
        return cls(
            user_id=str(item["userId"]),
            role=str(item["role"]),
            tenant_id=item.get("tenantId"),
        )

    def to_item(self) -> dict[str, Any]:
        return _drop_none(
            {
                "PK": self.pk,
                "SK": self.sk,
                "userId": self.user_id,
                "role": self.role,
                "tenantId": self.tenant_id,
            }
        )


# ---------------------------------------------------------------------------
# Table: printshop-payment-settings
# PK: TENANT#{tenantId}  SK: PAYMENT#stripe
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TenantPaymentSettings:
    """Connected-account payment configuration for one tenant.

    Lifecycle: created by the first onboarding step, updated by sync and
    disable, never deleted.  DISABLED is sticky: sync never promotes it.
    Fee fields may be None; the fee calculator treats None as 0.
    """

    tenant_id: str
    status: PaymentStatus
    created_at: str  # ISO 8601 UTC
    updated_at: str  # ISO 8601 UTC — compare-and-swap token for updates
    provider: str = PROVIDER_STRIPE
    connected_account_id: str | None = None
    charges_enabled: bool = False
    payouts_enabled: bool = False
    details_submitted: bool = False
    country: str | None = None
    currency: str | None = None
    platform_fee_percent: Decimal | None = None
    platform_fee_flat: int | None = None

    @property
    def pk(self) -> str:
        return f"TENANT#{self.tenant_id}"

    @property
    def sk(self) -> str:
        return f"PAYMENT#{self.provider}"

    @property
    def is_connect_eligible(self) -> bool:
        return (
            bool(self.connected_account_id)
            and self.charges_enabled
            and self.status != PaymentStatus.DISABLED
        )

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> TenantPaymentSettings:
        return cls(
            tenant_id=_tenant_id_of(item),
            provider=str(item.get("provider", PROVIDER_STRIPE)),
            connected_account_id=item.get("connectedAccountId"),
            status=PaymentStatus(item.get("status", PaymentStatus.NOT_CONFIGURED.value)),
            charges_enabled=bool(item.get("chargesEnabled", False)),
            payouts_enabled=bool(item.get("payoutsEnabled", False)),
            details_submitted=bool(item.get("detailsSubmitted", False)),
            country=item.get("country"),
            currency=item.get("currency"),
            platform_fee_percent=_decimal_or_none(item.get("platformFeePercent")),
            platform_fee_flat=_int_or_none(item.get("platformFeeFlat")),
            created_at=str(item.get("createdAt", "")),
            updated_at=str(item.get("updatedAt", "")),
        )

    def to_item(self) -> dict[str, Any]:
        return _drop_none(
            {
                "PK": self.pk,
                "SK": self.sk,
                "tenantId": self.tenant_id,
                "provider": self.provider,
                "connectedAccountId": self.connected_account_id,
                "status": self.status.value,
                "chargesEnabled": self.charges_enabled,
                "payoutsEnabled": self.payouts_enabled,
                "detailsSubmitted": self.details_submitted,
                "country": self.country,
                "currency": self.currency,
                "platformFeePercent": self.platform_fee_percent,
                "platformFeeFlat": self.platform_fee_flat,
                "createdAt": self.created_at,
                "updatedAt": self.updated_at,
            }
        )

    def to_response(self) -> dict[str, Any]:
        """JSON shape returned to the admin panel."""
        return {
            "tenant_id": self.tenant_id,
            "provider": self.provider,
            "connected_account_id": self.connected_account_id,
            "status": self.status.value,
            "charges_enabled": self.charges_enabled,
            "payouts_enabled": self.payouts_enabled,
            "details_submitted": self.details_submitted,
            "country": self.country,
            "currency": self.currency,
            "platform_fee_percent": (
                float(self.platform_fee_percent) if self.platform_fee_percent is not None else None
            ),
            "platform_fee_flat": self.platform_fee_flat,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


# ---------------------------------------------------------------------------
# Table: printshop-payment-settings
# PK: TENANT#{tenantId}  SK: SUBSCRIPTION
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TenantSubscription:
    """Platform subscription billed to the tenant itself (not its shoppers)."""

    tenant_id: str
    customer_id: str | None = None
    status: str | None = None

    @property
    def pk(self) -> str:
        return f"TENANT#{self.tenant_id}"

    @property
    def sk(self) -> str:
        return "SUBSCRIPTION"

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> TenantSubscription:
        return cls(
            tenant_id=str(item["tenantId"]),
            customer_id=item.get("customerId"),
            status=item.get("status"),
        )

    def to_item(self) -> dict[str, Any]:
        return _drop_none(
            {
                "PK": self.pk,
                "SK": self.sk,
                "tenantId": self.tenant_id,
                "customerId": self.customer_id,
                "status": self.status,
            }
        )


# ---------------------------------------------------------------------------
# Runtime values — never persisted
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccessGrant:
    """Result of a successful authorization: who, for which tenant, and why."""

    caller_id: str
    tenant_id: str
    path: AccessPath
    caller_email: str | None = None


@dataclass(frozen=True)
class ChargeResult:
    """Client-usable handle for a created charge.

    mode selects the storefront's completion flow: DIRECT charges must be
    confirmed against the connected account, PLATFORM charges against the
    platform account.
    """

    client_secret: str
    payment_intent_id: str
    mode: ChargeMode
    application_fee: int = 0
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def connected(self) -> bool:
        return self.mode == ChargeMode.DIRECT

    def to_response(self) -> dict[str, Any]:
        return {
            "client_secret": self.client_secret,
            "connected": self.connected,
            "mode": self.mode.value,
        }
