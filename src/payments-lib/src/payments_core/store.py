"""
payments_core.store — DynamoDB access for tenants, role grants and payment settings.

Every read goes to the table; nothing is cached between calls, so an
authorization or settings decision always reflects the current rows.

Settings writes use updatedAt as a compare-and-swap token: an update whose
expected token no longer matches fails with Conflict instead of silently
overwriting a concurrent change (e.g. a disable racing a sync).
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import boto3
from aws_lambda_powertools import Logger
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from payments_core import config
from payments_core.exceptions import Conflict, UpstreamError
from payments_core.models import (
    PROVIDER_STRIPE,
    TenantPaymentSettings,
    TenantRecord,
    TenantSubscription,
    UserRoleGrant,
)

logger = Logger(service="payments-core")

_CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"


def _now_utc() -> datetime:
    return datetime.now(UTC)


def _iso(dt: datetime) -> str:
    return dt.isoformat(timespec="microseconds").replace("+00:00", "Z")


def _ddb_value(value: Any) -> Any:
    if isinstance(value, float):
        return Decimal(str(value))
    return value


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", "Unknown"))


def _error_message(exc: ClientError) -> str:
    error = exc.response.get("Error", {})
    return str(error.get("Message") or error.get("Code") or "DynamoDB request failed")


def _build_update_expression(
    attributes: dict[str, Any],
) -> tuple[str, dict[str, str], dict[str, Any]]:
    names: dict[str, str] = {}
    values: dict[str, Any] = {}
    set_parts: list[str] = []
    for idx, (attr, raw_value) in enumerate(attributes.items(), start=1):
        name_key = f"#n{idx}"
        value_key = f":v{idx}"
        names[name_key] = attr
        values[value_key] = _ddb_value(raw_value)
        set_parts.append(f"{name_key} = {value_key}")
    return "SET " + ", ".join(set_parts), names, values


def tenant_key(tenant_id: str) -> dict[str, str]:
    return {"PK": f"TENANT#{tenant_id}", "SK": "METADATA"}


def settings_key(tenant_id: str, provider: str = PROVIDER_STRIPE) -> dict[str, str]:
    return {"PK": f"TENANT#{tenant_id}", "SK": f"PAYMENT#{provider}"}


def subscription_key(tenant_id: str) -> dict[str, str]:
    return {"PK": f"TENANT#{tenant_id}", "SK": "SUBSCRIPTION"}


class PaymentStore:
    """
    Table access for the payment functions.

    Reads return model instances or None; they never raise for a missing
    row.  Any DynamoDB failure other than a lost compare-and-swap surfaces
    as UpstreamError with the service message attached.
    """

    def __init__(self, *, dynamodb_resource: Any = None) -> None:
        self._dynamodb: Any = dynamodb_resource or boto3.resource(
            "dynamodb", region_name=config.aws_region()
        )

    def _table(self, table_name: str) -> Any:
        return self._dynamodb.Table(table_name)

    def _get(self, table_name: str, key: dict[str, str]) -> dict[str, Any] | None:
        try:
            response = self._table(table_name).get_item(Key=key)
        except ClientError as exc:
            logger.exception("DynamoDB get_item failed", table=table_name, key=key)
            raise UpstreamError(_error_message(exc)) from exc
        return response.get("Item")

    # -- reads ---------------------------------------------------------------

    def list_role_grants(self, user_id: str) -> list[UserRoleGrant]:
        """All role grants held by user_id, following pagination to the end."""
        table = self._table(config.user_roles_table_name())
        kwargs: dict[str, Any] = {"KeyConditionExpression": Key("PK").eq(f"USER#{user_id}")}
        grants: list[UserRoleGrant] = []
        while True:
            try:
                response = table.query(**kwargs)
            except ClientError as exc:
                logger.exception("DynamoDB query for role grants failed", user_id=user_id)
                raise UpstreamError(_error_message(exc)) from exc
            grants.extend(UserRoleGrant.from_item(item) for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return grants
            kwargs["ExclusiveStartKey"] = last_key

    def get_tenant(self, tenant_id: str) -> TenantRecord | None:
        item = self._get(config.tenants_table_name(), tenant_key(tenant_id))
        return TenantRecord.from_item(item) if item else None

    def load_settings(self, tenant_id: str) -> TenantPaymentSettings | None:
        """Stored payment settings, or None when onboarding never began."""
        item = self._get(config.payment_settings_table_name(), settings_key(tenant_id))
        return TenantPaymentSettings.from_item(item) if item else None

    def get_subscription(self, tenant_id: str) -> TenantSubscription | None:
        item = self._get(config.payment_settings_table_name(), subscription_key(tenant_id))
        return TenantSubscription.from_item(item) if item else None

    # -- writes --------------------------------------------------------------

    def create_settings(self, settings: TenantPaymentSettings) -> TenantPaymentSettings:
        """Insert a settings row; Conflict if one was created concurrently."""
        now = _iso(_now_utc())
        item = settings.to_item()
        item["createdAt"] = now
        item["updatedAt"] = now
        try:
            self._table(config.payment_settings_table_name()).put_item(
                Item={key: _ddb_value(value) for key, value in item.items()},
                ConditionExpression="attribute_not_exists(PK) AND attribute_not_exists(SK)",
            )
        except ClientError as exc:
            if _error_code(exc) == _CONDITIONAL_CHECK_FAILED:
                raise Conflict("Payment settings already exist for tenant") from exc
            logger.exception("DynamoDB put_item for payment settings failed")
            raise UpstreamError(_error_message(exc)) from exc
        return TenantPaymentSettings.from_item(item)

    def update_settings(
        self,
        tenant_id: str,
        attributes: dict[str, Any],
        *,
        expected_updated_at: str,
    ) -> TenantPaymentSettings:
        """Apply attribute changes if the row still carries expected_updated_at.

        attributes uses stored (camelCase) attribute names.  updatedAt is
        always refreshed.  Raises Conflict when the row changed since it
        was read (or vanished).  An empty expected_updated_at matches a row
        that has never been stamped.
        """
        changes = dict(attributes)
        changes["updatedAt"] = _iso(_now_utc())
        update_expression, names, values = _build_update_expression(changes)
        updated_ref = next(ref for ref, attr in names.items() if attr == "updatedAt")
        if expected_updated_at:
            values[":expected"] = expected_updated_at
            condition = f"attribute_exists(PK) AND {updated_ref} = :expected"
        else:
            # Rows written outside this library may carry no updatedAt yet.
            condition = f"attribute_exists(PK) AND attribute_not_exists({updated_ref})"
        try:
            response = self._table(config.payment_settings_table_name()).update_item(
                Key=settings_key(tenant_id),
                UpdateExpression=update_expression,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ConditionExpression=condition,
                ReturnValues="ALL_NEW",
            )
        except ClientError as exc:
            if _error_code(exc) == _CONDITIONAL_CHECK_FAILED:
                logger.warning(
                    "Payment settings changed concurrently",
                    tenant_id=tenant_id,
                    expected_updated_at=expected_updated_at,
                )
                raise Conflict("Payment settings were modified concurrently; retry") from exc
            logger.exception("DynamoDB update_item for payment settings failed")
            raise UpstreamError(_error_message(exc)) from exc
        return TenantPaymentSettings.from_item(response.get("Attributes", {}))
