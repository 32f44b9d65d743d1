"""
payments_core.access — Tenant access resolution for payment operations.

A caller may act on a tenant's payment configuration when any of these
holds, checked in order (first match wins):

  1. The caller holds a master_admin grant (any tenant).
  2. The caller holds an admin or staff grant scoped to the tenant.
  3. The tenant's owner_id is the caller.

Every entry point calls authorize() itself; results are never cached
across requests.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Protocol

from aws_lambda_powertools import Logger

from payments_core.auth import verify_claims
from payments_core.exceptions import Forbidden
from payments_core.http import header
from payments_core.models import AccessGrant, AccessPath, Role, TenantRecord, UserRoleGrant

logger = Logger(service="payments-core")


class AccessSource(Protocol):
    def list_role_grants(self, user_id: str) -> list[UserRoleGrant]: ...

    def get_tenant(self, tenant_id: str) -> TenantRecord | None: ...


def authorize(caller_id: str, tenant_id: str, store: AccessSource) -> AccessGrant:
    """Return the grant that allows caller_id to act on tenant_id.

    Raises Forbidden when no path applies.  The tenant row is only read
    when neither role path matched.
    """
    grants = store.list_role_grants(caller_id)

    if any(grant.role == Role.MASTER_ADMIN for grant in grants):
        return AccessGrant(caller_id=caller_id, tenant_id=tenant_id, path=AccessPath.MASTER_ADMIN)

    if any(grant.grants_tenant(tenant_id) for grant in grants):
        return AccessGrant(caller_id=caller_id, tenant_id=tenant_id, path=AccessPath.ROLE)

    tenant = store.get_tenant(tenant_id)
    if tenant is not None and tenant.owner_id is not None and tenant.owner_id == caller_id:
        return AccessGrant(caller_id=caller_id, tenant_id=tenant_id, path=AccessPath.OWNER)

    logger.warning(
        "Caller denied access to tenant payment settings",
        caller_id=caller_id,
        tenant_id=tenant_id,
        role_count=len(grants),
    )
    raise Forbidden(caller_id=caller_id, tenant_id=tenant_id)


def authorize_request(event: dict[str, Any], tenant_id: str, store: AccessSource) -> AccessGrant:
    """Verify the request's bearer token, then authorize the caller for tenant_id."""
    claims = verify_claims(header(event, "Authorization"))
    grant = authorize(claims["sub"], tenant_id, store)
    email = claims.get("email")
    if isinstance(email, str) and email.strip():
        return replace(grant, caller_email=email.strip())
    return grant
