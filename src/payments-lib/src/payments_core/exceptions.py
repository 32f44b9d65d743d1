"""
payments_core.exceptions — Error taxonomy shared by every payment function.

Each error carries the HTTP status the handler boundary answers with.
Handlers never inspect messages to pick a status; they read status_code.
"""


class PaymentsError(Exception):
    """Base class for errors that map directly to an HTTP error response."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidInput(PaymentsError):
    """Missing or malformed request body field."""

    status_code = 400


class Unauthenticated(PaymentsError):
    """Missing, malformed, expired or otherwise invalid bearer token."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class Forbidden(PaymentsError):
    """
    Raised when an authenticated caller may not act on a tenant.

    Attributes:
        caller_id: Subject of the verified token.
        tenant_id: Tenant the caller attempted to act on.
    """

    status_code = 403

    def __init__(self, *, caller_id: str, tenant_id: str) -> None:
        self.caller_id = caller_id
        self.tenant_id = tenant_id
        super().__init__("Forbidden")


class NotFound(PaymentsError):
    """Tenant has no payment configuration (or no billing customer) yet."""

    status_code = 404


class Conflict(PaymentsError):
    """Settings row changed between read and write."""

    status_code = 409


class UpstreamError(PaymentsError):
    """DynamoDB or payment-provider call failed; message is passed through."""

    status_code = 500
