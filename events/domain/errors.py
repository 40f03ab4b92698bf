"""Domain error codes for event participation and payments."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    PAYMENT_PROVIDER_ERROR = "PAYMENT_PROVIDER_ERROR"
    WEBHOOK_SIGNATURE_INVALID = "WEBHOOK_SIGNATURE_INVALID"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    REFUND_NOT_ELIGIBLE = "REFUND_NOT_ELIGIBLE"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Raised for malformed input or a request the current state does not allow."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.VALIDATION_ERROR, message=message)


class CapacityExceededError(DomainError):
    """Raised when no participation slot is left."""

    def __init__(self, event_id: str, is_workshop: bool = False) -> None:
        super().__init__(
            code=ErrorCode.CAPACITY_EXCEEDED,
            message="Workshop is full" if is_workshop else "Event is full",
        )
        self.event_id = event_id


class PaymentProviderError(DomainError):
    """Declined card, provider outage or provider-side validation.

    The provider's own message is kept so the caller can show retry guidance.
    """

    def __init__(self, message: str, provider_code: str | None = None) -> None:
        super().__init__(code=ErrorCode.PAYMENT_PROVIDER_ERROR, message=message)
        self.provider_code = provider_code


class WebhookSignatureError(DomainError):
    """Raised when a webhook payload does not match its signature."""

    def __init__(self, message: str = "Invalid webhook signature") -> None:
        super().__init__(code=ErrorCode.WEBHOOK_SIGNATURE_INVALID, message=message)


class NotFoundError(DomainError):
    """Raised for an unknown event, participant, purchase or payment intent."""

    def __init__(self, resource: str, resource_id: str) -> None:
        super().__init__(code=ErrorCode.NOT_FOUND, message=f"{resource} not found")
        self.resource = resource
        self.resource_id = resource_id


class UnauthorizedError(DomainError):
    """Raised when acting on another user's participation or a non-owned event."""

    def __init__(self, message: str = "Not allowed to perform this action") -> None:
        super().__init__(code=ErrorCode.UNAUTHORIZED, message=message)


class RefundNotEligibleError(DomainError):
    """Raised when a refund is attempted on a payment that was never captured."""

    def __init__(self, message: str = "Only paid participations can be refunded") -> None:
        super().__init__(code=ErrorCode.REFUND_NOT_ELIGIBLE, message=message)
