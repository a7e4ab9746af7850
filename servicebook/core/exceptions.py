"""Domain error taxonomy.

Every failure raised by the engine, the services or the store adapters is a
``DomainError`` carrying a machine-readable ``kind`` and a human ``message``.
Because it subclasses ``HTTPException`` the API layer can render it directly.
"""

from typing import Any

from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base domain exception."""

    kind: str = "DomainError"

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An unexpected error occurred",
        kind: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        if kind:
            self.kind = kind
        self.message = detail
        super().__init__(status_code=status_code, detail=detail, headers=headers)

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"

    @classmethod
    def from_payload(cls, status_code: int, payload: Any) -> "DomainError":
        """Translate an upstream error response into the typed taxonomy.

        Upstream services report failures as ``{message|error|details}``;
        the first non-empty field wins.
        """
        message = None
        kind = None
        if isinstance(payload, dict):
            for key in ("message", "error", "details"):
                value = payload.get(key)
                if value:
                    message = str(value)
                    break
            kind = payload.get("kind")
        elif isinstance(payload, str) and payload.strip():
            message = payload.strip()

        message = message or f"Upstream request failed with status {status_code}"

        if status_code in (status.HTTP_400_BAD_REQUEST, status.HTTP_422_UNPROCESSABLE_ENTITY):
            return ValidationError(message, kind=kind)
        if status_code == status.HTTP_401_UNAUTHORIZED:
            return AuthenticationError(message)
        if status_code == status.HTTP_403_FORBIDDEN:
            return Forbidden(message)
        if status_code == status.HTTP_404_NOT_FOUND:
            return NotFoundError(detail=message)
        if status_code == status.HTTP_409_CONFLICT:
            return InvalidTransition(message)
        return ExternalServiceError("upstream", message)


class ValidationError(DomainError):
    """Missing or malformed input."""

    kind = "ValidationError"

    def __init__(
        self,
        detail: str = "Validation failed",
        errors: list[dict[str, Any]] | None = None,
        kind: str | None = None,
    ) -> None:
        self.errors = errors
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail, kind=kind)


class PropertyNotAvailable(ValidationError):
    """Property cannot accept bookings."""

    def __init__(self, detail: str = "This property is not available for booking") -> None:
        super().__init__(detail)
        self.status_code = status.HTTP_400_BAD_REQUEST


class CouponRejected(ValidationError):
    """Coupon code could not be applied."""

    def __init__(self, reason: str, detail: str | None = None) -> None:
        self.reason = reason
        super().__init__(detail or f"Coupon rejected: {reason}", kind=reason)
        self.status_code = status.HTTP_400_BAD_REQUEST


class InvalidTransition(DomainError):
    """State machine rule violation."""

    kind = "InvalidTransition"

    def __init__(self, detail: str = "This operation is not allowed in the current state") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ConcurrentModification(InvalidTransition):
    """Record changed since it was read."""

    kind = "ConcurrentModification"

    def __init__(self, resource: str, identifier: str) -> None:
        super().__init__(f"{resource} '{identifier}' was modified concurrently, reload and retry")


class NotFoundError(DomainError):
    """Resource not found exception."""

    kind = "NotFound"

    def __init__(
        self,
        resource: str = "Resource",
        identifier: str | None = None,
        detail: str | None = None,
    ) -> None:
        if detail is None:
            detail = f"{resource} not found"
            if identifier:
                detail = f"{resource} with ID '{identifier}' not found"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class AuthenticationError(DomainError):
    """Actor could not be identified."""

    kind = "AuthenticationError"

    def __init__(self, detail: str = "Authentication failed") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class Forbidden(DomainError):
    """Actor lacks permission for the attempted action."""

    kind = "Forbidden"

    def __init__(self, detail: str = "You don't have permission to perform this action") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class SubscriptionRequired(Forbidden):
    """Host has no platform access."""

    kind = "SubscriptionRequired"

    def __init__(self, reason: str, detail: str) -> None:
        self.reason = reason
        super().__init__(detail)


class PropertyLimitReached(Forbidden):
    """Host plan does not allow another property."""

    kind = "PropertyLimitReached"

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(
            f"Property limit reached: your plan allows {limit} "
            f"propert{'y' if limit == 1 else 'ies'}. Upgrade to add more."
        )


class InvalidRateConfiguration(DomainError):
    """Pricing lookup failure."""

    kind = "InvalidRateConfiguration"

    def __init__(self, detail: str = "No rate is configured for this selection") -> None:
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class ExternalServiceError(DomainError):
    """External service error."""

    kind = "ExternalServiceError"

    def __init__(self, service: str, detail: str | None = None) -> None:
        message = f"External service '{service}' is unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=message)
