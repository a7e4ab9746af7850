"""Core error taxonomy and access control."""

from servicebook.core.exceptions import (
    AuthenticationError,
    ConcurrentModification,
    CouponRejected,
    DomainError,
    ExternalServiceError,
    Forbidden,
    InvalidRateConfiguration,
    InvalidTransition,
    NotFoundError,
    PropertyLimitReached,
    PropertyNotAvailable,
    SubscriptionRequired,
    ValidationError,
)
from servicebook.core.permissions import (
    ActorContext,
    Permission,
    UserRole,
    has_permission,
    require_customer_ownership,
    require_host_ownership,
    require_permission,
)

__all__ = [
    "AuthenticationError",
    "ConcurrentModification",
    "CouponRejected",
    "DomainError",
    "ExternalServiceError",
    "Forbidden",
    "InvalidRateConfiguration",
    "InvalidTransition",
    "NotFoundError",
    "PropertyLimitReached",
    "PropertyNotAvailable",
    "SubscriptionRequired",
    "ValidationError",
    "ActorContext",
    "Permission",
    "UserRole",
    "has_permission",
    "require_customer_ownership",
    "require_host_ownership",
    "require_permission",
]
