"""Role-based access control and the explicit acting-user context."""

from dataclasses import dataclass
from enum import Enum

from servicebook.core.exceptions import Forbidden


class UserRole(str, Enum):
    """Actor roles in the marketplace."""

    CUSTOMER = "customer"
    HOST = "host"
    ADMIN = "admin"


class Permission(str, Enum):
    """System permissions."""

    # Customer
    CREATE_BOOKING = "create_booking"
    CANCEL_OWN_BOOKING = "cancel_own_booking"
    SUBMIT_PAYMENT = "submit_payment"

    # Host
    MANAGE_PROPERTY = "manage_property"
    UPDATE_BOOKING_STATUS = "update_booking_status"
    VERIFY_PAYMENT = "verify_payment"
    CONFIRM_CASH_PAYMENT = "confirm_cash_payment"
    MANAGE_SUBSCRIPTION = "manage_subscription"

    # Admin
    REVIEW_SUBSCRIPTION_PAYMENT = "review_subscription_payment"


ROLE_PERMISSIONS: dict[UserRole, set[Permission]] = {
    UserRole.CUSTOMER: {
        Permission.CREATE_BOOKING,
        Permission.CANCEL_OWN_BOOKING,
        Permission.SUBMIT_PAYMENT,
    },
    UserRole.HOST: {
        Permission.MANAGE_PROPERTY,
        Permission.UPDATE_BOOKING_STATUS,
        Permission.VERIFY_PAYMENT,
        Permission.CONFIRM_CASH_PAYMENT,
        Permission.MANAGE_SUBSCRIPTION,
    },
    UserRole.ADMIN: {
        # Admin acts on behalf of any host but never as a customer
        Permission.MANAGE_PROPERTY,
        Permission.UPDATE_BOOKING_STATUS,
        Permission.VERIFY_PAYMENT,
        Permission.CONFIRM_CASH_PAYMENT,
        Permission.REVIEW_SUBSCRIPTION_PAYMENT,
    },
}


@dataclass(frozen=True)
class ActorContext:
    """Who is performing an operation."""

    actor_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_customer(self) -> bool:
        return self.role == UserRole.CUSTOMER

    @property
    def is_host(self) -> bool:
        return self.role == UserRole.HOST

    @property
    def audit_label(self) -> str:
        return f"{self.role.value}:{self.actor_id}"


def has_permission(role: UserRole, permission: Permission) -> bool:
    """Check if a role has a specific permission."""
    return permission in ROLE_PERMISSIONS.get(role, set())


def require_permission(actor: ActorContext, permission: Permission) -> None:
    """Raise Forbidden unless the actor's role grants ``permission``."""
    if not has_permission(actor.role, permission):
        raise Forbidden(
            f"Permission '{permission.value}' is required for this action "
            f"(role '{actor.role.value}')"
        )


def require_host_ownership(actor: ActorContext, host_id: str, resource: str = "resource") -> None:
    """Hosts may only act on their own resources; admins act on any."""
    if actor.is_admin:
        return
    if not actor.is_host or actor.actor_id != host_id:
        raise Forbidden(f"Only the owning host or an admin can manage this {resource}")


def require_customer_ownership(actor: ActorContext, customer_id: str, resource: str = "booking") -> None:
    """Customers may only act on their own records."""
    if not actor.is_customer or actor.actor_id != customer_id:
        raise Forbidden(f"Only the customer who made this {resource} can do that")
