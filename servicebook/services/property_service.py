"""Host property management gated by the subscription policy."""

import logging
from datetime import UTC, datetime

from servicebook.core.exceptions import NotFoundError, PropertyLimitReached
from servicebook.core.permissions import (
    ActorContext,
    Permission,
    require_host_ownership,
    require_permission,
)
from servicebook.domain.subscription_access import assert_property_limit
from servicebook.schemas.property import (
    Department,
    Property,
    PropertyCreateAuthorization,
    PropertyStatus,
)
from servicebook.services.subscription_service import subscription_service
from servicebook.stores.base import BookingStore

logger = logging.getLogger(__name__)


class PropertyService:
    """Service for host-side property actions."""

    async def authorize_creation(
        self,
        store: BookingStore,
        host_id: str,
        actor: ActorContext,
        now: datetime | None = None,
    ) -> PropertyCreateAuthorization:
        """Check access and the plan's property limit before a property is created.

        Raises:
            SubscriptionRequired: Host has no access
            PropertyLimitReached: Plan has no room left
        """
        require_permission(actor, Permission.MANAGE_PROPERTY)
        require_host_ownership(actor, host_id, "property")
        await subscription_service.ensure_host_access(store, actor, host_id, now or datetime.now(UTC))

        subscription = await store.get_host_subscription(host_id)
        plan = None
        if subscription and subscription.plan_id:
            plan = await store.get_plan(subscription.plan_id)
        current_count = await store.count_host_properties(host_id)
        try:
            assert_property_limit(plan, current_count)
        except PropertyLimitReached:
            logger.warning(
                f"Host {host_id} hit the property limit ({current_count} of "
                f"{plan.max_properties if plan else 'unlimited'})"
            )
            raise

        return PropertyCreateAuthorization(
            allowed=True,
            current_count=current_count,
            max_properties=plan.max_properties if plan else None,
            plan_name=plan.name if plan else None,
        )

    async def update_status(
        self,
        store: BookingStore,
        department: Department,
        property_id: str,
        status: PropertyStatus,
        actor: ActorContext,
        now: datetime | None = None,
    ) -> Property:
        """Owner (or admin) toggles a property's status."""
        department = Department(department)
        prop = await store.get_property(department, property_id)
        if prop is None:
            raise NotFoundError("Property", property_id)
        require_permission(actor, Permission.MANAGE_PROPERTY)
        require_host_ownership(actor, prop.host_id, "property")
        await subscription_service.ensure_host_access(store, actor, prop.host_id, now)

        updated = await store.update_property_status(department, property_id, status)
        logger.info(
            f"Property {department.value}/{property_id} status {prop.status.value} → "
            f"{updated.status.value} by {actor.audit_label}"
        )
        return updated


property_service = PropertyService()
