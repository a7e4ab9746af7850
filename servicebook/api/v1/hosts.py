"""Host subscription and property management endpoints."""

from fastapi import APIRouter, status

from servicebook.api.deps import ActorDep, StoreDep
from servicebook.schemas.property import (
    Department,
    Property,
    PropertyCreateAuthorization,
    PropertyStatusUpdate,
)
from servicebook.schemas.subscription import (
    AccessStatusResponse,
    HostSubscription,
    PlanSelection,
    SubscriptionPaymentSubmit,
)
from servicebook.services.property_service import property_service
from servicebook.services.subscription_service import subscription_service

router = APIRouter()


@router.get("/host/{host_id}/access-status", response_model=AccessStatusResponse)
async def get_access_status(
    host_id: str,
    actor: ActorDep,
    store: StoreDep,
) -> AccessStatusResponse:
    """Subscription gate status for the host dashboard."""
    return await subscription_service.get_access_status(store, host_id, actor)


@router.post(
    "/host/subscriptions",
    response_model=HostSubscription,
    status_code=status.HTTP_201_CREATED,
)
async def select_plan(
    data: PlanSelection,
    actor: ActorDep,
    store: StoreDep,
) -> HostSubscription:
    """Select a plan; the first selection starts the free trial."""
    return await subscription_service.choose_plan(store, data.plan_id, actor)


@router.post("/host/{host_id}/subscription/payment", response_model=HostSubscription)
async def submit_subscription_payment(
    host_id: str,
    data: SubscriptionPaymentSubmit,
    actor: ActorDep,
    store: StoreDep,
) -> HostSubscription:
    """Submit subscription payment evidence for admin approval."""
    return await subscription_service.submit_payment(store, host_id, data, actor)


@router.post(
    "/host/{host_id}/properties/authorize",
    response_model=PropertyCreateAuthorization,
)
async def authorize_property_creation(
    host_id: str,
    actor: ActorDep,
    store: StoreDep,
) -> PropertyCreateAuthorization:
    """Check access and plan limit before creating a property."""
    return await property_service.authorize_creation(store, host_id, actor)


@router.put("/properties/{department}/{property_id}/status", response_model=Property)
async def update_property_status(
    department: Department,
    property_id: str,
    data: PropertyStatusUpdate,
    actor: ActorDep,
    store: StoreDep,
) -> Property:
    """Toggle a property's status (owning host or admin)."""
    return await property_service.update_status(store, department, property_id, data.status, actor)
