"""Admin endpoints for reviewing host subscription payments."""

from fastapi import APIRouter

from servicebook.api.deps import AdminDep, StoreDep
from servicebook.schemas.subscription import HostSubscription
from servicebook.services.subscription_service import subscription_service

router = APIRouter()


@router.post("/subscription-payments/{host_id}/approve", response_model=HostSubscription)
async def approve_subscription_payment(
    host_id: str,
    admin: AdminDep,
    store: StoreDep,
) -> HostSubscription:
    """Approve a submitted subscription payment (admin only)."""
    return await subscription_service.approve_payment(store, host_id, admin)


@router.post("/subscription-payments/{host_id}/reject", response_model=HostSubscription)
async def reject_subscription_payment(
    host_id: str,
    admin: AdminDep,
    store: StoreDep,
) -> HostSubscription:
    """Reject a submitted subscription payment (admin only)."""
    return await subscription_service.reject_payment(store, host_id, admin)
