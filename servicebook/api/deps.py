"""API dependencies for the acting user and the Booking Store."""

from typing import Annotated

from fastapi import Depends, Header

from servicebook.core.exceptions import AuthenticationError, Forbidden
from servicebook.core.permissions import ActorContext, UserRole
from servicebook.services.store_service import store_service
from servicebook.stores.base import BookingStore


async def get_store() -> BookingStore:
    """Get the configured Booking Store."""
    return store_service.get_store()


async def get_optional_actor(
    x_actor_id: Annotated[str | None, Header()] = None,
    x_actor_role: Annotated[str | None, Header()] = None,
) -> ActorContext | None:
    """Build the acting user from the ``X-Actor-Id`` / ``X-Actor-Role`` headers."""
    if not x_actor_id and not x_actor_role:
        return None
    if not x_actor_id or not x_actor_role:
        raise AuthenticationError("Both X-Actor-Id and X-Actor-Role headers are required")
    try:
        role = UserRole(x_actor_role.strip().lower())
    except ValueError:
        raise AuthenticationError(f"Unknown actor role '{x_actor_role}'")
    return ActorContext(actor_id=x_actor_id.strip(), role=role)


async def get_current_actor(
    actor: Annotated[ActorContext | None, Depends(get_optional_actor)],
) -> ActorContext:
    """Require an identified actor."""
    if actor is None:
        raise AuthenticationError("Actor headers are missing")
    return actor


async def get_current_admin(
    actor: Annotated[ActorContext, Depends(get_current_actor)],
) -> ActorContext:
    """Get current actor and verify they are an admin."""
    if not actor.is_admin:
        raise Forbidden("Admin access required")
    return actor


StoreDep = Annotated[BookingStore, Depends(get_store)]
ActorDep = Annotated[ActorContext, Depends(get_current_actor)]
OptionalActorDep = Annotated[ActorContext | None, Depends(get_optional_actor)]
AdminDep = Annotated[ActorContext, Depends(get_current_admin)]
