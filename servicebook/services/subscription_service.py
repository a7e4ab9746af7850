"""Host subscription service: access checks, plan selection and billing review."""

import logging
from datetime import UTC, datetime

from servicebook.config import settings
from servicebook.core.exceptions import DomainError, NotFoundError
from servicebook.core.permissions import ActorContext, require_host_ownership
from servicebook.domain.subscription_access import (
    AccessDecision,
    approve_subscription_payment,
    assert_host_access,
    evaluate_access,
    reject_subscription_payment,
    select_plan,
    submit_subscription_payment,
    trial_days_remaining,
)
from servicebook.schemas.subscription import (
    AccessStatusResponse,
    HostSubscription,
    SubscriptionPaymentSubmit,
    SubscriptionPlan,
)
from servicebook.stores.base import BookingStore

logger = logging.getLogger(__name__)


class SubscriptionService:
    """Service for the host subscription lifecycle."""

    async def _get_plan(self, store: BookingStore, plan_id: str) -> SubscriptionPlan:
        plan = await store.get_plan(plan_id)
        if plan is None:
            raise NotFoundError("Subscription plan", plan_id)
        return plan

    async def _get_subscription(self, store: BookingStore, host_id: str) -> HostSubscription:
        subscription = await store.get_host_subscription(host_id)
        if subscription is None:
            raise NotFoundError("Subscription", host_id, detail=f"Host '{host_id}' has no subscription")
        return subscription

    async def evaluate(
        self,
        store: BookingStore,
        host_id: str,
        now: datetime | None = None,
    ) -> AccessDecision:
        """Evaluate the host's current access without any actor checks."""
        subscription = await store.get_host_subscription(host_id)
        return evaluate_access(subscription, now or datetime.now(UTC))

    async def ensure_host_access(
        self,
        store: BookingStore,
        actor: ActorContext,
        host_id: str,
        now: datetime | None = None,
    ) -> None:
        """Gate host management actions; admins are never gated."""
        if actor.is_admin:
            return
        decision = await self.evaluate(store, host_id, now)
        if not decision.has_access:
            logger.warning(f"Host {host_id} blocked by subscription gate: {decision.reason.value}")
        assert_host_access(decision)

    async def get_access_status(
        self,
        store: BookingStore,
        host_id: str,
        actor: ActorContext,
        now: datetime | None = None,
    ) -> AccessStatusResponse:
        """Access status as rendered by the host dashboard gate."""
        require_host_ownership(actor, host_id, "subscription")
        now = now or datetime.now(UTC)
        subscription = await store.get_host_subscription(host_id)
        decision = evaluate_access(subscription, now)
        return AccessStatusResponse(
            has_access=decision.has_access,
            reason=decision.reason.value,
            message=decision.message,
            next_action=decision.next_action.value,
            trial_end_date=decision.trial_end_date,
            trial_days_remaining=trial_days_remaining(subscription, now),
        )

    async def choose_plan(
        self,
        store: BookingStore,
        plan_id: str,
        actor: ActorContext,
        now: datetime | None = None,
    ) -> HostSubscription:
        """Host picks a plan; the first pick starts the free trial."""
        plan = await self._get_plan(store, plan_id)
        existing = await store.get_host_subscription(actor.actor_id)
        subscription = select_plan(
            existing,
            plan,
            actor,
            now or datetime.now(UTC),
            trial_days=settings.trial_days,
        )
        saved = await store.save_host_subscription(subscription)
        if existing is None:
            logger.info(
                f"Host {actor.actor_id} started a {settings.trial_days}-day trial on plan {plan.id}"
            )
        else:
            logger.info(f"Host {actor.actor_id} selected plan {plan.id}")
        return saved

    async def submit_payment(
        self,
        store: BookingStore,
        host_id: str,
        payload: SubscriptionPaymentSubmit,
        actor: ActorContext,
        now: datetime | None = None,
    ) -> HostSubscription:
        """Host submits billing evidence; access stays blocked until approval."""
        plan = await self._get_plan(store, payload.plan_id)
        subscription = await self._get_subscription(store, host_id)
        try:
            updated = submit_subscription_payment(
                subscription,
                plan,
                payload.transaction_reference,
                actor,
                now,
                receipt_reference=payload.receipt_reference,
            )
        except DomainError as exc:
            logger.warning(f"Subscription payment from host {host_id} refused: {exc}")
            raise
        saved = await store.save_host_subscription(updated)
        logger.info(f"Host {host_id} submitted subscription payment for plan {plan.id}")
        return saved

    async def approve_payment(
        self,
        store: BookingStore,
        host_id: str,
        actor: ActorContext,
        now: datetime | None = None,
    ) -> HostSubscription:
        """Admin approves the submitted payment and starts the paid period."""
        subscription = await self._get_subscription(store, host_id)
        plan = await self._get_plan(store, subscription.pending_plan_id or subscription.plan_id or "")
        try:
            updated = approve_subscription_payment(subscription, plan, actor, now or datetime.now(UTC))
        except DomainError as exc:
            logger.warning(f"Approval of host {host_id} subscription refused: {exc}")
            raise
        saved = await store.save_host_subscription(updated)
        logger.info(
            f"Subscription payment approved for host {host_id} by {actor.audit_label}; "
            f"plan {plan.id} active until {saved.end_date}"
        )
        return saved

    async def reject_payment(
        self,
        store: BookingStore,
        host_id: str,
        actor: ActorContext,
    ) -> HostSubscription:
        """Admin rejects the submitted payment; the host may resubmit."""
        subscription = await self._get_subscription(store, host_id)
        try:
            updated = reject_subscription_payment(subscription, actor)
        except DomainError as exc:
            logger.warning(f"Rejection of host {host_id} subscription refused: {exc}")
            raise
        saved = await store.save_host_subscription(updated)
        logger.info(f"Subscription payment rejected for host {host_id} by {actor.audit_label}")
        return saved


subscription_service = SubscriptionService()
