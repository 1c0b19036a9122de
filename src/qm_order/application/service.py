"""OrderApplicationService — role-scoped fulfillment commands and order reads.

Every transition is a compare-and-swap on the current status plus one
timeline event, committed together. Notifications go out after commit.
"""
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.qm_common.datetime_utils import Clock, utc_now
from src.qm_common.enums import NotifyEvent, OrderStatus, Role
from src.qm_common.errors import (
    ConfirmationCodeMismatchError,
    ForbiddenError,
    IncompleteConfirmationError,
    InvalidTransitionError,
    OrderNotFoundError,
    ValidationError,
)
from src.qm_common.id_generator import generate_id
from src.qm_gateway.auth.actor import Actor
from src.qm_notify.notifier import NotifierProtocol, get_notifier
from src.qm_order.domain.models import Order, OrderStatusEvent, ProviderStats
from src.qm_order.domain.repository import OrderRepositoryProtocol
from src.qm_order.domain.state_machine import (
    check_transition,
    parties_of,
    validate_delivery_confirmation,
)
from src.qm_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)


class OrderApplicationService:
    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        notifier: NotifierProtocol | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._notifier = notifier
        self._clock = clock

    @property
    def notifier(self) -> NotifierProtocol:
        return self._notifier or get_notifier()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, order_id: str, actor: Actor, db: AsyncSession) -> Order:
        order = await self._repo.get_by_id(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)
        if not parties_of(order, actor.user_id):
            raise ForbiddenError("Not a party to this order")
        return order

    async def timeline(
        self, order_id: str, actor: Actor, db: AsyncSession
    ) -> list[OrderStatusEvent]:
        await self.get(order_id, actor, db)
        return await self._repo.list_events(order_id, db)

    async def list_for(
        self,
        actor: Actor,
        party: str,
        status: str | None,
        limit: int,
        cursor: str | None,
        db: AsyncSession,
    ) -> tuple[list[Order], str | None, bool]:
        """Cursor-paginated orders where the actor is `party`, newest first."""
        if status is not None and status not in OrderStatus.__members__:
            raise ValidationError(f"unknown order status: {status}")
        # Fetch one extra row to know whether another page exists
        rows = await self._repo.list_by_party(party, actor.user_id, status, limit + 1, cursor, db)
        has_more = len(rows) > limit
        items = rows[:limit]
        next_cursor = items[-1].id if has_more and items else None
        return items, next_cursor, has_more

    async def provider_stats(self, actor: Actor, db: AsyncSession) -> ProviderStats:
        actor.require(Role.PROVIDER)
        return await self._repo.provider_stats(actor.user_id, db)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def advance(
        self,
        order_id: str,
        actor: Actor,
        next_status: OrderStatus,
        db: AsyncSession,
        note: str = "",
    ) -> Order:
        """Single-step fulfillment move by the seller or the provider.

        DELIVERED needs a confirmation payload and CANCELLED a reason, so both
        have their own commands.
        """
        order = await self.get(order_id, actor, db)
        check_transition(order, actor.user_id, next_status)
        if next_status is OrderStatus.DELIVERED:
            raise IncompleteConfirmationError("use confirm-delivery with a code and notes")
        if next_status is OrderStatus.CANCELLED:
            raise ValidationError("use cancel with a reason to cancel an order")
        return await self._transition(order, actor, next_status, note, db)

    async def cancel(
        self, order_id: str, actor: Actor, reason: str, db: AsyncSession
    ) -> Order:
        order = await self.get(order_id, actor, db)
        check_transition(order, actor.user_id, OrderStatus.CANCELLED)
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("a cancellation reason is required")
        return await self._transition(
            order, actor, OrderStatus.CANCELLED, reason, db, cancel_reason=reason
        )

    async def confirm_delivery(
        self,
        order_id: str,
        actor: Actor,
        code: str | None,
        notes: str | None,
        db: AsyncSession,
    ) -> Order:
        order = await self.get(order_id, actor, db)
        check_transition(order, actor.user_id, OrderStatus.DELIVERED)
        validate_delivery_confirmation(code, notes)
        if (code or "").strip() != order.delivery_code:
            raise ConfirmationCodeMismatchError()
        notes = (notes or "").strip()
        return await self._transition(
            order,
            actor,
            OrderStatus.DELIVERED,
            notes,
            db,
            delivery_notes=notes,
            delivered_at=self._clock(),
        )

    async def _transition(
        self,
        order: Order,
        actor: Actor,
        target: OrderStatus,
        note: str,
        db: AsyncSession,
        **fields: Any,
    ) -> Order:
        now = self._clock()
        previous = order.status
        try:
            moved = await self._repo.update_status(order.id, previous, target.value, now, db, **fields)
            if not moved:
                # Someone else advanced the order between our read and write
                current = await self._repo.get_by_id(order.id, db)
                raise InvalidTransitionError(
                    current.status if current else previous, target.value
                )
            await self._repo.add_event(
                OrderStatusEvent(
                    id=generate_id(),
                    order_id=order.id,
                    from_status=previous,
                    to_status=target.value,
                    actor_id=actor.user_id,
                    note=note,
                    created_at=now,
                ),
                db,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        order.status = target.value
        order.last_updated = now
        for key, value in fields.items():
            setattr(order, key, value)
        logger.info(
            "order %s %s -> %s by %s", order.id, previous, target.value, actor.user_id
        )

        payload = {"order_id": order.id, "from_status": previous, "to_status": target.value}
        for user_id in {order.buyer_id, order.seller_id, order.provider_id} - {actor.user_id}:
            await self.notifier.send(user_id, NotifyEvent.ORDER_STATUS_CHANGED, payload)
        return order
