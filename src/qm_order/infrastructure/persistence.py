# src/qm_order/infrastructure/persistence.py
"""OrderRepository — SQLAlchemy Core persistence implementation."""
from datetime import datetime
from typing import Any

from sqlalchemy import and_, func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.qm_cart.domain.models import CartLine
from src.qm_common.datetime_utils import as_utc
from src.qm_order.domain.models import Order, OrderStatusEvent, ProviderStats
from src.qm_order.infrastructure.db_models import OrderORM, OrderStatusEventORM

_orders = OrderORM.__table__
_events = OrderStatusEventORM.__table__

_PARTY_COLUMNS = {
    "buyer": _orders.c.buyer_id,
    "seller": _orders.c.seller_id,
    "provider": _orders.c.provider_id,
}

# Only operational fields may change after creation
_MUTABLE_FIELDS = frozenset({"cancel_reason", "delivery_notes", "delivered_at"})


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> Order:
    """Convert a DB result row to an Order domain object."""
    return Order(
        id=row.id,
        request_id=row.request_id,
        accepted_quote_id=row.accepted_quote_id,
        buyer_id=row.buyer_id,
        seller_id=row.seller_id,
        provider_id=row.provider_id,
        line_items=[CartLine.from_snapshot(item) for item in row.line_items],
        subtotal=row.subtotal,
        delivery_fee=row.delivery_fee,
        total_amount=row.total_amount,
        payment_method=row.payment_method,
        delivery_address=row.delivery_address,
        delivery_code=row.delivery_code,
        status=row.status,
        cancel_reason=row.cancel_reason,
        delivery_notes=row.delivery_notes,
        delivered_at=as_utc(row.delivered_at),
        created_at=as_utc(row.created_at),  # type: ignore[arg-type]
        last_updated=as_utc(row.last_updated),  # type: ignore[arg-type]
    )


def _row_to_event(row: Any) -> OrderStatusEvent:
    return OrderStatusEvent(
        id=row.id,
        order_id=row.order_id,
        from_status=row.from_status,
        to_status=row.to_status,
        actor_id=row.actor_id,
        note=row.note,
        created_at=as_utc(row.created_at),  # type: ignore[arg-type]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol."""

    async def save(self, order: Order, db: AsyncSession) -> None:
        await db.execute(
            insert(_orders).values(
                id=order.id,
                request_id=order.request_id,
                accepted_quote_id=order.accepted_quote_id,
                buyer_id=order.buyer_id,
                seller_id=order.seller_id,
                provider_id=order.provider_id,
                line_items=[line.to_snapshot() for line in order.line_items],
                subtotal=order.subtotal,
                delivery_fee=order.delivery_fee,
                total_amount=order.total_amount,
                payment_method=order.payment_method,
                delivery_address=order.delivery_address,
                delivery_code=order.delivery_code,
                status=order.status,
                created_at=order.created_at,
                last_updated=order.last_updated,
            )
        )

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None:
        row = (await db.execute(select(_orders).where(_orders.c.id == order_id))).first()
        return _row_to_order(row) if row else None

    async def update_status(
        self,
        order_id: str,
        expected_status: str,
        new_status: str,
        now: datetime,
        db: AsyncSession,
        **fields: Any,
    ) -> bool:
        """Compare-and-swap the status; False if the order moved concurrently."""
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"immutable order fields: {sorted(unknown)}")
        result = await db.execute(
            update(_orders)
            .where(_orders.c.id == order_id, _orders.c.status == expected_status)
            .values(status=new_status, last_updated=now, **fields)
        )
        return bool(result.rowcount == 1)  # type: ignore[attr-defined]

    async def list_by_party(
        self,
        party: str,
        user_id: str,
        status: str | None,
        limit: int,
        cursor_id: str | None,
        db: AsyncSession,
    ) -> list[Order]:
        stmt = select(_orders).where(_PARTY_COLUMNS[party] == user_id)
        if status is not None:
            stmt = stmt.where(_orders.c.status == status)
        # Snowflake ids are decimal strings: shorter means older, so compare
        # (length, id) to get numeric order across digit-count rollovers
        id_len = func.length(_orders.c.id)
        if cursor_id is not None:
            stmt = stmt.where(
                or_(
                    id_len < len(cursor_id),
                    and_(id_len == len(cursor_id), _orders.c.id < cursor_id),
                )
            )
        stmt = stmt.order_by(id_len.desc(), _orders.c.id.desc()).limit(limit)
        return [_row_to_order(row) for row in (await db.execute(stmt)).fetchall()]

    async def add_event(self, event: OrderStatusEvent, db: AsyncSession) -> None:
        await db.execute(
            insert(_events).values(
                id=event.id,
                order_id=event.order_id,
                from_status=event.from_status,
                to_status=event.to_status,
                actor_id=event.actor_id,
                note=event.note,
                created_at=event.created_at,
            )
        )

    async def list_events(self, order_id: str, db: AsyncSession) -> list[OrderStatusEvent]:
        stmt = (
            select(_events)
            .where(_events.c.order_id == order_id)
            .order_by(_events.c.created_at.asc(), _events.c.id.asc())
        )
        return [_row_to_event(row) for row in (await db.execute(stmt)).fetchall()]

    async def provider_stats(self, provider_id: str, db: AsyncSession) -> ProviderStats:
        stmt = (
            select(
                _orders.c.status,
                func.count().label("n"),
                func.coalesce(func.sum(_orders.c.delivery_fee), 0).label("fees"),
            )
            .where(_orders.c.provider_id == provider_id)
            .group_by(_orders.c.status)
        )
        rows = (await db.execute(stmt)).fetchall()
        by_status = {row.status: int(row.n) for row in rows}
        delivered_fees = sum(int(row.fees) for row in rows if row.status == "DELIVERED")
        return ProviderStats(
            provider_id=provider_id,
            orders_by_status=by_status,
            delivered_count=by_status.get("DELIVERED", 0),
            delivered_fees=delivered_fees,
        )
