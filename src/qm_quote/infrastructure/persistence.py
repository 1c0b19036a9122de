# src/qm_quote/infrastructure/persistence.py
"""QuoteRepository — SQLAlchemy Core persistence implementation.

Every state change is a compare-and-swap on the current state, so a quote
that another writer already moved out of PENDING is never overwritten.
"""
from datetime import datetime
from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.qm_common.datetime_utils import as_utc
from src.qm_quote.domain.models import Quote
from src.qm_quote.infrastructure.db_models import QuoteORM

_t = QuoteORM.__table__


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_quote(row: Any) -> Quote:
    """Convert a DB result row to a Quote domain object."""
    return Quote(
        id=row.id,
        request_id=row.request_id,
        provider_id=row.provider_id,
        delivery_fee=row.delivery_fee,
        estimated_delivery_date=row.estimated_delivery_date,
        price_breakdown=row.price_breakdown,
        notes=row.notes,
        provider_rating=row.provider_rating,
        state=row.state,
        created_at=as_utc(row.created_at),  # type: ignore[arg-type]
        updated_at=as_utc(row.updated_at),
        valid_until=as_utc(row.valid_until),  # type: ignore[arg-type]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class QuoteRepository:
    """Concrete implementation of QuoteRepositoryProtocol."""

    async def save(self, quote: Quote, db: AsyncSession) -> None:
        await db.execute(
            insert(_t).values(
                id=quote.id,
                request_id=quote.request_id,
                provider_id=quote.provider_id,
                delivery_fee=quote.delivery_fee,
                estimated_delivery_date=quote.estimated_delivery_date,
                price_breakdown=quote.price_breakdown,
                notes=quote.notes,
                provider_rating=quote.provider_rating,
                state=quote.state,
                created_at=quote.created_at,
                updated_at=quote.updated_at or quote.created_at,
                valid_until=quote.valid_until,
            )
        )

    async def replace_bid(self, quote: Quote, db: AsyncSession) -> bool:
        """Overwrite the bid fields of a still-PENDING quote, keeping its id."""
        result = await db.execute(
            update(_t)
            .where(_t.c.id == quote.id, _t.c.state == "PENDING")
            .values(
                delivery_fee=quote.delivery_fee,
                estimated_delivery_date=quote.estimated_delivery_date,
                price_breakdown=quote.price_breakdown,
                notes=quote.notes,
                provider_rating=quote.provider_rating,
                valid_until=quote.valid_until,
                updated_at=quote.updated_at,
            )
        )
        return bool(result.rowcount == 1)  # type: ignore[attr-defined]

    async def get_by_id(self, quote_id: str, db: AsyncSession) -> Quote | None:
        row = (await db.execute(select(_t).where(_t.c.id == quote_id))).first()
        return _row_to_quote(row) if row else None

    async def get_pending_by_provider(
        self, request_id: str, provider_id: str, db: AsyncSession
    ) -> Quote | None:
        stmt = select(_t).where(
            _t.c.request_id == request_id,
            _t.c.provider_id == provider_id,
            _t.c.state == "PENDING",
        )
        row = (await db.execute(stmt)).first()
        return _row_to_quote(row) if row else None

    async def list_by_request(
        self, request_id: str, states: list[str] | None, db: AsyncSession
    ) -> list[Quote]:
        stmt = select(_t).where(_t.c.request_id == request_id)
        if states:
            stmt = stmt.where(_t.c.state.in_(states))
        stmt = stmt.order_by(_t.c.created_at.asc(), _t.c.id.asc())
        return [_row_to_quote(row) for row in (await db.execute(stmt)).fetchall()]

    async def list_by_provider(
        self, provider_id: str, state: str | None, limit: int, db: AsyncSession
    ) -> list[Quote]:
        stmt = select(_t).where(_t.c.provider_id == provider_id)
        if state is not None:
            stmt = stmt.where(_t.c.state == state)
        stmt = stmt.order_by(_t.c.created_at.desc(), _t.c.id.desc()).limit(limit)
        return [_row_to_quote(row) for row in (await db.execute(stmt)).fetchall()]

    async def transition(
        self, quote_id: str, from_state: str, to_state: str, now: datetime, db: AsyncSession
    ) -> bool:
        result = await db.execute(
            update(_t)
            .where(_t.c.id == quote_id, _t.c.state == from_state)
            .values(state=to_state, updated_at=now)
        )
        return bool(result.rowcount == 1)  # type: ignore[attr-defined]

    async def reject_siblings(
        self, request_id: str, accepted_id: str, now: datetime, db: AsyncSession
    ) -> list[Quote]:
        """PENDING → REJECTED for every other quote on the request; returns them."""
        return await self._move_pending(
            request_id, "REJECTED", now, db, exclude_id=accepted_id
        )

    async def expire_pending_for_request(
        self, request_id: str, now: datetime, db: AsyncSession
    ) -> list[Quote]:
        return await self._move_pending(request_id, "EXPIRED", now, db)

    async def expire_stale(
        self,
        now: datetime,
        db: AsyncSession,
        request_id: str | None = None,
        provider_id: str | None = None,
    ) -> int:
        """PENDING → EXPIRED for quotes past valid_until, optionally scoped."""
        stmt = update(_t).where(_t.c.state == "PENDING", _t.c.valid_until <= now)
        if request_id is not None:
            stmt = stmt.where(_t.c.request_id == request_id)
        if provider_id is not None:
            stmt = stmt.where(_t.c.provider_id == provider_id)
        result = await db.execute(stmt.values(state="EXPIRED", updated_at=now))
        return int(result.rowcount or 0)  # type: ignore[attr-defined]

    async def _move_pending(
        self,
        request_id: str,
        to_state: str,
        now: datetime,
        db: AsyncSession,
        exclude_id: str | None = None,
    ) -> list[Quote]:
        # Caller holds the request lock, so the selected set is the updated set
        conditions = [_t.c.request_id == request_id, _t.c.state == "PENDING"]
        if exclude_id is not None:
            conditions.append(_t.c.id != exclude_id)
        rows = (await db.execute(select(_t).where(*conditions))).fetchall()
        if not rows:
            return []
        await db.execute(update(_t).where(*conditions).values(state=to_state, updated_at=now))
        moved = [_row_to_quote(row) for row in rows]
        for quote in moved:
            quote.state = to_state
            quote.updated_at = now
        return moved
