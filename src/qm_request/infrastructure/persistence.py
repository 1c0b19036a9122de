# src/qm_request/infrastructure/persistence.py
"""QuoteRequestRepository — SQLAlchemy Core persistence implementation."""
from datetime import datetime
from typing import Any

from sqlalchemy import insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.qm_cart.domain.models import CartLine
from src.qm_common.datetime_utils import as_utc
from src.qm_request.domain.models import QuoteRequest
from src.qm_request.infrastructure.db_models import QuoteRequestORM

_t = QuoteRequestORM.__table__


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_request(row: Any) -> QuoteRequest:
    """Convert a DB result row to a QuoteRequest domain object."""
    return QuoteRequest(
        id=row.id,
        buyer_id=row.buyer_id,
        seller_id=row.seller_id,
        line_items=[CartLine.from_snapshot(item) for item in row.line_items],
        subtotal=row.subtotal,
        delivery_address=row.delivery_address,
        special_instructions=row.special_instructions,
        urgency=row.urgency,
        preferred_delivery_time=as_utc(row.preferred_delivery_time),
        state=row.state,
        closed_reason=row.closed_reason,
        created_at=as_utc(row.created_at),  # type: ignore[arg-type]
        expires_at=as_utc(row.expires_at),  # type: ignore[arg-type]
        closed_at=as_utc(row.closed_at),
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class QuoteRequestRepository:
    """Concrete implementation of QuoteRequestRepositoryProtocol."""

    async def save(self, request: QuoteRequest, db: AsyncSession) -> None:
        await db.execute(
            insert(_t).values(
                id=request.id,
                buyer_id=request.buyer_id,
                seller_id=request.seller_id,
                line_items=[line.to_snapshot() for line in request.line_items],
                subtotal=request.subtotal,
                delivery_address=request.delivery_address,
                special_instructions=request.special_instructions,
                urgency=request.urgency,
                preferred_delivery_time=request.preferred_delivery_time,
                state=request.state,
                created_at=request.created_at,
                expires_at=request.expires_at,
            )
        )

    async def get_by_id(
        self, request_id: str, db: AsyncSession, lock: str | None = None
    ) -> QuoteRequest | None:
        """Load one request.

        lock="update" takes a row lock (acceptance, expiry); lock="share" blocks
        only against those writers (quote submission). Both are no-ops on SQLite.
        """
        stmt = select(_t).where(_t.c.id == request_id)
        if lock == "update":
            stmt = stmt.with_for_update()
        elif lock == "share":
            stmt = stmt.with_for_update(read=True)
        row = (await db.execute(stmt)).first()
        return _row_to_request(row) if row else None

    async def find_open_for_seller(
        self, buyer_id: str, seller_id: str, now: datetime, db: AsyncSession
    ) -> QuoteRequest | None:
        stmt = (
            select(_t)
            .where(
                _t.c.buyer_id == buyer_id,
                _t.c.seller_id == seller_id,
                _t.c.state == "OPEN",
                _t.c.expires_at > now,
            )
            .limit(1)
        )
        row = (await db.execute(stmt)).first()
        return _row_to_request(row) if row else None

    async def list_by_buyer(
        self, buyer_id: str, state: str | None, limit: int, db: AsyncSession
    ) -> list[QuoteRequest]:
        stmt = select(_t).where(_t.c.buyer_id == buyer_id)
        if state is not None:
            stmt = stmt.where(_t.c.state == state)
        stmt = stmt.order_by(_t.c.created_at.desc()).limit(limit)
        rows = (await db.execute(stmt)).fetchall()
        return [_row_to_request(row) for row in rows]

    async def list_open_for_provider(
        self,
        provider_id: str,
        now: datetime,
        urgency: str | None,
        limit: int,
        db: AsyncSession,
        search: str | None = None,
    ) -> list[QuoteRequest]:
        # A provider never sees requests for goods they sell or buy themselves
        stmt = select(_t).where(
            _t.c.state == "OPEN",
            _t.c.expires_at > now,
            _t.c.seller_id != provider_id,
            _t.c.buyer_id != provider_id,
        )
        if urgency is not None:
            stmt = stmt.where(_t.c.urgency == urgency)
        if search:
            # Exact request or buyer id, or a fragment of the delivery address
            stmt = stmt.where(
                or_(
                    _t.c.id == search,
                    _t.c.buyer_id == search,
                    _t.c.delivery_address.icontains(search, autoescape=True),
                )
            )
        stmt = stmt.order_by(_t.c.expires_at.asc(), _t.c.id.asc()).limit(limit)
        rows = (await db.execute(stmt)).fetchall()
        return [_row_to_request(row) for row in rows]

    async def close(
        self, request_id: str, state: str, reason: str, now: datetime, db: AsyncSession
    ) -> bool:
        """Compare-and-swap OPEN → state. Returns False if someone closed it first."""
        result = await db.execute(
            update(_t)
            .where(_t.c.id == request_id, _t.c.state == "OPEN")
            .values(state=state, closed_reason=reason, closed_at=now)
        )
        return bool(result.rowcount == 1)  # type: ignore[attr-defined]

    async def list_expired_open_ids(
        self, now: datetime, limit: int, db: AsyncSession
    ) -> list[str]:
        stmt = (
            select(_t.c.id)
            .where(_t.c.state == "OPEN", _t.c.expires_at <= now)
            .order_by(_t.c.expires_at.asc())
            .limit(limit)
        )
        return [row.id for row in (await db.execute(stmt)).fetchall()]
