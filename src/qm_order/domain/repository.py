# src/qm_order/domain/repository.py
"""OrderRepository Protocol — interface contract for persistence layer."""
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.qm_order.domain.models import Order, OrderStatusEvent, ProviderStats


class OrderRepositoryProtocol(Protocol):
    async def save(self, order: Order, db: AsyncSession) -> None: ...

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None: ...

    async def update_status(
        self,
        order_id: str,
        expected_status: str,
        new_status: str,
        now: datetime,
        db: AsyncSession,
        **fields: Any,
    ) -> bool: ...

    async def list_by_party(
        self,
        party: str,
        user_id: str,
        status: str | None,
        limit: int,
        cursor_id: str | None,
        db: AsyncSession,
    ) -> list[Order]: ...

    async def add_event(self, event: OrderStatusEvent, db: AsyncSession) -> None: ...

    async def list_events(self, order_id: str, db: AsyncSession) -> list[OrderStatusEvent]: ...

    async def provider_stats(self, provider_id: str, db: AsyncSession) -> ProviderStats: ...
