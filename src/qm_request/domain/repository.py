"""QuoteRequestRepository Protocol — interface contract for persistence layer."""
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.qm_request.domain.models import QuoteRequest


class QuoteRequestRepositoryProtocol(Protocol):
    async def save(self, request: QuoteRequest, db: AsyncSession) -> None: ...

    async def get_by_id(
        self, request_id: str, db: AsyncSession, lock: str | None = None
    ) -> QuoteRequest | None: ...

    async def find_open_for_seller(
        self, buyer_id: str, seller_id: str, now: datetime, db: AsyncSession
    ) -> QuoteRequest | None: ...

    async def list_by_buyer(
        self, buyer_id: str, state: str | None, limit: int, db: AsyncSession
    ) -> list[QuoteRequest]: ...

    async def list_open_for_provider(
        self,
        provider_id: str,
        now: datetime,
        urgency: str | None,
        limit: int,
        db: AsyncSession,
        search: str | None = None,
    ) -> list[QuoteRequest]: ...

    async def close(
        self, request_id: str, state: str, reason: str, now: datetime, db: AsyncSession
    ) -> bool: ...

    async def list_expired_open_ids(
        self, now: datetime, limit: int, db: AsyncSession
    ) -> list[str]: ...
