# src/qm_quote/domain/repository.py
"""QuoteRepository Protocol — interface contract for persistence layer."""
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.qm_quote.domain.models import Quote


class QuoteRepositoryProtocol(Protocol):
    async def save(self, quote: Quote, db: AsyncSession) -> None: ...

    async def replace_bid(self, quote: Quote, db: AsyncSession) -> bool: ...

    async def get_by_id(self, quote_id: str, db: AsyncSession) -> Quote | None: ...

    async def get_pending_by_provider(
        self, request_id: str, provider_id: str, db: AsyncSession
    ) -> Quote | None: ...

    async def list_by_request(
        self, request_id: str, states: list[str] | None, db: AsyncSession
    ) -> list[Quote]: ...

    async def list_by_provider(
        self, provider_id: str, state: str | None, limit: int, db: AsyncSession
    ) -> list[Quote]: ...

    async def transition(
        self, quote_id: str, from_state: str, to_state: str, now: datetime, db: AsyncSession
    ) -> bool: ...

    async def reject_siblings(
        self, request_id: str, accepted_id: str, now: datetime, db: AsyncSession
    ) -> list[Quote]: ...

    async def expire_pending_for_request(
        self, request_id: str, now: datetime, db: AsyncSession
    ) -> list[Quote]: ...

    async def expire_stale(
        self,
        now: datetime,
        db: AsyncSession,
        request_id: str | None = None,
        provider_id: str | None = None,
    ) -> int: ...
