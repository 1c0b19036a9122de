"""Integration-test fixtures.

Every test gets a fresh on-disk SQLite database (see tests/conftest.py) and a
Marketplace wired the way the application wires it: one lock registry shared
by acceptance and expiry, one clock, one notifier.
"""

from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.qm_acceptance.engine.coordinator import AcceptanceCoordinator
from src.qm_acceptance.engine.locks import RequestLockRegistry
from src.qm_cart.domain.models import CartLine, QuoteRequestDraft, RequestPreferences
from src.qm_common.database import get_db_session
from src.qm_common.enums import Role
from src.qm_gateway.auth.jwt_handler import create_access_token
from src.qm_order.application.service import OrderApplicationService
from src.qm_order.infrastructure.persistence import OrderRepository
from src.qm_quote.application.service import QuoteLedger
from src.qm_quote.infrastructure.persistence import QuoteRepository
from src.qm_request.application.service import QuoteRequestRegistry
from src.qm_request.domain.models import QuoteRequest
from src.qm_request.infrastructure.persistence import QuoteRequestRepository
from src.qm_sweeper.sweeper import ExpirySweeper


@dataclass
class Marketplace:
    session_factory: async_sessionmaker[AsyncSession]
    clock: Any
    notifier: Any
    registry: QuoteRequestRegistry
    ledger: QuoteLedger
    coordinator: AcceptanceCoordinator
    orders: OrderApplicationService
    sweeper: ExpirySweeper
    request_repo: QuoteRequestRepository
    quote_repo: QuoteRepository
    order_repo: OrderRepository
    locks: RequestLockRegistry

    @property
    def delivery_date(self) -> date:
        return self.clock().date() + timedelta(days=2)

    async def open_request(
        self,
        buyer_id: str = "buyer",
        seller_id: str = "seller",
        hours: int = 1,
        address: str = "12 Harbour Rd",
    ) -> QuoteRequest:
        draft = QuoteRequestDraft(
            buyer_id=buyer_id,
            seller_id=seller_id,
            line_items=(
                CartLine(seller_id, "p-salmon", "FISH", 2500, 2, product_name="Salmon"),
                CartLine(seller_id, "p-ice", "FISH", 300, 1),
            ),
            subtotal=5300,
            preferences=RequestPreferences(
                quotes_expire_after_hours=hours, delivery_address=address
            ),
        )
        async with self.session_factory() as db:
            request = await self.registry.create(draft, db)
            await db.commit()
        return request

    async def bid(self, request_id: str, provider_id: str, fee: int, **kwargs: Any) -> Any:
        async with self.session_factory() as db:
            return await self.ledger.submit(
                request_id, provider_id, fee, self.delivery_date, db, **kwargs
            )

    async def accept(self, quote_id: str, buyer_id: str = "buyer") -> Any:
        async with self.session_factory() as db:
            return await self.coordinator.accept(quote_id, buyer_id, db)


@pytest.fixture
def market(
    session_factory: async_sessionmaker[AsyncSession], clock: Any, notifier: Any
) -> Marketplace:
    request_repo = QuoteRequestRepository()
    quote_repo = QuoteRepository()
    order_repo = OrderRepository()
    locks = RequestLockRegistry()
    return Marketplace(
        session_factory=session_factory,
        clock=clock,
        notifier=notifier,
        registry=QuoteRequestRegistry(request_repo, clock),
        ledger=QuoteLedger(quote_repo, request_repo, notifier, clock),
        coordinator=AcceptanceCoordinator(
            locks, quote_repo, request_repo, order_repo, notifier, clock
        ),
        orders=OrderApplicationService(order_repo, notifier, clock),
        sweeper=ExpirySweeper(
            session_factory, locks, request_repo, quote_repo, notifier, clock
        ),
        request_repo=request_repo,
        quote_repo=quote_repo,
        order_repo=order_repo,
        locks=locks,
    )


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    notifier: Any,
    monkeypatch: pytest.MonkeyPatch,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client over the real app, backed by the per-test SQLite database."""
    from src.main import app

    async def _session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    monkeypatch.setattr("src.qm_notify.notifier._notifier", notifier)
    app.dependency_overrides[get_db_session] = _session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def bearer() -> Callable[..., dict[str, str]]:
    """Authorization header for a user holding the given roles."""

    def _headers(user_id: str, *roles: Role, rating: float | None = None) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id, roles, rating=rating)}"}

    return _headers
