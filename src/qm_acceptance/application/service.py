# src/qm_acceptance/application/service.py
from sqlalchemy.ext.asyncio import AsyncSession

from src.qm_acceptance.engine.coordinator import AcceptanceCoordinator
from src.qm_acceptance.engine.locks import RequestLockRegistry
from src.qm_common.enums import PaymentMethod, Role
from src.qm_gateway.auth.actor import Actor
from src.qm_order.domain.models import Order

_locks: RequestLockRegistry | None = None
_coordinator: AcceptanceCoordinator | None = None


def get_request_locks() -> RequestLockRegistry:
    """Process-wide lock registry; the sweeper must share it with acceptance."""
    global _locks  # noqa: PLW0603
    if _locks is None:
        _locks = RequestLockRegistry()
    return _locks


def get_coordinator() -> AcceptanceCoordinator:
    global _coordinator  # noqa: PLW0603
    if _coordinator is None:
        _coordinator = AcceptanceCoordinator(get_request_locks())
    return _coordinator


async def accept_as(
    actor: Actor,
    quote_id: str,
    payment_method: PaymentMethod,
    db: AsyncSession,
) -> Order:
    """acceptQuote for the authenticated buyer."""
    actor.require(Role.BUYER)
    return await get_coordinator().accept(quote_id, actor.user_id, db, payment_method)
