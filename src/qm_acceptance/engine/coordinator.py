"""AcceptanceCoordinator — accept one quote, reject its siblings, close the
request, and create the order, as one all-or-nothing transaction.

Any number of accept() calls may race on the same request; they are
serialized per request_id and only the first to find the request OPEN wins.
Losers fail fast with QuoteNoLongerValidError and leave no trace.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.qm_acceptance.engine.locks import RequestLockRegistry
from src.qm_common.datetime_utils import Clock, utc_now
from src.qm_common.enums import CloseReason, NotifyEvent, PaymentMethod
from src.qm_common.errors import (
    AppError,
    ForbiddenError,
    QuoteNoLongerValidError,
    QuoteNotFoundError,
)
from src.qm_common.id_generator import generate_delivery_code, generate_id
from src.qm_notify.notifier import NotifierProtocol, get_notifier
from src.qm_order.domain.models import Order, OrderStatusEvent, order_from_acceptance
from src.qm_order.domain.repository import OrderRepositoryProtocol
from src.qm_order.infrastructure.persistence import OrderRepository
from src.qm_quote.domain.models import Quote
from src.qm_quote.domain.repository import QuoteRepositoryProtocol
from src.qm_quote.infrastructure.persistence import QuoteRepository
from src.qm_request.application.service import QuoteRequestRegistry
from src.qm_request.domain.repository import QuoteRequestRepositoryProtocol
from src.qm_request.infrastructure.persistence import QuoteRequestRepository

logger = logging.getLogger(__name__)


class AcceptanceCoordinator:
    def __init__(
        self,
        locks: RequestLockRegistry,
        quote_repo: QuoteRepositoryProtocol | None = None,
        request_repo: QuoteRequestRepositoryProtocol | None = None,
        order_repo: OrderRepositoryProtocol | None = None,
        notifier: NotifierProtocol | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._locks = locks
        self._quotes: QuoteRepositoryProtocol = quote_repo or QuoteRepository()
        self._requests: QuoteRequestRepositoryProtocol = request_repo or QuoteRequestRepository()
        self._orders: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._registry = QuoteRequestRegistry(self._requests, clock)
        self._notifier = notifier
        self._clock = clock

    @property
    def notifier(self) -> NotifierProtocol:
        return self._notifier or get_notifier()

    async def accept(
        self,
        quote_id: str,
        buyer_id: str,
        db: AsyncSession,
        payment_method: PaymentMethod = PaymentMethod.CASH_ON_DELIVERY,
    ) -> Order:
        """Main entry point. Returns the newly created CONFIRMED order."""
        # request_id never changes for a quote, so it is safe to read before locking
        quote = await self._quotes.get_by_id(quote_id, db)
        if quote is None:
            raise QuoteNotFoundError(quote_id)

        async with self._locks.lock_for(quote.request_id):
            try:
                order, rejected = await self._accept_inner(
                    quote_id, buyer_id, payment_method, db
                )
                await db.commit()
            except AppError as exc:
                await db.rollback()
                logger.info("accept quote=%s buyer=%s refused: %s", quote_id, buyer_id, exc.message)
                raise
            except Exception:
                await db.rollback()
                logger.exception("accept quote=%s rolled back", quote_id)
                raise

        logger.info(
            "quote %s accepted: order=%s request=%s rejected=%d",
            quote_id, order.id, order.request_id, len(rejected),
        )
        await self._notify(order, rejected)
        return order

    async def _accept_inner(
        self,
        quote_id: str,
        buyer_id: str,
        payment_method: PaymentMethod,
        db: AsyncSession,
    ) -> tuple[Order, list[Quote]]:
        now = self._clock()

        # Step 1: reload under the lock
        quote = await self._quotes.get_by_id(quote_id, db)
        if quote is None:
            raise QuoteNotFoundError(quote_id)
        request = await self._requests.get_by_id(quote.request_id, db, lock="update")

        # Step 2: still winnable?
        if (
            request is None
            or not quote.is_active_at(now)
            or not request.accepts_quotes_at(now)
        ):
            raise QuoteNoLongerValidError(quote_id)

        # Step 3: only the requesting buyer may accept
        if request.buyer_id != buyer_id:
            raise ForbiddenError("Only the requesting buyer can accept this quote")

        # Step 4: target quote
        if not await self._quotes.transition(quote.id, "PENDING", "ACCEPTED", now, db):
            raise QuoteNoLongerValidError(quote_id)
        quote.state = "ACCEPTED"

        # Step 5: siblings
        rejected = await self._quotes.reject_siblings(request.id, quote.id, now, db)

        # Step 6: close the request; losing this CAS means expiry got there first
        if not await self._registry.close(request.id, CloseReason.ACCEPTED, db):
            raise QuoteNoLongerValidError(quote_id)

        # Step 7: the order
        order = order_from_acceptance(
            order_id=generate_id(),
            request=request,
            quote=quote,
            payment_method=payment_method.value,
            delivery_code=generate_delivery_code(),
            now=now,
        )
        await self._orders.save(order, db)
        await self._orders.add_event(
            OrderStatusEvent(
                id=generate_id(),
                order_id=order.id,
                from_status=None,
                to_status=order.status,
                actor_id=buyer_id,
                note=f"accepted quote {quote.id}",
                created_at=now,
            ),
            db,
        )
        return order, rejected

    async def _notify(self, order: Order, rejected: list[Quote]) -> None:
        payload = {"order_id": order.id, "request_id": order.request_id}
        await self.notifier.send(
            order.provider_id,
            NotifyEvent.QUOTE_ACCEPTED,
            {**payload, "quote_id": order.accepted_quote_id},
        )
        await self.notifier.send(order.seller_id, NotifyEvent.ORDER_CREATED, payload)
        for quote in rejected:
            await self.notifier.send(
                quote.provider_id,
                NotifyEvent.QUOTE_REJECTED,
                {"quote_id": quote.id, "request_id": quote.request_id},
            )
