"""QuoteLedger — competing delivery bids against a quote request.

Submission is lock-free relative to other providers: each provider only
touches its own PENDING row. The parent request is re-checked at write time
under a shared row lock so a bid never lands on a request that acceptance or
expiry has just closed.
"""
import logging
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.qm_common.datetime_utils import Clock, utc_now
from src.qm_common.enums import NotifyEvent, QuoteSort, Role
from src.qm_common.errors import (
    ForbiddenError,
    InvalidBidError,
    QuoteRequestNotFoundError,
    RequestNotOpenError,
)
from src.qm_common.id_generator import generate_id
from src.qm_gateway.auth.actor import Actor
from src.qm_notify.notifier import NotifierProtocol, get_notifier
from src.qm_quote.domain.models import Quote
from src.qm_quote.domain.ranking import rank_quotes
from src.qm_quote.domain.repository import QuoteRepositoryProtocol
from src.qm_quote.infrastructure.persistence import QuoteRepository
from src.qm_request.domain.repository import QuoteRequestRepositoryProtocol
from src.qm_request.infrastructure.persistence import QuoteRequestRepository

logger = logging.getLogger(__name__)


class QuoteLedger:
    def __init__(
        self,
        repo: QuoteRepositoryProtocol | None = None,
        request_repo: QuoteRequestRepositoryProtocol | None = None,
        notifier: NotifierProtocol | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._repo: QuoteRepositoryProtocol = repo or QuoteRepository()
        self._requests: QuoteRequestRepositoryProtocol = request_repo or QuoteRequestRepository()
        self._notifier = notifier
        self._clock = clock

    @property
    def notifier(self) -> NotifierProtocol:
        return self._notifier or get_notifier()

    async def submit(
        self,
        request_id: str,
        provider_id: str,
        delivery_fee: int,
        estimated_delivery_date: date,
        db: AsyncSession,
        *,
        valid_until: datetime | None = None,
        price_breakdown: str = "",
        notes: str = "",
        provider_rating: float | None = None,
    ) -> Quote:
        """Place or replace this provider's PENDING bid on the request."""
        # A concurrent duplicate submit by the same provider trips the partial
        # unique index; the retry then finds that row and replaces it.
        for attempt in range(2):
            try:
                quote, buyer_id = await self._submit_inner(
                    request_id,
                    provider_id,
                    delivery_fee,
                    estimated_delivery_date,
                    valid_until,
                    price_breakdown,
                    notes,
                    provider_rating,
                    db,
                )
                await db.commit()
                break
            except IntegrityError:
                await db.rollback()
                if attempt == 1:
                    raise
            except Exception:
                await db.rollback()
                raise

        await self.notifier.send(
            buyer_id,
            NotifyEvent.QUOTE_SUBMITTED,
            {"request_id": request_id, "quote_id": quote.id, "delivery_fee": quote.delivery_fee},
        )
        return quote

    async def submit_as(
        self,
        actor: Actor,
        request_id: str,
        delivery_fee: int,
        estimated_delivery_date: date,
        db: AsyncSession,
        *,
        valid_until: datetime | None = None,
        price_breakdown: str = "",
        notes: str = "",
    ) -> Quote:
        """submit() with the provider identity and rating taken from the token."""
        actor.require(Role.PROVIDER)
        return await self.submit(
            request_id,
            actor.user_id,
            delivery_fee,
            estimated_delivery_date,
            db,
            valid_until=valid_until,
            price_breakdown=price_breakdown,
            notes=notes,
            provider_rating=actor.rating,
        )

    async def _submit_inner(
        self,
        request_id: str,
        provider_id: str,
        delivery_fee: int,
        estimated_delivery_date: date,
        valid_until: datetime | None,
        price_breakdown: str,
        notes: str,
        provider_rating: float | None,
        db: AsyncSession,
    ) -> tuple[Quote, str]:
        now = self._clock()
        request = await self._requests.get_by_id(request_id, db, lock="share")
        if request is None:
            raise QuoteRequestNotFoundError(request_id)
        if request.is_party(provider_id):
            raise ForbiddenError("Cannot bid on a request for your own goods or purchase")
        if not request.accepts_quotes_at(now):
            raise RequestNotOpenError(request_id)

        if isinstance(delivery_fee, bool) or delivery_fee <= 0:
            raise InvalidBidError(f"delivery fee must be greater than 0, got {delivery_fee}")
        if estimated_delivery_date < now.date():
            raise InvalidBidError("estimated delivery date is in the past")
        if valid_until is not None and valid_until <= now:
            raise InvalidBidError("valid_until is in the past")
        # A bid never outlives the request it answers
        effective_until = (
            request.expires_at if valid_until is None else min(valid_until, request.expires_at)
        )

        existing = await self._repo.get_pending_by_provider(request_id, provider_id, db)
        if existing is not None:
            existing.delivery_fee = delivery_fee
            existing.estimated_delivery_date = estimated_delivery_date
            existing.valid_until = effective_until
            existing.price_breakdown = price_breakdown
            existing.notes = notes
            existing.provider_rating = provider_rating
            existing.updated_at = now
            if await self._repo.replace_bid(existing, db):
                logger.info(
                    "quote %s replaced request=%s provider=%s fee=%d",
                    existing.id, request_id, provider_id, delivery_fee,
                )
                return existing, request.buyer_id

        quote = Quote(
            id=generate_id(),
            request_id=request_id,
            provider_id=provider_id,
            delivery_fee=delivery_fee,
            estimated_delivery_date=estimated_delivery_date,
            created_at=now,
            updated_at=now,
            valid_until=effective_until,
            price_breakdown=price_breakdown,
            notes=notes,
            provider_rating=provider_rating,
        )
        await self._repo.save(quote, db)
        logger.info(
            "quote %s submitted request=%s provider=%s fee=%d",
            quote.id, request_id, provider_id, delivery_fee,
        )
        return quote, request.buyer_id

    async def list_active(self, request_id: str, db: AsyncSession) -> list[Quote]:
        """PENDING quotes still inside their validity window.

        Quotes past valid_until are marked EXPIRED here if the sweeper has not
        reached them yet.
        """
        now = self._clock()
        try:
            healed = await self._repo.expire_stale(now, db, request_id=request_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if healed:
            logger.info("request %s: %d stale quotes expired on read", request_id, healed)
        quotes = await self._repo.list_by_request(request_id, ["PENDING"], db)
        return [q for q in quotes if q.is_active_at(now)]

    async def list_for_buyer(
        self, request_id: str, actor: Actor, sort_by: QuoteSort, db: AsyncSession
    ) -> list[Quote]:
        request = await self._requests.get_by_id(request_id, db)
        if request is None:
            raise QuoteRequestNotFoundError(request_id)
        if request.buyer_id != actor.user_id:
            raise ForbiddenError("Only the requesting buyer can list its quotes")
        return rank_quotes(await self.list_active(request_id, db), sort_by)

    async def list_mine(
        self, actor: Actor, state: str | None, limit: int, db: AsyncSession
    ) -> list[Quote]:
        actor.require(Role.PROVIDER)
        try:
            await self._repo.expire_stale(self._clock(), db, provider_id=actor.user_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return await self._repo.list_by_provider(actor.user_id, state, limit, db)
