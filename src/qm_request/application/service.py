"""QuoteRequestRegistry — lifecycle of quote requests.

create() and close() run inside the caller's transaction and never commit:
request creation is committed by the cart service (possibly several requests
at once), closure by the acceptance coordinator or the expiry sweeper.
Read methods need no transaction.
"""
import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.qm_cart.domain.models import QuoteRequestDraft
from src.qm_common.datetime_utils import Clock, utc_now
from src.qm_common.enums import CloseReason, RequestState, Role, Urgency
from src.qm_common.errors import (
    DuplicateOpenRequestError,
    ForbiddenError,
    QuoteRequestNotFoundError,
    ValidationError,
)
from src.qm_common.id_generator import generate_session_token
from src.qm_gateway.auth.actor import Actor
from src.qm_request.domain.models import QuoteRequest
from src.qm_request.domain.repository import QuoteRequestRepositoryProtocol
from src.qm_request.infrastructure.persistence import QuoteRequestRepository

logger = logging.getLogger(__name__)

_CLOSED_STATE = {
    CloseReason.ACCEPTED: RequestState.CLOSED,
    CloseReason.EXPIRED: RequestState.EXPIRED,
}


class QuoteRequestRegistry:
    def __init__(
        self,
        repo: QuoteRequestRepositoryProtocol | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._repo: QuoteRequestRepositoryProtocol = repo or QuoteRequestRepository()
        self._clock = clock

    async def create(self, draft: QuoteRequestDraft, db: AsyncSession) -> QuoteRequest:
        prefs = draft.preferences
        hours = prefs.quotes_expire_after_hours
        if not (settings.QUOTES_EXPIRE_MIN_HOURS <= hours <= settings.QUOTES_EXPIRE_MAX_HOURS):
            raise ValidationError(
                f"quotes_expire_after must be between {settings.QUOTES_EXPIRE_MIN_HOURS}"
                f" and {settings.QUOTES_EXPIRE_MAX_HOURS} hours, got {hours}"
            )
        if not draft.line_items:
            raise ValidationError("line items snapshot must not be empty")
        if prefs.urgency not in Urgency.__members__:
            raise ValidationError(f"unknown urgency: {prefs.urgency}")

        now = self._clock()
        existing = await self._repo.find_open_for_seller(
            draft.buyer_id, draft.seller_id, now, db
        )
        if existing is not None:
            raise DuplicateOpenRequestError(draft.seller_id, existing.id)

        request = QuoteRequest(
            id=generate_session_token(),
            buyer_id=draft.buyer_id,
            seller_id=draft.seller_id,
            line_items=list(draft.line_items),
            subtotal=draft.subtotal,
            created_at=now,
            expires_at=now + timedelta(hours=hours),
            state=RequestState.OPEN.value,
            delivery_address=prefs.delivery_address,
            special_instructions=prefs.special_instructions,
            urgency=prefs.urgency,
            preferred_delivery_time=prefs.preferred_delivery_time,
        )
        await self._repo.save(request, db)
        logger.info(
            "quote request %s opened buyer=%s seller=%s expires=%s",
            request.id, request.buyer_id, request.seller_id, request.expires_at.isoformat(),
        )
        return request

    async def get(self, request_id: str, db: AsyncSession) -> QuoteRequest:
        request = await self._repo.get_by_id(request_id, db)
        if request is None:
            raise QuoteRequestNotFoundError(request_id)
        return request

    async def close(self, request_id: str, reason: CloseReason, db: AsyncSession) -> bool:
        """Idempotent close. Returns True only for the caller that performed it.

        A False return means another actor (acceptance or sweeper) closed the
        request first; the caller must skip its own side effects.
        """
        closed = await self._repo.close(
            request_id, _CLOSED_STATE[reason].value, reason.value, self._clock(), db
        )
        if not closed:
            logger.info("quote request %s already closed; %s is a no-op", request_id, reason.value)
        return closed

    async def get_for_actor(
        self, request_id: str, actor: Actor, db: AsyncSession
    ) -> QuoteRequest:
        """Buyer sees their own request; providers see requests they may bid on."""
        request = await self.get(request_id, db)
        if request.buyer_id == actor.user_id:
            return request
        if actor.has_role(Role.PROVIDER) and not request.is_party(actor.user_id):
            return request
        raise ForbiddenError("Not allowed to view this quote request")

    async def list_mine(
        self, actor: Actor, state: str | None, limit: int, db: AsyncSession
    ) -> list[QuoteRequest]:
        return await self._repo.list_by_buyer(actor.user_id, state, limit, db)

    async def list_open_for_provider(
        self,
        actor: Actor,
        urgency: str | None,
        limit: int,
        db: AsyncSession,
        search: str | None = None,
    ) -> list[QuoteRequest]:
        actor.require(Role.PROVIDER)
        return await self._repo.list_open_for_provider(
            actor.user_id, self._clock(), urgency, limit, db, search=search
        )
