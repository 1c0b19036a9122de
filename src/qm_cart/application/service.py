"""CartApplicationService — cart grouping and quote-request creation.

Request creation commits here: one request for createRequest, one per
eligible seller group for checkout (all or nothing).
"""
import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from src.qm_cart.domain.aggregator import build_request_draft, group_by_seller
from src.qm_cart.domain.models import CartLine, RequestPreferences, SellerGroup
from src.qm_common.enums import Role
from src.qm_common.errors import SellerGroupNotInCartError
from src.qm_gateway.auth.actor import Actor
from src.qm_request.application.service import QuoteRequestRegistry
from src.qm_request.domain.models import QuoteRequest

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    created: list[QuoteRequest] = field(default_factory=list)
    skipped_own_sellers: list[str] = field(default_factory=list)


class CartApplicationService:
    def __init__(self, registry: QuoteRequestRegistry | None = None) -> None:
        self._registry = registry or QuoteRequestRegistry()

    def preview(self, lines: list[CartLine], actor: Actor) -> list[SellerGroup]:
        return group_by_seller(lines, actor.user_id)

    async def create_request(
        self,
        lines: list[CartLine],
        seller_id: str,
        preferences: RequestPreferences,
        actor: Actor,
        db: AsyncSession,
    ) -> QuoteRequest:
        actor.require(Role.BUYER)
        group = next(
            (g for g in group_by_seller(lines, actor.user_id) if g.seller_id == seller_id),
            None,
        )
        if group is None:
            raise SellerGroupNotInCartError(seller_id)
        draft = build_request_draft(group, preferences)
        try:
            request = await self._registry.create(draft, db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return request

    async def checkout(
        self,
        lines: list[CartLine],
        preferences: RequestPreferences,
        seller_preferences: dict[str, RequestPreferences],
        actor: Actor,
        db: AsyncSession,
    ) -> CheckoutResult:
        """Open one quote request per seller group, skipping the buyer's own listings."""
        actor.require(Role.BUYER)
        result = CheckoutResult()
        try:
            for group in group_by_seller(lines, actor.user_id):
                if group.is_own_group:
                    result.skipped_own_sellers.append(group.seller_id)
                    continue
                prefs = seller_preferences.get(group.seller_id, preferences)
                draft = build_request_draft(group, prefs)
                result.created.append(await self._registry.create(draft, db))
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "checkout buyer=%s opened=%d skipped_own=%d",
            actor.user_id, len(result.created), len(result.skipped_own_sellers),
        )
        return result
