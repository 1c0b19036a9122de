"""qm_acceptance REST API — the buyer's single choice among competing quotes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.qm_acceptance.application.service import accept_as
from src.qm_common.database import get_db_session
from src.qm_common.response import ApiResponse, success_response
from src.qm_gateway.auth.actor import Actor
from src.qm_gateway.auth.dependencies import get_current_actor
from src.qm_order.application.schemas import AcceptQuoteBody, OrderResponse

router = APIRouter(prefix="/quotes", tags=["quotes"])


@router.post("/{quote_id}/accept", status_code=201)
async def accept_quote(
    quote_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    body: AcceptQuoteBody | None = None,
) -> ApiResponse:
    payment_method = (body or AcceptQuoteBody()).payment_method
    order = await accept_as(actor, quote_id, payment_method, db)
    data = OrderResponse.from_domain(order, actor.user_id)
    return success_response(data.model_dump(mode="json"), request)
