"""qm_cart REST API — seller-group preview and checkout fan-out."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.qm_cart.application.schemas import (
    CartBody,
    CheckoutBody,
    SellerGroupListResponse,
    SellerGroupResponse,
)
from src.qm_cart.application.service import CartApplicationService
from src.qm_common.database import get_db_session
from src.qm_common.response import ApiResponse, success_response
from src.qm_gateway.auth.actor import Actor
from src.qm_gateway.auth.dependencies import get_current_actor
from src.qm_request.application.schemas import QuoteRequestResponse

router = APIRouter(prefix="/cart", tags=["cart"])

_service = CartApplicationService()


class CheckoutResponse(BaseModel):
    created: list[QuoteRequestResponse]
    skipped_own_sellers: list[str]


@router.post("/groups")
async def preview_groups(
    body: CartBody,
    actor: Annotated[Actor, Depends(get_current_actor)],
    request: Request,
) -> ApiResponse:
    groups = _service.preview([line.to_domain() for line in body.lines], actor)
    data = SellerGroupListResponse(groups=[SellerGroupResponse.from_domain(g) for g in groups])
    return success_response(data.model_dump(), request)


@router.post("/checkout", status_code=201)
async def checkout(
    body: CheckoutBody,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.checkout(
        [line.to_domain() for line in body.lines],
        body.preferences.to_domain(),
        {seller: prefs.to_domain() for seller, prefs in body.seller_preferences.items()},
        actor,
        db,
    )
    data = CheckoutResponse(
        created=[QuoteRequestResponse.from_domain(r) for r in result.created],
        skipped_own_sellers=result.skipped_own_sellers,
    )
    return success_response(data.model_dump(mode="json"), request)
