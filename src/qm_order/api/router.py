"""qm_order REST API — fulfillment commands, order views and provider stats."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.qm_common.database import get_db_session
from src.qm_common.response import ApiResponse, success_response
from src.qm_gateway.auth.actor import Actor
from src.qm_gateway.auth.dependencies import get_current_actor
from src.qm_order.application.schemas import (
    AdvanceOrderBody,
    CancelOrderBody,
    ConfirmDeliveryBody,
    OrderEventResponse,
    OrderListResponse,
    OrderParty,
    OrderResponse,
    OrderTimelineResponse,
    ProviderStatsResponse,
)
from src.qm_order.application.service import OrderApplicationService
from src.qm_order.domain.models import Order

router = APIRouter(prefix="/orders", tags=["orders"])
providers_router = APIRouter(prefix="/providers", tags=["providers"])

_service = OrderApplicationService()


def _order_response(order: Order, actor: Actor, request: Request) -> ApiResponse:
    data = OrderResponse.from_domain(order, actor.user_id)
    return success_response(data.model_dump(mode="json"), request)


@router.get("")
async def list_orders(
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    party: OrderParty = Query("buyer", alias="as", description="buyer, seller or provider"),
    status: str | None = Query(None, description="Filter by order status"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    cursor: str | None = Query(None, description="Pagination cursor (order ID)"),
) -> ApiResponse:
    items, next_cursor, has_more = await _service.list_for(
        actor, party, status, limit, cursor, db
    )
    data = OrderListResponse(
        items=[OrderResponse.from_domain(o, actor.user_id) for o in items],
        next_cursor=next_cursor,
        has_more=has_more,
    )
    return success_response(data.model_dump(mode="json"), request)


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return _order_response(await _service.get(order_id, actor, db), actor, request)


@router.get("/{order_id}/timeline")
async def get_timeline(
    order_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    events = await _service.timeline(order_id, actor, db)
    data = OrderTimelineResponse(
        order_id=order_id, events=[OrderEventResponse.from_domain(e) for e in events]
    )
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{order_id}/advance")
async def advance_order(
    order_id: str,
    body: AdvanceOrderBody,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    order = await _service.advance(order_id, actor, body.next_status, db, note=body.note)
    return _order_response(order, actor, request)


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    body: CancelOrderBody,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    order = await _service.cancel(order_id, actor, body.reason, db)
    return _order_response(order, actor, request)


@router.post("/{order_id}/confirm-delivery")
async def confirm_delivery(
    order_id: str,
    body: ConfirmDeliveryBody,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    order = await _service.confirm_delivery(order_id, actor, body.code, body.notes, db)
    return _order_response(order, actor, request)


@providers_router.get("/me/stats")
async def my_provider_stats(
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    stats = await _service.provider_stats(actor, db)
    return success_response(ProviderStatsResponse.from_domain(stats).model_dump(), request)
