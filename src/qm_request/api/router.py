"""qm_request REST API — buyer request creation and provider discovery."""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.qm_cart.application.service import CartApplicationService
from src.qm_common.database import get_db_session
from src.qm_common.response import ApiResponse, success_response
from src.qm_gateway.auth.actor import Actor
from src.qm_gateway.auth.dependencies import get_current_actor
from src.qm_request.application.schemas import (
    CreateQuoteRequestBody,
    QuoteRequestListResponse,
    QuoteRequestResponse,
)
from src.qm_request.application.service import QuoteRequestRegistry

router = APIRouter(prefix="/quote-requests", tags=["quote-requests"])

_registry = QuoteRequestRegistry()
_cart = CartApplicationService(_registry)


@router.post("", status_code=201)
async def create_request(
    body: CreateQuoteRequestBody,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    created = await _cart.create_request(
        [line.to_domain() for line in body.lines],
        body.seller_id,
        body.preferences.to_domain(),
        actor,
        db,
    )
    data = QuoteRequestResponse.from_domain(created)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/mine")
async def list_my_requests(
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    state: Literal["OPEN", "CLOSED", "EXPIRED"] | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    items = await _registry.list_mine(actor, state, limit, db)
    data = QuoteRequestListResponse(items=[QuoteRequestResponse.from_domain(r) for r in items])
    return success_response(data.model_dump(mode="json"), request)


@router.get("/open")
async def list_open_requests(
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    urgency: Literal["NORMAL", "URGENT"] | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    q: str | None = Query(
        None, min_length=2, max_length=100, description="Request id, buyer id or address text"
    ),
) -> ApiResponse:
    items = await _registry.list_open_for_provider(actor, urgency, limit, db, search=q)
    data = QuoteRequestListResponse(items=[QuoteRequestResponse.from_domain(r) for r in items])
    return success_response(data.model_dump(mode="json"), request)


@router.get("/{request_id}")
async def get_request(
    request_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    found = await _registry.get_for_actor(request_id, actor, db)
    data = QuoteRequestResponse.from_domain(found)
    return success_response(data.model_dump(mode="json"), request)
