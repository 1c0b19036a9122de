"""qm_quote REST API — provider bids and the buyer's ranked quote list."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.qm_common.database import get_db_session
from src.qm_common.enums import QuoteSort, QuoteState
from src.qm_common.response import ApiResponse, success_response
from src.qm_gateway.auth.actor import Actor
from src.qm_gateway.auth.dependencies import get_current_actor
from src.qm_quote.application.schemas import QuoteListResponse, QuoteResponse, SubmitQuoteBody
from src.qm_quote.application.service import QuoteLedger

router = APIRouter(tags=["quotes"])

_ledger = QuoteLedger()


@router.post("/quote-requests/{request_id}/quotes", status_code=201)
async def submit_quote(
    request_id: str,
    body: SubmitQuoteBody,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    quote = await _ledger.submit_as(
        actor,
        request_id,
        body.delivery_fee,
        body.estimated_delivery_date,
        db,
        valid_until=body.valid_until,
        price_breakdown=body.price_breakdown,
        notes=body.notes,
    )
    return success_response(QuoteResponse.from_domain(quote).model_dump(mode="json"), request)


@router.get("/quote-requests/{request_id}/quotes")
async def list_quotes(
    request_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    sort: QuoteSort = Query(QuoteSort.FEE, description="fee (ascending) or rating (descending)"),
) -> ApiResponse:
    quotes = await _ledger.list_for_buyer(request_id, actor, sort, db)
    data = QuoteListResponse(
        request_id=request_id, items=[QuoteResponse.from_domain(q) for q in quotes]
    )
    return success_response(data.model_dump(mode="json"), request)


@router.get("/quotes/mine")
async def list_my_quotes(
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    state: QuoteState | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    quotes = await _ledger.list_mine(actor, state.value if state else None, limit, db)
    data = QuoteListResponse(items=[QuoteResponse.from_domain(q) for q in quotes])
    return success_response(data.model_dump(mode="json"), request)
