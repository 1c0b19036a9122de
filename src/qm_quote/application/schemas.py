# src/qm_quote/application/schemas.py
from datetime import date, datetime

from pydantic import BaseModel, Field

from src.qm_common.cents import cents_to_display
from src.qm_quote.domain.models import Quote


class SubmitQuoteBody(BaseModel):
    # Positivity is checked by the ledger so a zero fee reports InvalidBidError
    delivery_fee: int = Field(..., description="cents")
    estimated_delivery_date: date
    valid_until: datetime | None = None
    price_breakdown: str = Field("", max_length=2000)
    notes: str = Field("", max_length=2000)


class QuoteResponse(BaseModel):
    id: str
    request_id: str
    provider_id: str
    delivery_fee: int
    delivery_fee_display: str
    estimated_delivery_date: date
    valid_until: datetime
    state: str
    price_breakdown: str
    notes: str
    provider_rating: float | None
    created_at: datetime
    updated_at: datetime | None

    @classmethod
    def from_domain(cls, q: Quote) -> "QuoteResponse":
        return cls(
            id=q.id,
            request_id=q.request_id,
            provider_id=q.provider_id,
            delivery_fee=q.delivery_fee,
            delivery_fee_display=cents_to_display(q.delivery_fee),
            estimated_delivery_date=q.estimated_delivery_date,
            valid_until=q.valid_until,
            state=q.state,
            price_breakdown=q.price_breakdown,
            notes=q.notes,
            provider_rating=q.provider_rating,
            created_at=q.created_at,
            updated_at=q.updated_at,
        )


class QuoteListResponse(BaseModel):
    request_id: str | None = None
    items: list[QuoteResponse]
