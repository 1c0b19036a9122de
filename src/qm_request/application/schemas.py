# src/qm_request/application/schemas.py
from datetime import datetime

from pydantic import BaseModel, Field

from src.qm_cart.application.schemas import CartLineBody, PreferencesBody
from src.qm_request.domain.models import QuoteRequest


class CreateQuoteRequestBody(BaseModel):
    seller_id: str = Field(..., min_length=1, max_length=64)
    lines: list[CartLineBody] = Field(..., min_length=1)
    preferences: PreferencesBody = Field(default_factory=PreferencesBody)


class LineItemResponse(BaseModel):
    product_id: str
    product_kind: str
    product_name: str
    unit_price: int
    quantity: int
    line_total: int


class QuoteRequestResponse(BaseModel):
    id: str
    buyer_id: str
    seller_id: str
    line_items: list[LineItemResponse]
    subtotal: int
    delivery_address: str
    special_instructions: str
    urgency: str
    preferred_delivery_time: datetime | None
    state: str
    closed_reason: str | None
    created_at: datetime
    expires_at: datetime
    closed_at: datetime | None

    @classmethod
    def from_domain(cls, r: QuoteRequest) -> "QuoteRequestResponse":
        return cls(
            id=r.id,
            buyer_id=r.buyer_id,
            seller_id=r.seller_id,
            line_items=[
                LineItemResponse(
                    product_id=line.product_id,
                    product_kind=line.product_kind,
                    product_name=line.product_name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    line_total=line.line_total,
                )
                for line in r.line_items
            ],
            subtotal=r.subtotal,
            delivery_address=r.delivery_address,
            special_instructions=r.special_instructions,
            urgency=r.urgency,
            preferred_delivery_time=r.preferred_delivery_time,
            state=r.state,
            closed_reason=r.closed_reason,
            created_at=r.created_at,
            expires_at=r.expires_at,
            closed_at=r.closed_at,
        )


class QuoteRequestListResponse(BaseModel):
    items: list[QuoteRequestResponse]
