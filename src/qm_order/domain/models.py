"""Order domain model — pure dataclass, no SQLAlchemy dependency.

Financial fields (subtotal, delivery_fee, total_amount) are fixed at
creation; afterwards only status and operational notes change.
"""
from dataclasses import dataclass, field
from datetime import datetime

from src.qm_cart.domain.models import CartLine
from src.qm_quote.domain.models import Quote
from src.qm_request.domain.models import QuoteRequest


@dataclass
class Order:
    id: str
    request_id: str
    accepted_quote_id: str
    buyer_id: str
    seller_id: str
    provider_id: str
    subtotal: int
    delivery_fee: int
    total_amount: int
    payment_method: str
    delivery_code: str
    created_at: datetime
    last_updated: datetime
    line_items: list[CartLine] = field(default_factory=list)
    delivery_address: str = ""
    status: str = "CONFIRMED"
    cancel_reason: str | None = None
    delivery_notes: str | None = None
    delivered_at: datetime | None = None


@dataclass
class OrderStatusEvent:
    id: str
    order_id: str
    from_status: str | None  # None for the creation event
    to_status: str
    actor_id: str
    note: str
    created_at: datetime


@dataclass
class ProviderStats:
    provider_id: str
    orders_by_status: dict[str, int]
    delivered_count: int
    delivered_fees: int  # cents


def order_from_acceptance(
    order_id: str,
    request: QuoteRequest,
    quote: Quote,
    payment_method: str,
    delivery_code: str,
    now: datetime,
) -> Order:
    """The only way an Order comes into existence: a quote reaching ACCEPTED."""
    return Order(
        id=order_id,
        request_id=request.id,
        accepted_quote_id=quote.id,
        buyer_id=request.buyer_id,
        seller_id=request.seller_id,
        provider_id=quote.provider_id,
        line_items=list(request.line_items),
        subtotal=request.subtotal,
        delivery_fee=quote.delivery_fee,
        total_amount=request.subtotal + quote.delivery_fee,
        payment_method=payment_method,
        delivery_address=request.delivery_address,
        delivery_code=delivery_code,
        status="CONFIRMED",
        created_at=now,
        last_updated=now,
    )
