# src/qm_order/application/schemas.py
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from src.qm_common.enums import OrderStatus, PaymentMethod
from src.qm_order.domain.models import Order, OrderStatusEvent, ProviderStats
from src.qm_order.domain.state_machine import next_statuses
from src.qm_request.application.schemas import LineItemResponse

OrderParty = Literal["buyer", "seller", "provider"]


class AcceptQuoteBody(BaseModel):
    payment_method: PaymentMethod = PaymentMethod.CASH_ON_DELIVERY


class AdvanceOrderBody(BaseModel):
    next_status: OrderStatus
    note: str = Field("", max_length=2000)


class CancelOrderBody(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class ConfirmDeliveryBody(BaseModel):
    # Presence and length are checked by the state machine so the error code is
    # IncompleteConfirmationError rather than a generic 422
    code: str | None = None
    notes: str | None = None


class OrderResponse(BaseModel):
    id: str
    request_id: str
    accepted_quote_id: str
    buyer_id: str
    seller_id: str
    provider_id: str
    line_items: list[LineItemResponse]
    subtotal: int
    delivery_fee: int
    total_amount: int
    payment_method: str
    delivery_address: str
    status: str
    allowed_next: list[str]
    cancel_reason: str | None = None
    delivery_notes: str | None = None
    delivered_at: datetime | None = None
    delivery_code: str | None = None  # buyer's view only
    created_at: datetime
    last_updated: datetime

    @classmethod
    def from_domain(cls, o: Order, viewer_id: str) -> "OrderResponse":
        return cls(
            id=o.id,
            request_id=o.request_id,
            accepted_quote_id=o.accepted_quote_id,
            buyer_id=o.buyer_id,
            seller_id=o.seller_id,
            provider_id=o.provider_id,
            line_items=[
                LineItemResponse(
                    product_id=line.product_id,
                    product_kind=line.product_kind,
                    product_name=line.product_name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    line_total=line.line_total,
                )
                for line in o.line_items
            ],
            subtotal=o.subtotal,
            delivery_fee=o.delivery_fee,
            total_amount=o.total_amount,
            payment_method=o.payment_method,
            delivery_address=o.delivery_address,
            status=o.status,
            allowed_next=[s.value for s in next_statuses(OrderStatus(o.status))],
            cancel_reason=o.cancel_reason,
            delivery_notes=o.delivery_notes,
            delivered_at=o.delivered_at,
            delivery_code=o.delivery_code if viewer_id == o.buyer_id else None,
            created_at=o.created_at,
            last_updated=o.last_updated,
        )


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    next_cursor: str | None
    has_more: bool


class OrderEventResponse(BaseModel):
    id: str
    from_status: str | None
    to_status: str
    actor_id: str
    note: str
    created_at: datetime

    @classmethod
    def from_domain(cls, e: OrderStatusEvent) -> "OrderEventResponse":
        return cls(
            id=e.id,
            from_status=e.from_status,
            to_status=e.to_status,
            actor_id=e.actor_id,
            note=e.note,
            created_at=e.created_at,
        )


class OrderTimelineResponse(BaseModel):
    order_id: str
    events: list[OrderEventResponse]


class ProviderStatsResponse(BaseModel):
    provider_id: str
    orders_by_status: dict[str, int]
    delivered_count: int
    delivered_fees: int

    @classmethod
    def from_domain(cls, s: ProviderStats) -> "ProviderStatsResponse":
        return cls(
            provider_id=s.provider_id,
            orders_by_status=s.orders_by_status,
            delivered_count=s.delivered_count,
            delivered_fees=s.delivered_fees,
        )
