# src/qm_cart/application/schemas.py
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from config.settings import settings

from src.qm_cart.domain.models import CartLine, RequestPreferences, SellerGroup


class CartLineBody(BaseModel):
    seller_id: str = Field(..., min_length=1, max_length=64)
    product_id: str = Field(..., min_length=1, max_length=64)
    product_kind: str = Field(..., min_length=1, max_length=32)
    unit_price: int = Field(..., ge=0, description="cents")
    quantity: int = Field(..., gt=0)
    product_name: str = Field("", max_length=200)

    def to_domain(self) -> CartLine:
        return CartLine(
            seller_id=self.seller_id,
            product_id=self.product_id,
            product_kind=self.product_kind,
            unit_price=self.unit_price,
            quantity=self.quantity,
            product_name=self.product_name,
        )


class PreferencesBody(BaseModel):
    # Range is enforced by the registry so the error code is consistent across entry points
    quotes_expire_after_hours: int = Field(
        settings.QUOTES_EXPIRE_DEFAULT_HOURS, description="1-72 hours"
    )
    delivery_address: str = Field("", max_length=500)
    special_instructions: str = Field("", max_length=2000)
    urgency: Literal["NORMAL", "URGENT"] = "NORMAL"
    preferred_delivery_time: datetime | None = None

    def to_domain(self) -> RequestPreferences:
        return RequestPreferences(
            quotes_expire_after_hours=self.quotes_expire_after_hours,
            delivery_address=self.delivery_address,
            special_instructions=self.special_instructions,
            urgency=self.urgency,
            preferred_delivery_time=self.preferred_delivery_time,
        )


class CartBody(BaseModel):
    lines: list[CartLineBody] = Field(default_factory=list)


class CheckoutBody(BaseModel):
    lines: list[CartLineBody] = Field(..., min_length=1)
    preferences: PreferencesBody = Field(default_factory=PreferencesBody)
    # seller_id -> override of the global preferences for that seller group
    seller_preferences: dict[str, PreferencesBody] = Field(default_factory=dict)


class SellerGroupResponse(BaseModel):
    seller_id: str
    line_count: int
    subtotal: int
    is_own_group: bool
    eligible_for_quotes: bool

    @classmethod
    def from_domain(cls, g: SellerGroup) -> "SellerGroupResponse":
        return cls(
            seller_id=g.seller_id,
            line_count=len(g.lines),
            subtotal=g.subtotal,
            is_own_group=g.is_own_group,
            eligible_for_quotes=not g.is_own_group,
        )


class SellerGroupListResponse(BaseModel):
    groups: list[SellerGroupResponse]
