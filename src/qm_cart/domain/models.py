"""Cart domain models — pure dataclasses, no SQLAlchemy dependency."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.qm_common.cents import line_total


@dataclass(frozen=True)
class CartLine:
    seller_id: str
    product_id: str
    product_kind: str  # catalog category, e.g. FISH / INDUSTRIAL / SERVICE
    unit_price: int  # cents
    quantity: int
    product_name: str = ""

    @property
    def line_total(self) -> int:
        return line_total(self.unit_price, self.quantity)

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "seller_id": self.seller_id,
            "product_id": self.product_id,
            "product_kind": self.product_kind,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "product_name": self.product_name,
        }

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]) -> "CartLine":
        return cls(
            seller_id=data["seller_id"],
            product_id=data["product_id"],
            product_kind=data["product_kind"],
            unit_price=int(data["unit_price"]),
            quantity=int(data["quantity"]),
            product_name=data.get("product_name", ""),
        )


@dataclass(frozen=True)
class SellerGroup:
    """Read-only view: every cart line of one seller, from one buyer's cart."""

    buyer_id: str
    seller_id: str
    lines: tuple[CartLine, ...]
    subtotal: int

    @property
    def is_own_group(self) -> bool:
        return self.seller_id == self.buyer_id


@dataclass(frozen=True)
class RequestPreferences:
    quotes_expire_after_hours: int = 24
    delivery_address: str = ""
    special_instructions: str = ""
    urgency: str = "NORMAL"
    preferred_delivery_time: datetime | None = None


@dataclass(frozen=True)
class QuoteRequestDraft:
    buyer_id: str
    seller_id: str
    line_items: tuple[CartLine, ...]
    subtotal: int
    preferences: RequestPreferences = field(default_factory=RequestPreferences)
