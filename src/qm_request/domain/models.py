"""Quote request domain model — pure dataclass, no SQLAlchemy dependency."""
from dataclasses import dataclass, field
from datetime import datetime

from src.qm_cart.domain.models import CartLine


@dataclass
class QuoteRequest:
    id: str  # opaque session token; the only handle the buyer's client holds
    buyer_id: str
    seller_id: str  # seller-group key
    subtotal: int
    created_at: datetime
    expires_at: datetime
    line_items: list[CartLine] = field(default_factory=list)
    state: str = "OPEN"
    delivery_address: str = ""
    special_instructions: str = ""
    urgency: str = "NORMAL"
    preferred_delivery_time: datetime | None = None
    closed_reason: str | None = None
    closed_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.state == "OPEN"

    def accepts_quotes_at(self, now: datetime) -> bool:
        """OPEN and not yet past its expiry, whether or not the sweeper has run."""
        return self.is_open and now < self.expires_at

    def is_party(self, user_id: str) -> bool:
        return user_id in (self.buyer_id, self.seller_id)
