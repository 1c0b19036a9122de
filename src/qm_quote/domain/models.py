"""Quote domain model — pure dataclass, no SQLAlchemy dependency."""
from dataclasses import dataclass
from datetime import date, datetime


@dataclass
class Quote:
    id: str
    request_id: str
    provider_id: str
    delivery_fee: int  # cents
    estimated_delivery_date: date
    created_at: datetime  # first bid time; kept across re-submissions
    valid_until: datetime
    state: str = "PENDING"
    price_breakdown: str = ""
    notes: str = ""
    provider_rating: float | None = None
    updated_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.state == "PENDING"

    def is_active_at(self, now: datetime) -> bool:
        return self.is_pending and self.valid_until > now
