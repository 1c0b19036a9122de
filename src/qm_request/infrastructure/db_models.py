# src/qm_request/infrastructure/db_models.py
"""SQLAlchemy ORM model for the quote_requests table.

Repositories query the underlying Table with Core statements; the schema
itself is created by alembic/versions/001_create_quote_requests.py.
"""
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.qm_common.database import Base


class QuoteRequestORM(Base):
    __tablename__ = "quote_requests"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    buyer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    seller_id: Mapped[str] = mapped_column(String(64), nullable=False)
    line_items: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    subtotal: Mapped[int] = mapped_column(BigInteger, nullable=False)
    delivery_address: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    special_instructions: Mapped[str] = mapped_column(Text, nullable=False, default="")
    urgency: Mapped[str] = mapped_column(String(10), nullable=False, default="NORMAL")
    preferred_delivery_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    state: Mapped[str] = mapped_column(String(10), nullable=False, default="OPEN")
    closed_reason: Mapped[str | None] = mapped_column(String(10), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_quote_requests_state_expires", "state", "expires_at"),
        Index("idx_quote_requests_buyer_seller", "buyer_id", "seller_id", "state"),
    )
