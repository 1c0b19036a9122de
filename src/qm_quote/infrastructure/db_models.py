# src/qm_quote/infrastructure/db_models.py
"""SQLAlchemy ORM model for the quotes table.

The partial unique index enforces at most one PENDING quote per provider per
request; re-submission updates that row in place.
"""
from datetime import date, datetime

from sqlalchemy import BigInteger, Date, DateTime, Float, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from src.qm_common.database import Base


class QuoteORM(Base):
    __tablename__ = "quotes"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    request_id: Mapped[str] = mapped_column(String(40), nullable=False)
    provider_id: Mapped[str] = mapped_column(String(64), nullable=False)
    delivery_fee: Mapped[int] = mapped_column(BigInteger, nullable=False)
    estimated_delivery_date: Mapped[date] = mapped_column(Date, nullable=False)
    price_breakdown: Mapped[str] = mapped_column(Text, nullable=False, default="")
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    provider_rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    state: Mapped[str] = mapped_column(String(10), nullable=False, default="PENDING")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    valid_until: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_quotes_request_state", "request_id", "state"),
        Index("idx_quotes_provider", "provider_id", "created_at"),
        Index(
            "uq_quotes_pending_per_provider",
            "request_id",
            "provider_id",
            unique=True,
            postgresql_where=text("state = 'PENDING'"),
            sqlite_where=text("state = 'PENDING'"),
        ),
        Index(
            "uq_quotes_accepted_per_request",
            "request_id",
            unique=True,
            postgresql_where=text("state = 'ACCEPTED'"),
            sqlite_where=text("state = 'ACCEPTED'"),
        ),
    )
