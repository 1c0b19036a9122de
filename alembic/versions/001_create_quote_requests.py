"""001: create quote_requests table

Revision ID: 001
Revises: 
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE quote_requests (
            id                      VARCHAR(40)     PRIMARY KEY,
            buyer_id                VARCHAR(64)     NOT NULL,
            seller_id               VARCHAR(64)     NOT NULL,
            line_items              JSONB           NOT NULL,
            subtotal                BIGINT          NOT NULL,
            delivery_address        VARCHAR(500)    NOT NULL DEFAULT '',
            special_instructions    TEXT            NOT NULL DEFAULT '',
            urgency                 VARCHAR(10)     NOT NULL DEFAULT 'NORMAL',
            preferred_delivery_time TIMESTAMPTZ,
            state                   VARCHAR(10)     NOT NULL DEFAULT 'OPEN',
            closed_reason           VARCHAR(10),
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            expires_at              TIMESTAMPTZ     NOT NULL,
            closed_at               TIMESTAMPTZ,
            CONSTRAINT ck_quote_requests_state      CHECK (state IN ('OPEN', 'CLOSED', 'EXPIRED')),
            CONSTRAINT ck_quote_requests_reason     CHECK (closed_reason IS NULL OR closed_reason IN ('ACCEPTED', 'EXPIRED')),
            CONSTRAINT ck_quote_requests_urgency    CHECK (urgency IN ('NORMAL', 'URGENT')),
            CONSTRAINT ck_quote_requests_subtotal   CHECK (subtotal >= 0),
            CONSTRAINT ck_quote_requests_window     CHECK (expires_at > created_at),
            CONSTRAINT ck_quote_requests_closed     CHECK ((state = 'OPEN') = (closed_at IS NULL))
        );
    """)
    op.execute("CREATE INDEX idx_quote_requests_state_expires ON quote_requests (state, expires_at);")
    op.execute(
        "CREATE INDEX idx_quote_requests_buyer_seller ON quote_requests (buyer_id, seller_id, state);"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS quote_requests CASCADE;")
