"""002: create quotes table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE quotes (
            id                      VARCHAR(26)     PRIMARY KEY,
            request_id              VARCHAR(40)     NOT NULL REFERENCES quote_requests (id),
            provider_id             VARCHAR(64)     NOT NULL,
            delivery_fee            BIGINT          NOT NULL,
            estimated_delivery_date DATE            NOT NULL,
            price_breakdown         TEXT            NOT NULL DEFAULT '',
            notes                   TEXT            NOT NULL DEFAULT '',
            provider_rating         DOUBLE PRECISION,
            state                   VARCHAR(10)     NOT NULL DEFAULT 'PENDING',
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            valid_until             TIMESTAMPTZ     NOT NULL,
            CONSTRAINT ck_quotes_fee    CHECK (delivery_fee > 0),
            CONSTRAINT ck_quotes_state  CHECK (state IN ('PENDING', 'ACCEPTED', 'REJECTED', 'EXPIRED'))
        );
    """)
    op.execute("CREATE INDEX idx_quotes_request_state ON quotes (request_id, state);")
    op.execute("CREATE INDEX idx_quotes_provider ON quotes (provider_id, created_at);")
    # One live bid per provider per request; re-submission replaces it
    op.execute("""
        CREATE UNIQUE INDEX uq_quotes_pending_per_provider
        ON quotes (request_id, provider_id)
        WHERE state = 'PENDING';
    """)
    # At most one accepted quote per request
    op.execute("""
        CREATE UNIQUE INDEX uq_quotes_accepted_per_request
        ON quotes (request_id)
        WHERE state = 'ACCEPTED';
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS quotes CASCADE;")
