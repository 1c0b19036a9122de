"""003: create orders and order_status_events tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id                  VARCHAR(26)     PRIMARY KEY,
            request_id          VARCHAR(40)     NOT NULL REFERENCES quote_requests (id),
            accepted_quote_id   VARCHAR(26)     NOT NULL REFERENCES quotes (id),
            buyer_id            VARCHAR(64)     NOT NULL,
            seller_id           VARCHAR(64)     NOT NULL,
            provider_id         VARCHAR(64)     NOT NULL,
            line_items          JSONB           NOT NULL,
            subtotal            BIGINT          NOT NULL,
            delivery_fee        BIGINT          NOT NULL,
            total_amount        BIGINT          NOT NULL,
            payment_method      VARCHAR(20)     NOT NULL,
            delivery_address    VARCHAR(500)    NOT NULL DEFAULT '',
            delivery_code       VARCHAR(12)     NOT NULL,
            status              VARCHAR(12)     NOT NULL DEFAULT 'CONFIRMED',
            cancel_reason       VARCHAR(500),
            delivery_notes      TEXT,
            delivered_at        TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            last_updated        TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_orders_request_id         UNIQUE (request_id),
            CONSTRAINT uq_orders_accepted_quote_id  UNIQUE (accepted_quote_id),
            CONSTRAINT ck_orders_total              CHECK (total_amount = subtotal + delivery_fee),
            CONSTRAINT ck_orders_fee                CHECK (delivery_fee > 0),
            CONSTRAINT ck_orders_payment_method     CHECK (
                payment_method IN ('CASH_ON_DELIVERY', 'BANK_TRANSFER', 'MOBILE_PAYMENT')
            ),
            CONSTRAINT ck_orders_status             CHECK (
                status IN ('CONFIRMED', 'PROCESSING', 'SHIPPED', 'PICKED_UP',
                           'IN_TRANSIT', 'ARRIVED', 'DELIVERED', 'CANCELLED')
            ),
            CONSTRAINT ck_orders_cancel_reason      CHECK (status <> 'CANCELLED' OR cancel_reason IS NOT NULL),
            CONSTRAINT ck_orders_delivered          CHECK (
                status <> 'DELIVERED' OR (delivery_notes IS NOT NULL AND delivered_at IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_orders_buyer ON orders (buyer_id, id);")
    op.execute("CREATE INDEX idx_orders_seller ON orders (seller_id, id);")
    op.execute("CREATE INDEX idx_orders_provider ON orders (provider_id, id);")

    op.execute("""
        CREATE TABLE order_status_events (
            id              VARCHAR(26)     PRIMARY KEY,
            order_id        VARCHAR(26)     NOT NULL REFERENCES orders (id),
            from_status     VARCHAR(12),
            to_status       VARCHAR(12)     NOT NULL,
            actor_id        VARCHAR(64)     NOT NULL,
            note            TEXT            NOT NULL DEFAULT '',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute(
        "CREATE INDEX idx_order_status_events_order ON order_status_events (order_id, created_at);"
    )
    op.execute("COMMENT ON TABLE order_status_events IS 'Append-only order timeline';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS order_status_events CASCADE;")
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
