"""004: create bids and auction_participants tables

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # id doubles as insertion order within an auction.
    op.execute("""
        CREATE TABLE bids (
            id              BIGSERIAL       PRIMARY KEY,
            auction_id      TEXT            NOT NULL REFERENCES auctions(id) ON DELETE CASCADE,
            bidder_id       UUID            NOT NULL REFERENCES users(id),
            amount          NUMERIC(78, 18) NOT NULL,
            usd_value       NUMERIC(78, 18),
            source          VARCHAR(10)     NOT NULL DEFAULT 'MIRROR',
            client_bid_id   VARCHAR(64),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bids_amount   CHECK (amount >= 0),
            CONSTRAINT ck_bids_source   CHECK (source IN ('MIRROR', 'LEDGER'))
        );
    """)
    op.execute("CREATE INDEX idx_bids_auction ON bids (auction_id, id);")
    op.execute("""
        CREATE UNIQUE INDEX uq_bids_client_bid_id
            ON bids (bidder_id, client_bid_id) WHERE client_bid_id IS NOT NULL;
    """)
    op.execute("""
        CREATE TABLE auction_participants (
            auction_id  TEXT        NOT NULL REFERENCES auctions(id) ON DELETE CASCADE,
            user_id     UUID        NOT NULL REFERENCES users(id),
            joined_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            PRIMARY KEY (auction_id, user_id)
        );
    """)
    op.execute("CREATE INDEX idx_participants_user ON auction_participants (user_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS auction_participants CASCADE;")
    op.execute("DROP TABLE IF EXISTS bids CASCADE;")
