"""003: create auctions table (read-model of ledger auctions)

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
    # Registration enforces end_time > start_time; settlement may close an
    # auction at the exact start instant, hence >= here.
    op.execute("""
        CREATE TABLE auctions (
            id                  TEXT            PRIMARY KEY DEFAULT gen_random_uuid()::text,
            ledger_auction_id   VARCHAR(128)    NOT NULL,
            name                VARCHAR(200)    NOT NULL,
            token_address       VARCHAR(42)     NOT NULL,
            currency            VARCHAR(20)     NOT NULL,
            minimum_bid         NUMERIC(78, 18) NOT NULL DEFAULT 0,
            start_time          TIMESTAMPTZ     NOT NULL,
            end_time            TIMESTAMPTZ     NOT NULL,
            host_id             UUID            NOT NULL REFERENCES users(id),
            status              VARCHAR(10)     NOT NULL DEFAULT 'RUNNING',
            highest_bid         NUMERIC(78, 18) NOT NULL DEFAULT 0,
            highest_bidder_id   UUID            REFERENCES users(id),
            bid_count           INTEGER         NOT NULL DEFAULT 0,
            participant_count   INTEGER         NOT NULL DEFAULT 0,
            winner_id           UUID            REFERENCES users(id),
            winning_amount      NUMERIC(78, 18),
            winning_usd         NUMERIC(78, 18),
            ranking_basis       VARCHAR(10),
            settled_at          TIMESTAMPTZ,
            version             BIGINT          NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_auctions_ledger_id    UNIQUE (ledger_auction_id),
            CONSTRAINT ck_auctions_time_window  CHECK (end_time >= start_time),
            CONSTRAINT ck_auctions_status       CHECK (status IN ('RUNNING', 'ENDED')),
            CONSTRAINT ck_auctions_ranking      CHECK (ranking_basis IS NULL
                                                       OR ranking_basis IN ('USD', 'AMOUNT')),
            CONSTRAINT ck_auctions_minimum_bid  CHECK (minimum_bid >= 0),
            CONSTRAINT ck_auctions_highest_bid  CHECK (highest_bid >= 0),
            CONSTRAINT ck_auctions_settled      CHECK ((status = 'ENDED') = (settled_at IS NOT NULL))
        );
    """)
    op.execute(
        "CREATE INDEX idx_auctions_running ON auctions (end_time) WHERE status = 'RUNNING';"
    )
    op.execute("CREATE INDEX idx_auctions_host ON auctions (host_id, end_time DESC);")
    op.execute("""
        CREATE TRIGGER trg_auctions_updated_at
            BEFORE UPDATE ON auctions
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS auctions CASCADE;")
