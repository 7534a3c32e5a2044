"""AuctionRepository: raw SQL persistence for auctions, bids and participants.

Auction rows are always read joined with the host, the current highest
bidder and the winner so the query layer never issues per-row user lookups.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_auction.domain.models import (
    Auction,
    Bid,
    NewAuction,
    ReplacementBid,
    SettlementOutcome,
)
from src.ah_common.enums import BidSource

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_AUCTION_SELECT = """
    SELECT a.id, a.ledger_auction_id, a.name, a.token_address, a.currency,
        a.minimum_bid, a.start_time, a.end_time,
        a.host_id, h.wallet AS host_wallet, h.fid AS host_fid,
        a.status, a.highest_bid, a.highest_bidder_id,
        hb.wallet AS highest_bidder_wallet, hb.fid AS highest_bidder_fid,
        a.bid_count, a.participant_count,
        a.winner_id, w.wallet AS winner_wallet, w.fid AS winner_fid,
        a.winning_amount, a.winning_usd,
        a.ranking_basis, a.settled_at, a.version, a.created_at, a.updated_at
    FROM auctions a
    JOIN users h ON h.id = a.host_id
    LEFT JOIN users hb ON hb.id = a.highest_bidder_id
    LEFT JOIN users w ON w.id = a.winner_id
"""

_INSERT_AUCTION_SQL = text("""
    INSERT INTO auctions (ledger_auction_id, name, token_address, currency,
        minimum_bid, start_time, end_time, host_id)
    VALUES (:ledger_auction_id, :name, :token_address, :currency,
        :minimum_bid, :start_time, :end_time, CAST(:host_id AS UUID))
    ON CONFLICT (ledger_auction_id) DO NOTHING
    RETURNING id
""")

_GET_BY_ID_SQL = text(f"{_AUCTION_SELECT} WHERE a.id = :auction_id")

_GET_BY_LEDGER_ID_SQL = text(f"{_AUCTION_SELECT} WHERE a.ledger_auction_id = :ledger_auction_id")

# Outer-joined user rows cannot be locked; lock the auction row only.
_GET_BY_LEDGER_ID_FOR_UPDATE_SQL = text(f"""
    {_AUCTION_SELECT}
    WHERE a.ledger_auction_id = :ledger_auction_id
    FOR UPDATE OF a
""")

_LIST_RUNNING_SQL = text(f"""
    {_AUCTION_SELECT}
    WHERE a.status = 'RUNNING' AND a.start_time <= :now AND a.end_time >= :now
    ORDER BY a.end_time ASC, a.id ASC
    LIMIT :limit
""")

_LIST_BY_HOST_SQL = text(f"""
    {_AUCTION_SELECT}
    WHERE a.host_id = CAST(:host_id AS UUID)
    ORDER BY a.end_time DESC, a.id DESC
""")

_LIST_BY_PARTICIPANT_SQL = text(f"""
    {_AUCTION_SELECT}
    WHERE a.id IN (
        SELECT auction_id FROM auction_participants WHERE user_id = CAST(:user_id AS UUID)
    )
    ORDER BY a.end_time DESC, a.id DESC
""")

_BID_COLUMNS = """
    b.id, b.auction_id, b.bidder_id, u.wallet AS bidder_wallet, u.fid AS bidder_fid,
    b.amount, b.usd_value, b.source, b.client_bid_id, b.created_at
"""

_LIST_BIDS_SQL = text(f"""
    SELECT {_BID_COLUMNS}
    FROM bids b JOIN users u ON u.id = b.bidder_id
    WHERE b.auction_id = :auction_id
    ORDER BY b.id ASC
""")

_GET_BID_BY_CLIENT_ID_SQL = text(f"""
    SELECT {_BID_COLUMNS}
    FROM bids b JOIN users u ON u.id = b.bidder_id
    WHERE b.bidder_id = CAST(:bidder_id AS UUID) AND b.client_bid_id = :client_bid_id
""")

_INSERT_BID_SQL = text(f"""
    WITH b AS (
        INSERT INTO bids (auction_id, bidder_id, amount, usd_value, source,
            client_bid_id, created_at)
        VALUES (:auction_id, CAST(:bidder_id AS UUID), :amount, :usd_value, :source,
            :client_bid_id, :created_at)
        RETURNING *
    )
    SELECT {_BID_COLUMNS}
    FROM b JOIN users u ON u.id = b.bidder_id
""")

# Conditional raise: a concurrent writer that got there first makes this a no-op.
_RAISE_HIGHEST_BID_SQL = text("""
    UPDATE auctions
    SET highest_bid = :amount,
        highest_bidder_id = CAST(:bidder_id AS UUID),
        bid_count = bid_count + 1,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :auction_id AND status = 'RUNNING' AND highest_bid < :amount
    RETURNING version
""")

_ADD_PARTICIPANT_SQL = text("""
    WITH inserted AS (
        INSERT INTO auction_participants (auction_id, user_id)
        VALUES (:auction_id, CAST(:user_id AS UUID))
        ON CONFLICT DO NOTHING
        RETURNING auction_id
    )
    UPDATE auctions
    SET participant_count = participant_count + 1
    WHERE id IN (SELECT auction_id FROM inserted)
    RETURNING participant_count
""")

_DELETE_BIDS_SQL = text("DELETE FROM bids WHERE auction_id = :auction_id")

_DELETE_PARTICIPANTS_SQL = text(
    "DELETE FROM auction_participants WHERE auction_id = :auction_id"
)

_INSERT_LEDGER_BID_SQL = text("""
    INSERT INTO bids (auction_id, bidder_id, amount, usd_value, source, created_at)
    VALUES (:auction_id, CAST(:bidder_id AS UUID), :amount, :usd_value, :source, :created_at)
""")

_REBUILD_PARTICIPANTS_SQL = text("""
    INSERT INTO auction_participants (auction_id, user_id)
    SELECT DISTINCT auction_id, bidder_id FROM bids WHERE auction_id = :auction_id
""")

# status = 'RUNNING' guards against a second settlement from another process.
_MARK_SETTLED_SQL = text("""
    UPDATE auctions
    SET status = 'ENDED',
        end_time = :ended_at,
        settled_at = :ended_at,
        highest_bid = :highest_bid,
        highest_bidder_id = CAST(:highest_bidder_id AS UUID),
        bid_count = :bid_count,
        participant_count = (
            SELECT COUNT(*) FROM auction_participants WHERE auction_id = :auction_id
        ),
        winner_id = CAST(:winner_id AS UUID),
        winning_amount = :winning_amount,
        winning_usd = :winning_usd,
        ranking_basis = :ranking_basis,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :auction_id AND status = 'RUNNING'
    RETURNING version
""")


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _opt_str(value: Any) -> str | None:
    return str(value) if value is not None else None


def _row_to_auction(row: Any) -> Auction:
    return Auction(
        id=str(row.id),
        ledger_auction_id=row.ledger_auction_id,
        name=row.name,
        token_address=row.token_address,
        currency=row.currency,
        minimum_bid=row.minimum_bid,
        start_time=row.start_time,
        end_time=row.end_time,
        host_id=str(row.host_id),
        host_wallet=row.host_wallet,
        host_fid=row.host_fid,
        status=row.status,
        highest_bid=row.highest_bid,
        highest_bidder_id=_opt_str(row.highest_bidder_id),
        highest_bidder_wallet=row.highest_bidder_wallet,
        highest_bidder_fid=row.highest_bidder_fid,
        bid_count=row.bid_count,
        participant_count=row.participant_count,
        winner_id=_opt_str(row.winner_id),
        winner_wallet=row.winner_wallet,
        winner_fid=row.winner_fid,
        winning_amount=row.winning_amount,
        winning_usd=row.winning_usd,
        ranking_basis=row.ranking_basis,
        settled_at=row.settled_at,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_bid(row: Any) -> Bid:
    return Bid(
        id=row.id,
        auction_id=str(row.auction_id),
        bidder_id=str(row.bidder_id),
        bidder_wallet=row.bidder_wallet,
        bidder_fid=row.bidder_fid,
        amount=row.amount,
        usd_value=row.usd_value,
        source=row.source,
        client_bid_id=row.client_bid_id,
        created_at=row.created_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AuctionRepository:
    """Concrete implementation of AuctionRepositoryProtocol using raw SQL."""

    async def create(self, db: AsyncSession, auction: NewAuction) -> Auction | None:
        """Insert a new auction; None when the ledger key is already registered."""
        result = await db.execute(
            _INSERT_AUCTION_SQL,
            {
                "ledger_auction_id": auction.ledger_auction_id,
                "name": auction.name,
                "token_address": auction.token_address,
                "currency": auction.currency,
                "minimum_bid": auction.minimum_bid,
                "start_time": auction.start_time,
                "end_time": auction.end_time,
                "host_id": auction.host_id,
            },
        )
        row = result.fetchone()
        if row is None:
            return None
        created = await db.execute(_GET_BY_ID_SQL, {"auction_id": row.id})
        return _row_to_auction(created.fetchone())

    async def get_by_ledger_id(
        self, db: AsyncSession, ledger_auction_id: str, for_update: bool = False
    ) -> Auction | None:
        sql = _GET_BY_LEDGER_ID_FOR_UPDATE_SQL if for_update else _GET_BY_LEDGER_ID_SQL
        result = await db.execute(sql, {"ledger_auction_id": ledger_auction_id})
        row = result.fetchone()
        return _row_to_auction(row) if row else None

    async def list_running(
        self, db: AsyncSession, now: datetime, limit: int
    ) -> list[Auction]:
        result = await db.execute(_LIST_RUNNING_SQL, {"now": now, "limit": limit})
        return [_row_to_auction(r) for r in result.fetchall()]

    async def list_by_host(self, db: AsyncSession, host_id: str) -> list[Auction]:
        result = await db.execute(_LIST_BY_HOST_SQL, {"host_id": host_id})
        return [_row_to_auction(r) for r in result.fetchall()]

    async def list_by_participant(self, db: AsyncSession, user_id: str) -> list[Auction]:
        result = await db.execute(_LIST_BY_PARTICIPANT_SQL, {"user_id": user_id})
        return [_row_to_auction(r) for r in result.fetchall()]

    async def list_bids(self, db: AsyncSession, auction_id: str) -> list[Bid]:
        result = await db.execute(_LIST_BIDS_SQL, {"auction_id": auction_id})
        return [_row_to_bid(r) for r in result.fetchall()]

    async def get_bid_by_client_id(
        self, db: AsyncSession, bidder_id: str, client_bid_id: str
    ) -> Bid | None:
        result = await db.execute(
            _GET_BID_BY_CLIENT_ID_SQL,
            {"bidder_id": bidder_id, "client_bid_id": client_bid_id},
        )
        row = result.fetchone()
        return _row_to_bid(row) if row else None

    async def insert_bid(
        self,
        db: AsyncSession,
        auction_id: str,
        bidder_id: str,
        amount: Decimal,
        usd_value: Decimal | None,
        client_bid_id: str | None,
        created_at: datetime,
    ) -> Bid:
        result = await db.execute(
            _INSERT_BID_SQL,
            {
                "auction_id": auction_id,
                "bidder_id": bidder_id,
                "amount": amount,
                "usd_value": usd_value,
                "source": BidSource.MIRROR.value,
                "client_bid_id": client_bid_id,
                "created_at": created_at,
            },
        )
        return _row_to_bid(result.fetchone())

    async def raise_highest_bid(
        self, db: AsyncSession, auction_id: str, amount: Decimal, bidder_id: str
    ) -> bool:
        """Atomically raise highest_bid; False when it is already >= amount."""
        result = await db.execute(
            _RAISE_HIGHEST_BID_SQL,
            {"auction_id": auction_id, "amount": amount, "bidder_id": bidder_id},
        )
        return result.fetchone() is not None

    async def add_participant(self, db: AsyncSession, auction_id: str, user_id: str) -> bool:
        """Idempotent; True only the first time this user joins the auction."""
        result = await db.execute(
            _ADD_PARTICIPANT_SQL, {"auction_id": auction_id, "user_id": user_id}
        )
        return result.fetchone() is not None

    async def replace_bids(
        self, db: AsyncSession, auction_id: str, bids: list[ReplacementBid]
    ) -> None:
        """Swap the whole bid list (and participant set) for the ledger's."""
        params = {"auction_id": auction_id}
        await db.execute(_DELETE_BIDS_SQL, params)
        await db.execute(_DELETE_PARTICIPANTS_SQL, params)
        if bids:
            await db.execute(
                _INSERT_LEDGER_BID_SQL,
                [
                    {
                        "auction_id": auction_id,
                        "bidder_id": b.bidder_id,
                        "amount": b.amount,
                        "usd_value": b.usd_value,
                        "source": BidSource.LEDGER.value,
                        "created_at": b.created_at,
                    }
                    for b in bids
                ],
            )
            await db.execute(_REBUILD_PARTICIPANTS_SQL, params)

    async def mark_settled(
        self, db: AsyncSession, auction_id: str, outcome: SettlementOutcome
    ) -> bool:
        """Flip RUNNING -> ENDED with the winner; False if already ENDED."""
        result = await db.execute(
            _MARK_SETTLED_SQL,
            {
                "auction_id": auction_id,
                "ended_at": outcome.ended_at,
                "highest_bid": outcome.highest_bid,
                "highest_bidder_id": outcome.highest_bidder_id,
                "bid_count": outcome.bid_count,
                "winner_id": outcome.winner_id,
                "winning_amount": outcome.winning_amount,
                "winning_usd": outcome.winning_usd,
                "ranking_basis": outcome.ranking_basis,
            },
        )
        return result.fetchone() is not None
