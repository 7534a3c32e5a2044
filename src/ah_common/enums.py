"""Global enums: stored values must match DB CHECK constraints exactly."""

from enum import Enum


class AuctionStatus(str, Enum):
    """Persisted status column. RUNNING until settled, then ENDED forever."""

    RUNNING = "RUNNING"
    ENDED = "ENDED"


class AuctionPhase(str, Enum):
    """Derived lifecycle phase: status column + clock."""

    UPCOMING = "UPCOMING"
    RUNNING = "RUNNING"
    ENDING = "ENDING"  # past end_time, settlement pending
    ENDED = "ENDED"


class BidSource(str, Enum):
    MIRROR = "MIRROR"  # recorded by bid ingestion, reported by the client
    LEDGER = "LEDGER"  # rebuilt from the contract during settlement


class RejectionReason(str, Enum):
    INVALID_AMOUNT = "INVALID_AMOUNT"
    AUCTION_ENDED = "AUCTION_ENDED"
    BELOW_MINIMUM = "BELOW_MINIMUM"
    NOT_HIGH_ENOUGH = "NOT_HIGH_ENOUGH"


class RankingBasis(str, Enum):
    """How a settlement picked its winner."""

    USD = "USD"
    AMOUNT = "AMOUNT"
