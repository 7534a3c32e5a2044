"""Fixtures over the in-memory fakes in tests/unit/fakes.py."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from src.ah_auction.domain.locks import AuctionLockRegistry
from src.ah_auction.domain.models import Auction, NewAuction
from src.ah_identity.application.resolver import IdentityResolver
from src.ah_pricing.application.normalizer import PriceNormalizer
from tests.unit.fakes import (
    HOST,
    USDC,
    FakeClock,
    FakeSession,
    InMemoryAuctionRepository,
    InMemoryUserRepository,
    StaticOracle,
)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def users() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def repo(users: InMemoryUserRepository) -> InMemoryAuctionRepository:
    return InMemoryAuctionRepository(users)


@pytest.fixture
def db(users: InMemoryUserRepository, repo: InMemoryAuctionRepository) -> FakeSession:
    return FakeSession(users, repo)


@pytest.fixture
def locks() -> AuctionLockRegistry:
    return AuctionLockRegistry()


@pytest.fixture
def normalizer() -> PriceNormalizer:
    """Stable tokens need no oracle; anything else is priced at 2 USD."""
    return PriceNormalizer(oracle=StaticOracle(Decimal("2")))


@pytest.fixture
def resolver() -> IdentityResolver:
    return IdentityResolver(client=None)


@pytest.fixture
def make_auction(users, repo, db, clock):
    """Register an auction running from 1h ago to 1h from now (by default)."""

    async def _make(
        key: str = "auction-1",
        token: str = USDC,
        currency: str = "USDC",
        minimum_bid: Decimal = Decimal("100"),
        start_offset: timedelta = timedelta(hours=-1),
        end_offset: timedelta = timedelta(hours=1),
        host: str = HOST,
    ) -> Auction:
        host_user = await users.get_or_create(db, host)
        created = await repo.create(
            db,
            NewAuction(
                ledger_auction_id=key,
                name=f"Auction {key}",
                token_address=token,
                currency=currency,
                minimum_bid=minimum_bid,
                start_time=clock.now + start_offset,
                end_time=clock.now + end_offset,
                host_id=host_user.id,
            ),
        )
        assert created is not None
        return created

    return _make
