"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  3xxx: Auction
  4xxx: Bid
  5xxx: Settlement
  9xxx: System / external dependencies
"""

from decimal import Decimal

from src.ah_common.enums import RejectionReason


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid wallet signature or nonce", 401)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class InvalidWalletAddressError(AppError):
    def __init__(self, wallet: str) -> None:
        super().__init__(1006, f"Invalid wallet address: {wallet}", 422)


class UserNotFoundError(AppError):
    def __init__(self, user_key: str) -> None:
        super().__init__(1007, f"User not found: {user_key}", 404)


# --- 3xxx: Auction ---

class AuctionNotFoundError(AppError):
    def __init__(self, auction_key: str) -> None:
        super().__init__(3001, f"Auction not found: {auction_key}", 404)


class AuctionExistsError(AppError):
    def __init__(self, auction_key: str) -> None:
        super().__init__(3002, f"Auction already registered: {auction_key}", 409)


# --- 4xxx: Bid ---

_REJECTION_CODES: dict[RejectionReason, int] = {
    RejectionReason.INVALID_AMOUNT: 4001,
    RejectionReason.AUCTION_ENDED: 4002,
    RejectionReason.BELOW_MINIMUM: 4003,
    RejectionReason.NOT_HIGH_ENOUGH: 4004,
}


class BidRejectedError(AppError):
    """Validator rejection. `message` is shown to the bidder as-is."""

    def __init__(self, reason: RejectionReason, message: str) -> None:
        self.reason = reason
        super().__init__(_REJECTION_CODES[reason], message, 422)


class DuplicateBidError(AppError):
    def __init__(self, client_bid_id: str) -> None:
        super().__init__(4005, f"Duplicate client_bid_id: {client_bid_id}", 409)


class BidRaceLostError(AppError):
    def __init__(self, amount: Decimal) -> None:
        super().__init__(
            4006,
            f"A higher bid was recorded while placing {amount}; refresh and retry",
            409,
        )


# --- 5xxx: Settlement ---

class NotHostError(AppError):
    def __init__(self) -> None:
        super().__init__(5001, "Only the auction host can end the auction", 403)


class StartsInFutureError(AppError):
    def __init__(self, auction_key: str) -> None:
        super().__init__(
            5002, f"Cannot end auction {auction_key}: it has not started yet", 422
        )


class AlreadySettledError(AppError):
    def __init__(self, auction_key: str) -> None:
        super().__init__(5003, f"Auction {auction_key} is already settled", 409)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class LedgerUnavailableError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9003, f"Ledger read failed: {detail}", 503)


class PriceUnavailableError(Exception):
    """Raised by price oracles; never escapes the normalizer."""


class IdentityLookupError(Exception):
    """Raised by identity providers; never escapes the resolver."""
