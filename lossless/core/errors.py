"""
Auction error taxonomy.

Every precondition failure has its own exception class so a caller can tell
"too low" from "already ended" from "insufficient funds". Token ledger
failures are not wrapped; they propagate as raised by the ledger.
"""

from typing import Optional


class AuctionError(Exception):
    """Base class for all auction house failures."""


class InvalidParameter(AuctionError):
    """Bad creation arguments or configuration values."""


class AuctionNotActive(AuctionError):
    """Operating on an auction that is settled (or does not exist)."""

    def __init__(self, auction_id: int, message: Optional[str] = None):
        self.auction_id = auction_id
        super().__init__(message or f"Auction {auction_id} is not active")


class AuctionNotFound(AuctionNotActive):
    """Unknown auction identifier."""

    def __init__(self, auction_id: int):
        super().__init__(auction_id, f"Auction {auction_id} not found")


class AuctionAlreadyEnded(AuctionError):
    """Bid arrived at or after the deadline but before settlement."""

    def __init__(self, auction_id: int, end_time: int, now: int):
        self.auction_id = auction_id
        self.end_time = end_time
        self.now = now
        super().__init__(f"Auction {auction_id} ended at {end_time} (now {now})")


class NotYetEnded(AuctionError):
    """Settlement attempted before the deadline."""

    def __init__(self, auction_id: int, end_time: int, now: int):
        self.auction_id = auction_id
        self.end_time = end_time
        self.now = now
        super().__init__(f"Auction {auction_id} runs until {end_time} (now {now})")


class BidTooLow(AuctionError):
    """Bid is below the minimum acceptable amount."""

    def __init__(self, auction_id: int, amount: int, minimum: int):
        self.auction_id = auction_id
        self.amount = amount
        self.minimum = minimum
        super().__init__(f"Bid {amount} on auction {auction_id} below minimum {minimum}")


class SellerCannotBid(AuctionError):
    """The seller tried to bid on their own auction."""

    def __init__(self, auction_id: int):
        self.auction_id = auction_id
        super().__init__(f"Seller cannot bid on auction {auction_id}")


class ReentrantCall(AuctionError):
    """A guarded operation was entered while another one was executing."""


class EscrowInsolvent(AuctionError):
    """The refund owed to the outbid bidder exceeds the funds in escrow."""

    def __init__(self, auction_id: int, available: int, required: int):
        self.auction_id = auction_id
        self.available = available
        self.required = required
        super().__init__(
            f"Auction {auction_id} escrow cannot cover refund: {available} < {required}"
        )


class NumericOverflow(AuctionError):
    """Arithmetic left the uint256 domain."""
