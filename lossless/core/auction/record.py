"""
Auction record - the state of a single auction.

Created once by the registry, mutated only by bidding and settlement, never
deleted.
"""

from dataclasses import dataclass
from typing import Optional

from lossless.crypto import bytes_to_hex


@dataclass
class AuctionRecord:
    """
    One auction.

    Attributes:
        auction_id: Registry identifier (0, 1, 2, ...)
        seller: Creator address, immutable
        asset: Address of the token the auction is denominated in, immutable
        starting_bid: Minimum value of the first bid, immutable
        end_time: Deadline in seconds, immutable
        created_at: Creation time in seconds
        current_bid: Highest accepted bid, 0 until the first bid
        current_bidder: Highest bidder, None until the first bid
        active: True until settlement, False forever after
        escrow: Tokens held by the house for this auction
        bid_count: Number of accepted bids
    """
    auction_id: int
    seller: bytes
    asset: bytes
    starting_bid: int
    end_time: int
    created_at: int
    current_bid: int = 0
    current_bidder: Optional[bytes] = None
    active: bool = True
    escrow: int = 0
    bid_count: int = 0

    def is_open_at(self, now: int) -> bool:
        return self.active and now < self.end_time

    def time_remaining_at(self, now: int) -> int:
        return max(0, self.end_time - now)

    def to_dict(self) -> dict:
        """Display form used by the CLI."""
        return {
            "auction_id": self.auction_id,
            "seller": bytes_to_hex(self.seller),
            "asset": bytes_to_hex(self.asset),
            "starting_bid": self.starting_bid,
            "current_bid": self.current_bid,
            "current_bidder": bytes_to_hex(self.current_bidder) if self.current_bidder else None,
            "end_time": self.end_time,
            "created_at": self.created_at,
            "active": self.active,
            "escrow": self.escrow,
            "bid_count": self.bid_count,
        }
