"""
Lossless Auction Module.

Escrowed ascending auctions where outbid bidders are refunded immediately
with a bonus.
"""

from lossless.core.auction.record import AuctionRecord
from lossless.core.auction.events import (
    AuctionEvent,
    AuctionCreated,
    BidPlaced,
    BidRefunded,
    AuctionEnded,
    EventLog,
)
from lossless.core.auction.guard import ReentrancyGuard
from lossless.core.auction.house import AuctionHouse, AuctionResult

__all__ = [
    "AuctionRecord",
    "AuctionEvent",
    "AuctionCreated",
    "BidPlaced",
    "BidRefunded",
    "AuctionEnded",
    "EventLog",
    "ReentrancyGuard",
    "AuctionHouse",
    "AuctionResult",
]
