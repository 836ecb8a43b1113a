"""
Lossless Auction

An escrow-based ascending auction house where every outbid bidder is
refunded immediately with a bonus:
- Auction registry with monotonic identifiers
- Bid processing with refund-plus-bonus to the previous bidder
- Settlement paying the seller the auction's escrow
- SQLite persistence of auction history
"""

__version__ = "0.1.0"
