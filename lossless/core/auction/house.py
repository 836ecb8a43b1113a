"""
Auction House - lossless ascending auctions with escrow.

Conceptual Background:
---------------------
Every bid is escrowed by the house. When a bid is outbid, the house refunds
it immediately together with a bonus, paid out of the new bid:

1. **Minimum bid**: the first bid must reach the starting bid; every later
   bid must exceed the current one by at least 11%.
2. **Refund**: the outbid bidder receives their principal plus a bonus of
   10% of the new bid.
3. **Escrow**: what stays behind. After a bid with a predecessor,
   ``escrow' = escrow + new_bid - (old_bid + bonus)``; after the first bid,
   ``escrow' = new_bid``.
4. **Settlement**: after the deadline the seller receives the escrow.

The escrow is tracked per auction rather than read from the house's token
balance, so auctions sharing one token never pay out each other's funds.

All-or-nothing:
--------------
Every precondition is checked before the first token movement. If the
refund leg of a bid fails after the deposit leg succeeded, the deposit is
returned together with the allowance it spent, and the original error is
re-raised. Record fields change only
after all token movements have succeeded.
"""

import threading
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

from lossless.core.auction.arith import (
    checked_add,
    checked_sub,
    ensure_uint256,
    mul_div_floor,
)
from lossless.core.auction.events import (
    AuctionCreated,
    AuctionEnded,
    AuctionEvent,
    BidPlaced,
    BidRefunded,
    EventLog,
)
from lossless.core.auction.guard import ReentrancyGuard
from lossless.core.auction.record import AuctionRecord
from lossless.core.clock import Clock, SystemClock
from lossless.core.config import AuctionConfig
from lossless.core.errors import (
    AuctionAlreadyEnded,
    AuctionNotActive,
    AuctionNotFound,
    BidTooLow,
    EscrowInsolvent,
    InvalidParameter,
    NotYetEnded,
    SellerCannotBid,
)
from lossless.core.token.ledger import Token
from lossless.crypto import address_from_name, bytes_to_hex, short_address
from lossless.utils.logger import get_logger
from lossless.utils.validation import validate_address, validate_positive_amount

if TYPE_CHECKING:
    from lossless.core.storage.storage_manager import StorageManager

logger = get_logger("auction")


@dataclass(frozen=True)
class AuctionResult:
    """Outcome of a settlement."""
    auction_id: int
    seller: bytes
    winner: Optional[bytes]
    winning_bid: int
    payout: int

    @property
    def has_winner(self) -> bool:
        return self.winner is not None


class AuctionHouse:
    """
    Registry, bid processor and settlement for lossless auctions.

    Attributes:
        address: The house's own account on every token ledger (escrow)
        config: Bid economics
        clock: Time source
        events: Event sink
        auctions: auction_id -> AuctionRecord
        tokens: token address -> token ledger
    """

    def __init__(
        self,
        address: Optional[bytes] = None,
        config: Optional[AuctionConfig] = None,
        clock: Optional[Clock] = None,
        tokens: Iterable[Token] = (),
        storage_manager: Optional["StorageManager"] = None,
        events: Optional[EventLog] = None,
    ):
        """
        Initialize the auction house.

        Args:
            address: Escrow account address. Defaults to a fixed derived address.
            config: Bid economics. Defaults to 10% bonus / 11% increment.
            clock: Time source. Defaults to wall-clock seconds.
            tokens: Token ledgers auctions may be denominated in
            storage_manager: Persistence manager. None = in-memory only.
            events: Event sink. A fresh EventLog if omitted.
        """
        self.address = address or address_from_name("auction-house")
        self.config = config or AuctionConfig()
        self.clock = clock or SystemClock()
        self.events = events or EventLog()

        self.auctions: Dict[int, AuctionRecord] = {}
        self.tokens: Dict[bytes, Token] = {}
        self._next_id = 0

        # Identifier allocation and insertion happen under one lock
        self._registry_lock = threading.Lock()
        self._guard = ReentrancyGuard()

        self.storage_manager = storage_manager

        for token in tokens:
            self.register_token(token)

        if storage_manager:
            self._load_from_storage()

    # =========================================================================
    # Assets
    # =========================================================================

    def register_token(self, token: Token) -> None:
        """Make a token ledger available as an auction asset."""
        if not isinstance(token, Token):
            raise InvalidParameter(f"Not a token ledger: {type(token).__name__}")
        registered = self.tokens.get(token.address)
        if registered is not None and registered is not token:
            # Open auctions hold escrow on the ledger already registered
            raise InvalidParameter(
                f"Another token ledger is already registered at {bytes_to_hex(token.address)}"
            )
        self.tokens[token.address] = token

    def _token_for(self, record: AuctionRecord) -> Token:
        token = self.tokens.get(record.asset)
        if token is None:
            raise InvalidParameter(
                f"Asset {bytes_to_hex(record.asset)} of auction {record.auction_id} is not registered"
            )
        return token

    # =========================================================================
    # Registry
    # =========================================================================

    def create_auction(
        self,
        seller: bytes,
        asset: Token,
        starting_bid: int,
        duration: int,
    ) -> int:
        """
        Open a new auction.

        Args:
            seller: Seller address
            asset: Token ledger the auction is denominated in
            starting_bid: Minimum first bid, > 0
            duration: Seconds until the deadline, > 0

        Returns:
            The new auction id

        Raises:
            InvalidParameter: bad seller, asset, starting bid or duration
        """
        for valid, err in (
            validate_address(seller, "seller"),
            validate_positive_amount(starting_bid, "starting_bid"),
            validate_positive_amount(duration, "duration"),
        ):
            if not valid:
                raise InvalidParameter(err)

        self.register_token(asset)

        with self._registry_lock:
            now = self.clock.now()
            auction_id = self._next_id
            record = AuctionRecord(
                auction_id=auction_id,
                seller=bytes(seller),
                asset=asset.address,
                starting_bid=starting_bid,
                end_time=checked_add(now, duration),
                created_at=now,
            )
            event = AuctionCreated(
                auction_id=auction_id,
                seller=record.seller,
                starting_bid=starting_bid,
                end_time=record.end_time,
            )
            self._persist([record], [event], next_auction_id=auction_id + 1)
            self.auctions[auction_id] = record
            self._next_id = auction_id + 1

        logger.info(
            f"Auction {auction_id} created: seller={short_address(seller)}, "
            f"starting_bid={starting_bid}, end_time={record.end_time}"
        )
        self.events.emit(event)
        return auction_id

    def get_auction(self, auction_id: int) -> AuctionRecord:
        """Snapshot of an auction record. Raises AuctionNotFound."""
        return replace(self._require(auction_id))

    def minimum_bid(self, auction_id: int) -> int:
        """Smallest acceptable next bid."""
        return self._minimum_bid(self._require(auction_id))

    def is_open(self, auction_id: int) -> bool:
        """Whether the auction currently accepts bids."""
        return self._require(auction_id).is_open_at(self.clock.now())

    def time_remaining(self, auction_id: int) -> int:
        """Seconds until the deadline, 0 once it has passed."""
        return self._require(auction_id).time_remaining_at(self.clock.now())

    def escrow_of(self, auction_id: int) -> int:
        """Tokens currently held for this auction."""
        return self._require(auction_id).escrow

    def list_auctions(self) -> List[AuctionRecord]:
        """Snapshots of every auction, settled ones included, in id order."""
        return [replace(self.auctions[i]) for i in sorted(self.auctions)]

    @property
    def auction_count(self) -> int:
        return len(self.auctions)

    def _require(self, auction_id: int) -> AuctionRecord:
        record = self.auctions.get(auction_id)
        if record is None:
            raise AuctionNotFound(auction_id)
        return record

    def _require_active(self, auction_id: int) -> AuctionRecord:
        record = self._require(auction_id)
        if not record.active:
            raise AuctionNotActive(auction_id)
        return record

    def _minimum_bid(self, record: AuctionRecord) -> int:
        if record.current_bid == 0:
            return record.starting_bid
        increment = mul_div_floor(
            record.current_bid,
            self.config.min_increment_percent,
            self.config.percent_base,
        )
        return checked_add(record.current_bid, increment)

    def _bonus_for(self, bid_amount: int) -> int:
        return mul_div_floor(bid_amount, self.config.bonus_percent, self.config.percent_base)

    # =========================================================================
    # Bidding
    # =========================================================================

    def place_bid(self, auction_id: int, bidder: bytes, bid_amount: int) -> None:
        """
        Place a bid, refunding the previous bidder with a bonus.

        Preconditions are checked in order:
        1. auction exists and is active      (AuctionNotActive / AuctionNotFound)
        2. deadline not reached               (AuctionAlreadyEnded)
        3. bidder is not the seller           (SellerCannotBid)
        4. bid_amount >= minimum_bid          (BidTooLow)

        Token ledger errors (balance, allowance) propagate unchanged.

        Raises:
            ReentrantCall: when invoked from inside another guarded operation
        """
        with self._guard.enter("place_bid"):
            valid, err = validate_address(bidder, "bidder")
            if not valid:
                raise InvalidParameter(err)
            if not isinstance(bid_amount, int) or isinstance(bid_amount, bool):
                raise InvalidParameter(f"bid_amount must be int, got {type(bid_amount).__name__}")

            record = self._require_active(auction_id)

            now = self.clock.now()
            if now >= record.end_time:
                raise AuctionAlreadyEnded(auction_id, record.end_time, now)

            if bytes(bidder) == record.seller:
                raise SellerCannotBid(auction_id)

            minimum = self._minimum_bid(record)
            if bid_amount < minimum:
                raise BidTooLow(auction_id, bid_amount, minimum)
            ensure_uint256(bid_amount, "bid_amount")

            token = self._token_for(record)
            previous_bidder = record.current_bidder
            previous_bid = record.current_bid

            # Everything is computed before the first token movement
            bonus = 0
            refund = 0
            held = checked_add(record.escrow, bid_amount)
            if previous_bidder is not None:
                bonus = self._bonus_for(bid_amount)
                refund = checked_add(previous_bid, bonus)
                if refund > held:
                    raise EscrowInsolvent(auction_id, held, refund)
            new_escrow = checked_sub(held, refund)

            token.transfer_from(self.address, bytes(bidder), self.address, bid_amount)

            if previous_bidder is not None:
                try:
                    token.transfer(self.address, previous_bidder, refund)
                except Exception:
                    logger.warning(
                        f"Refund to {short_address(previous_bidder)} failed on auction "
                        f"{auction_id}; returning deposit of {bid_amount}"
                    )
                    token.transfer_back(self.address, bytes(bidder), bid_amount)
                    raise

            record.current_bid = bid_amount
            record.current_bidder = bytes(bidder)
            record.escrow = new_escrow
            record.bid_count += 1

            emitted: List[AuctionEvent] = [
                BidPlaced(auction_id=auction_id, bidder=record.current_bidder, bid_amount=bid_amount)
            ]
            if previous_bidder is not None:
                emitted.append(
                    BidRefunded(
                        auction_id=auction_id,
                        bidder=previous_bidder,
                        principal=previous_bid,
                        bonus=bonus,
                    )
                )
            self._persist([record], emitted)

        logger.debug(
            f"Bid on auction {auction_id}: bidder={short_address(bidder)}, amount={bid_amount}, "
            f"refund={refund}, escrow={new_escrow}"
        )
        for event in emitted:
            self.events.emit(event)

    # =========================================================================
    # Settlement
    # =========================================================================

    def end_auction(self, auction_id: int) -> AuctionResult:
        """
        Close an auction after its deadline and pay the seller its escrow.

        A second call raises AuctionNotActive; the seller is never paid twice.

        Raises:
            AuctionNotActive: unknown or already settled auction
            NotYetEnded: deadline not reached
        """
        with self._guard.enter("end_auction"):
            record = self._require_active(auction_id)

            now = self.clock.now()
            if now < record.end_time:
                raise NotYetEnded(auction_id, record.end_time, now)

            winner = record.current_bidder
            payout = 0
            if winner is not None:
                payout = record.escrow
                self._token_for(record).transfer(self.address, record.seller, payout)

            record.active = False
            record.escrow = 0

            result = AuctionResult(
                auction_id=auction_id,
                seller=record.seller,
                winner=winner,
                winning_bid=record.current_bid if winner is not None else 0,
                payout=payout,
            )
            event = AuctionEnded(
                auction_id=auction_id,
                winner=winner,
                winning_bid=result.winning_bid,
                payout=payout,
            )
            self._persist([record], [event])

        if winner is None:
            logger.info(f"Auction {auction_id} ended with no bids")
        else:
            logger.info(
                f"Auction {auction_id} ended: winner={short_address(winner)}, "
                f"winning_bid={result.winning_bid}, seller payout={payout}"
            )
        self.events.emit(event)
        return result

    # =========================================================================
    # Solvency
    # =========================================================================

    def check_solvency(self) -> Tuple[bool, str]:
        """
        Cross-check tracked escrow against the house's token balances.

        For every asset, the house must hold at least the escrow of its
        active auctions.

        Returns:
            (is_solvent, error_message)
        """
        owed: Dict[bytes, int] = {}
        for record in self.auctions.values():
            if record.active:
                owed[record.asset] = owed.get(record.asset, 0) + record.escrow

        for asset, amount in owed.items():
            token = self.tokens.get(asset)
            if token is None:
                return False, f"Asset {bytes_to_hex(asset)} not registered"
            balance = token.balance_of(self.address)
            if balance < amount:
                return False, f"Asset {bytes_to_hex(asset)}: balance {balance} < escrow {amount}"

        return True, ""

    # =========================================================================
    # Persistence
    # =========================================================================

    def _persist(
        self,
        records: List[AuctionRecord],
        events: List[AuctionEvent],
        next_auction_id: Optional[int] = None,
    ) -> None:
        if self.storage_manager:
            self.storage_manager.persist_update(records, events, next_auction_id)

    def _load_from_storage(self) -> None:
        """Restore records, the id counter and event history."""
        for record in self.storage_manager.load_auctions():
            self.auctions[record.auction_id] = record

        self._next_id = max(
            self.storage_manager.get_next_auction_id(),
            max(self.auctions, default=-1) + 1,
        )
        self.events.history.extend(self.storage_manager.load_events())

        logger.info(
            f"Loaded auction house: {len(self.auctions)} auctions, "
            f"{len(self.events)} events, next_id={self._next_id}"
        )

    # =========================================================================
    # Utility
    # =========================================================================

    def __repr__(self) -> str:
        active = sum(1 for r in self.auctions.values() if r.active)
        return f"AuctionHouse(auctions={len(self.auctions)}, active={active})"

    def stats(self) -> dict:
        """Get auction house statistics."""
        records = self.auctions.values()
        return {
            "total_auctions": len(self.auctions),
            "active_auctions": sum(1 for r in records if r.active),
            "settled_auctions": sum(1 for r in records if not r.active),
            "total_bids": sum(r.bid_count for r in records),
            "total_escrow": sum(r.escrow for r in records if r.active),
            "next_auction_id": self._next_id,
        }
