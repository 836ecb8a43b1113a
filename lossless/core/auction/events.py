"""
Auction events and the sink that records them.

Events are emitted after a state change has been fully applied, so an
observer never sees a change that was later rolled back.
"""

from dataclasses import asdict, dataclass, field
from typing import Callable, ClassVar, Dict, List, Optional

from lossless.crypto import bytes_to_hex, hex_to_bytes
from lossless.utils.logger import get_logger

logger = get_logger("events")


# =============================================================================
# Event Types
# =============================================================================


@dataclass(frozen=True)
class AuctionEvent:
    """Base for everything the auction house emits."""
    kind: ClassVar[str] = "event"

    auction_id: int

    def to_dict(self) -> dict:
        """JSON-friendly form: addresses as hex, amounts as decimal strings."""
        data = {}
        for key, value in asdict(self).items():
            if isinstance(value, bytes):
                data[key] = bytes_to_hex(value)
            elif isinstance(value, int) and key != "auction_id":
                data[key] = str(value)
            else:
                data[key] = value
        data["kind"] = self.kind
        return data

    @staticmethod
    def from_dict(data: dict) -> "AuctionEvent":
        cls = EVENT_TYPES[data["kind"]]
        kwargs = {}
        for key, value in data.items():
            if key == "kind":
                continue
            if key in _ADDRESS_FIELDS:
                kwargs[key] = hex_to_bytes(value) if value is not None else None
            elif key in _AMOUNT_FIELDS:
                kwargs[key] = int(value)
            else:
                kwargs[key] = value
        return cls(**kwargs)


@dataclass(frozen=True)
class AuctionCreated(AuctionEvent):
    kind: ClassVar[str] = "auction_created"

    seller: bytes
    starting_bid: int
    end_time: int


@dataclass(frozen=True)
class BidPlaced(AuctionEvent):
    kind: ClassVar[str] = "bid_placed"

    bidder: bytes
    bid_amount: int


@dataclass(frozen=True)
class BidRefunded(AuctionEvent):
    """Outbid bidder received their principal plus bonus."""
    kind: ClassVar[str] = "bid_refunded"

    bidder: bytes
    principal: int
    bonus: int


@dataclass(frozen=True)
class AuctionEnded(AuctionEvent):
    """Settlement result. winner is None when nobody bid."""
    kind: ClassVar[str] = "auction_ended"

    winner: Optional[bytes]
    winning_bid: int
    payout: int


EVENT_TYPES: Dict[str, type] = {
    cls.kind: cls for cls in (AuctionCreated, BidPlaced, BidRefunded, AuctionEnded)
}

_ADDRESS_FIELDS = {"seller", "bidder", "winner"}
_AMOUNT_FIELDS = {"starting_bid", "end_time", "bid_amount", "principal", "bonus", "winning_bid", "payout"}


# =============================================================================
# Event Log
# =============================================================================


Listener = Callable[[AuctionEvent], None]


@dataclass
class EventLog:
    """
    Ordered record of emitted events plus synchronous subscribers.

    Attributes:
        history: Every event in emission order
        listeners: Callbacks invoked for each new event
    """
    history: List[AuctionEvent] = field(default_factory=list)
    listeners: List[Listener] = field(default_factory=list)

    def subscribe(self, listener: Listener) -> None:
        self.listeners.append(listener)

    def emit(self, event: AuctionEvent) -> None:
        self.history.append(event)
        logger.debug(f"{event.kind}: auction={event.auction_id}")
        for listener in self.listeners:
            listener(event)

    def events_for(self, auction_id: int) -> List[AuctionEvent]:
        return [e for e in self.history if e.auction_id == auction_id]

    def of_kind(self, event_type: type) -> List[AuctionEvent]:
        return [e for e in self.history if isinstance(e, event_type)]

    def __len__(self) -> int:
        return len(self.history)
