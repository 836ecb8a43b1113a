from dataclasses import astuple
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from lossless.core.auction.events import AuctionEvent
from lossless.core.auction.record import AuctionRecord
from lossless.core.storage.sqlite_adapter import SQLiteAdapter
from lossless.utils.logger import get_logger

logger = get_logger("storage.manager")

NEXT_AUCTION_ID_KEY = "next_auction_id"


class StorageManager:
    """
    Manages persistent storage for an auction house.

    Coordinates data persistence using SQLite adapter.
    Handles:
    - Auction records (kept forever for historical queries)
    - The event log
    - Metadata (identifier counter)
    """

    def __init__(self, data_dir: Path, db_name: str = "auctions.db"):
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / db_name
        self.adapter = SQLiteAdapter(self.db_path)

        logger.info(f"StorageManager initialized at {self.db_path}")

    # =========================================================================
    # House State
    # =========================================================================

    def get_next_auction_id(self) -> int:
        value = self.adapter.get_meta(NEXT_AUCTION_ID_KEY)
        return int(value) if value is not None else 0

    # =========================================================================
    # Auctions
    # =========================================================================

    def get_auction(self, auction_id: int) -> Optional[AuctionRecord]:
        row = self.adapter.get_auction(auction_id)
        return AuctionRecord(*row) if row else None

    def load_auctions(self) -> List[AuctionRecord]:
        """Load every auction record ordered by id."""
        return [AuctionRecord(*row) for row in self.adapter.get_all_auctions()]

    # =========================================================================
    # Events
    # =========================================================================

    def load_events(self, auction_id: Optional[int] = None) -> List[AuctionEvent]:
        return [AuctionEvent.from_dict(payload) for payload in self.adapter.get_events(auction_id)]

    # =========================================================================
    # Updates
    # =========================================================================

    def persist_update(
        self,
        records: Sequence[AuctionRecord],
        events: Sequence[AuctionEvent],
        next_auction_id: Optional[int] = None,
    ):
        """Atomically persist changed records, new events and the id counter."""
        meta: List[Tuple[str, str]] = []
        if next_auction_id is not None:
            meta.append((NEXT_AUCTION_ID_KEY, str(next_auction_id)))

        self.adapter.persist_auction_update(
            [astuple(record) for record in records],
            [(event.auction_id, event.kind, event.to_dict()) for event in events],
            meta,
        )

    def close(self):
        self.adapter.close()
