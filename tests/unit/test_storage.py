"""
Unit tests for events and SQLite storage.
"""

import pytest

from lossless.core.auction import (
    AuctionCreated,
    AuctionEnded,
    AuctionEvent,
    AuctionRecord,
    BidPlaced,
    BidRefunded,
    EventLog,
)
from lossless.core.storage import StorageManager
from lossless.crypto import address_from_name

SELLER = address_from_name("seller")
ALICE = address_from_name("alice")
ASSET = address_from_name("token:TST")


@pytest.fixture
def storage(tmp_path):
    manager = StorageManager(tmp_path / "data")
    yield manager
    manager.close()


def _record(auction_id=0, **overrides):
    fields = dict(
        auction_id=auction_id,
        seller=SELLER,
        asset=ASSET,
        starting_bid=100,
        end_time=2_000,
        created_at=1_000,
    )
    fields.update(overrides)
    return AuctionRecord(**fields)


class TestEvents:
    """Tests for event serialization and the event log."""

    def test_to_dict_uses_hex_and_decimal_strings(self):
        event = BidPlaced(auction_id=3, bidder=ALICE, bid_amount=2**200)
        data = event.to_dict()

        assert data["kind"] == "bid_placed"
        assert data["auction_id"] == 3
        assert data["bidder"].startswith("0x")
        assert data["bid_amount"] == str(2**200)

    def test_from_dict_restores_every_kind(self):
        events = [
            AuctionCreated(auction_id=0, seller=SELLER, starting_bid=100, end_time=5),
            BidPlaced(auction_id=0, bidder=ALICE, bid_amount=100),
            BidRefunded(auction_id=0, bidder=ALICE, principal=100, bonus=11),
            AuctionEnded(auction_id=0, winner=None, winning_bid=0, payout=0),
        ]
        assert [AuctionEvent.from_dict(e.to_dict()) for e in events] == events

    def test_event_log_subscribers(self):
        log = EventLog()
        seen = []
        log.subscribe(seen.append)

        first = BidPlaced(auction_id=1, bidder=ALICE, bid_amount=1)
        second = BidPlaced(auction_id=2, bidder=ALICE, bid_amount=2)
        log.emit(first)
        log.emit(second)

        assert seen == [first, second]
        assert log.events_for(2) == [second]
        assert len(log) == 2


class TestStorageManager:
    """Tests for auction persistence."""

    def test_empty_store(self, storage):
        assert storage.load_auctions() == []
        assert storage.load_events() == []
        assert storage.get_next_auction_id() == 0
        assert storage.get_auction(0) is None

    def test_record_roundtrip_with_large_amounts(self, storage):
        record = _record(current_bid=2**255, current_bidder=ALICE, escrow=2**254, bid_count=7)
        storage.persist_update([record], [], next_auction_id=1)

        assert storage.get_auction(0) == record
        assert storage.get_next_auction_id() == 1

    def test_update_replaces_record(self, storage):
        record = _record()
        storage.persist_update([record], [])
        record.active = False
        storage.persist_update([record], [])

        loaded = storage.load_auctions()
        assert len(loaded) == 1
        assert loaded[0].active is False
        assert loaded[0].current_bidder is None

    def test_events_in_order_and_by_auction(self, storage):
        events = [
            AuctionCreated(auction_id=0, seller=SELLER, starting_bid=100, end_time=5),
            AuctionCreated(auction_id=1, seller=SELLER, starting_bid=50, end_time=5),
            BidPlaced(auction_id=0, bidder=ALICE, bid_amount=100),
        ]
        storage.persist_update([], events)

        assert storage.load_events() == events
        assert storage.load_events(0) == [events[0], events[2]]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
