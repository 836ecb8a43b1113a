"""
Tests for bid processing.

Tests cover:
1. Precondition order and error kinds
2. Refund-plus-bonus to the outbid bidder
3. Escrow accounting
4. All-or-nothing behaviour on token failures
"""

import pytest

from lossless.core.auction import BidPlaced, BidRefunded
from lossless.core.errors import (
    AuctionAlreadyEnded,
    AuctionNotActive,
    AuctionNotFound,
    BidTooLow,
    InvalidParameter,
    NumericOverflow,
    SellerCannotBid,
)
from lossless.core.token import InsufficientAllowance, InsufficientBalance, TokenError

DAY = 86_400


class TestPreconditions:
    """Each failed precondition raises its own error."""

    def test_unknown_auction(self, house, alice):
        with pytest.raises(AuctionNotFound):
            house.place_bid(99, alice, 100)

    def test_after_deadline(self, house, auction_id, alice, clock):
        clock.advance(DAY)
        with pytest.raises(AuctionAlreadyEnded):
            house.place_bid(auction_id, alice, 100)

    def test_seller_cannot_bid(self, house, auction_id, seller, token):
        token.mint(seller, 10**9)
        token.approve(seller, house.address, 10**9)

        with pytest.raises(SellerCannotBid):
            house.place_bid(auction_id, seller, 10**9)

    def test_first_bid_below_starting_bid(self, house, auction_id, alice):
        with pytest.raises(BidTooLow) as exc_info:
            house.place_bid(auction_id, alice, 99)
        assert exc_info.value.minimum == 100

    def test_outbid_below_margin(self, house, auction_id, alice, bob):
        house.place_bid(auction_id, alice, 100)
        with pytest.raises(BidTooLow) as exc_info:
            house.place_bid(auction_id, bob, 110)
        assert exc_info.value.minimum == 111

    def test_zero_and_negative_bids_are_too_low(self, house, auction_id, alice):
        for amount in (0, -100):
            with pytest.raises(BidTooLow):
                house.place_bid(auction_id, alice, amount)

    def test_inactive_checked_before_deadline(self, house, auction_id, alice, clock):
        """A settled auction reports not-active even though its deadline passed."""
        clock.advance(DAY)
        house.end_auction(auction_id)
        with pytest.raises(AuctionNotActive):
            house.place_bid(auction_id, alice, 100)

    def test_deadline_checked_before_seller(self, house, auction_id, seller, clock):
        clock.advance(DAY)
        with pytest.raises(AuctionAlreadyEnded):
            house.place_bid(auction_id, seller, 100)

    def test_seller_checked_before_amount(self, house, auction_id, seller):
        with pytest.raises(SellerCannotBid):
            house.place_bid(auction_id, seller, 1)

    def test_non_integer_amount(self, house, auction_id, alice):
        for amount in (100.0, "100", True):
            with pytest.raises(InvalidParameter):
                house.place_bid(auction_id, alice, amount)

    def test_amount_beyond_uint256(self, house, auction_id, alice):
        with pytest.raises(NumericOverflow):
            house.place_bid(auction_id, alice, 2**256)


class TestFirstBid:
    """Tests for the first bid on an auction."""

    def test_first_bid_escrowed(self, house, auction_id, alice, token):
        house.place_bid(auction_id, alice, 100)

        record = house.get_auction(auction_id)
        assert record.current_bid == 100
        assert record.current_bidder == alice
        assert record.escrow == 100
        assert record.bid_count == 1
        assert token.balance_of(alice) == 9_900
        assert token.balance_of(house.address) == 100

    def test_first_bid_above_minimum(self, house, auction_id, alice):
        house.place_bid(auction_id, alice, 5_000)
        assert house.escrow_of(auction_id) == 5_000

    def test_first_bid_emits_only_bid_placed(self, house, auction_id, alice):
        house.place_bid(auction_id, alice, 100)

        assert house.events.events_for(auction_id)[-1] == BidPlaced(
            auction_id=auction_id, bidder=alice, bid_amount=100
        )
        assert house.events.of_kind(BidRefunded) == []


class TestOutbid:
    """Tests for refunds with bonus."""

    def test_outbid_refunds_principal_plus_bonus(self, house, auction_id, alice, bob, token):
        house.place_bid(auction_id, alice, 100)
        house.place_bid(auction_id, bob, 111)

        # bonus = floor(111 * 10 / 100) = 11
        assert token.balance_of(alice) == 10_000 - 100 + 111
        assert token.balance_of(bob) == 10_000 - 111

    def test_outbid_escrow(self, house, auction_id, alice, bob, token):
        """escrow' = escrow + new_bid - (old_bid + bonus) = 100 + 111 - 111."""
        house.place_bid(auction_id, alice, 100)
        house.place_bid(auction_id, bob, 111)

        assert house.escrow_of(auction_id) == 100
        assert token.balance_of(house.address) == 100

    def test_outbid_with_large_raise(self, house, auction_id, alice, bob, token):
        house.place_bid(auction_id, alice, 100)
        house.place_bid(auction_id, bob, 200)

        # bonus 20, refund 120, escrow 100 + 200 - 120
        assert token.balance_of(alice) == 10_020
        assert house.escrow_of(auction_id) == 180

    def test_three_bidders(self, house, auction_id, alice, bob, carol, token):
        house.place_bid(auction_id, alice, 100)
        house.place_bid(auction_id, bob, 111)
        house.place_bid(auction_id, carol, 123)

        # bonus floor(123 * 10 / 100) = 12, bob receives 111 + 12
        assert token.balance_of(bob) == 10_000 - 111 + 123
        assert house.escrow_of(auction_id) == 100
        record = house.get_auction(auction_id)
        assert record.current_bidder == carol
        assert record.current_bid == 123
        assert record.bid_count == 3

    def test_outbid_emits_refund_event(self, house, auction_id, alice, bob):
        house.place_bid(auction_id, alice, 100)
        house.place_bid(auction_id, bob, 111)

        assert house.events.of_kind(BidRefunded) == [
            BidRefunded(auction_id=auction_id, bidder=alice, principal=100, bonus=11)
        ]
        assert house.events.events_for(auction_id)[-2] == BidPlaced(
            auction_id=auction_id, bidder=bob, bid_amount=111
        )

    def test_current_bidder_can_raise(self, house, auction_id, alice, token):
        """Raising your own bid refunds yourself with the bonus."""
        house.place_bid(auction_id, alice, 100)
        house.place_bid(auction_id, alice, 111)

        assert token.balance_of(alice) == 10_000 - 100 - 111 + 111
        assert house.get_auction(auction_id).current_bidder == alice


class TestAllOrNothing:
    """Token failures leave no trace."""

    def test_insufficient_allowance(self, house, auction_id, make_bidder, token):
        bidder = make_bidder(amount=1_000, allowance=50)

        with pytest.raises(InsufficientAllowance):
            house.place_bid(auction_id, bidder, 100)

        assert house.get_auction(auction_id).current_bid == 0
        assert token.balance_of(bidder) == 1_000

    def test_insufficient_balance(self, house, auction_id, make_bidder, token):
        bidder = make_bidder(amount=50, allowance=1_000)

        with pytest.raises(InsufficientBalance):
            house.place_bid(auction_id, bidder, 100)

        record = house.get_auction(auction_id)
        assert record.current_bidder is None
        assert record.escrow == 0
        assert token.allowance(bidder, house.address) == 1_000

    def test_failed_bid_keeps_previous_bidder(self, house, auction_id, alice, make_bidder, token):
        house.place_bid(auction_id, alice, 100)
        poor = make_bidder(amount=10, allowance=1_000)

        with pytest.raises(InsufficientBalance):
            house.place_bid(auction_id, poor, 111)

        record = house.get_auction(auction_id)
        assert record.current_bidder == alice
        assert record.current_bid == 100
        assert record.escrow == 100
        assert token.balance_of(alice) == 9_900

    def test_failed_refund_returns_deposit(self, house, auction_id, alice, bob, token, monkeypatch):
        """If paying the outbid bidder fails, the new deposit goes back."""
        house.place_bid(auction_id, alice, 100)

        original_transfer = token.transfer

        def transfer(sender, to, amount):
            if to == alice:
                raise TokenError("recipient frozen")
            return original_transfer(sender, to, amount)

        monkeypatch.setattr(token, "transfer", transfer)

        with pytest.raises(TokenError, match="recipient frozen"):
            house.place_bid(auction_id, bob, 111)

        assert token.balance_of(bob) == 10_000
        assert token.allowance(bob, house.address) == 10_000
        assert token.balance_of(alice) == 9_900
        assert token.balance_of(house.address) == 100
        record = house.get_auction(auction_id)
        assert record.current_bidder == alice
        assert record.escrow == 100
        assert len(house.events.of_kind(BidPlaced)) == 1

        # With the refund path healthy again the same bid goes through
        monkeypatch.undo()
        house.place_bid(auction_id, bob, 111)
        assert token.allowance(bob, house.address) == 10_000 - 111
        assert house.get_auction(auction_id).current_bidder == bob


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
