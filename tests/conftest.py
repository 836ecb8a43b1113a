"""
Shared fixtures: a manual clock, a token, an auction house and funded
participants.
"""

import pytest

from lossless.core.auction import AuctionHouse
from lossless.core.clock import ManualClock
from lossless.core.token import TokenLedger
from lossless.crypto import generate_keypair

INITIAL_BALANCE = 10_000
DAY = 86_400


def fund(token, house, who, amount=INITIAL_BALANCE, allowance=None):
    """Mint tokens to who and approve the house to spend them."""
    token.mint(who, amount)
    token.approve(who, house.address, amount if allowance is None else allowance)


@pytest.fixture
def clock():
    return ManualClock(start=1_000_000)


@pytest.fixture
def token():
    return TokenLedger(symbol="TST")


@pytest.fixture
def house(clock, token):
    return AuctionHouse(clock=clock, tokens=[token])


@pytest.fixture
def seller():
    return generate_keypair().address


@pytest.fixture
def alice(token, house):
    address = generate_keypair().address
    fund(token, house, address)
    return address


@pytest.fixture
def bob(token, house):
    address = generate_keypair().address
    fund(token, house, address)
    return address


@pytest.fixture
def carol(token, house):
    address = generate_keypair().address
    fund(token, house, address)
    return address


@pytest.fixture
def auction_id(house, token, seller):
    """A one-day auction with starting bid 100."""
    return house.create_auction(seller, token, starting_bid=100, duration=DAY)


@pytest.fixture
def make_bidder(token, house):
    """Factory for funded bidders: make_bidder(amount=INITIAL_BALANCE)."""
    def _make(amount=INITIAL_BALANCE, allowance=None):
        address = generate_keypair().address
        fund(token, house, address, amount, allowance)
        return address
    return _make
