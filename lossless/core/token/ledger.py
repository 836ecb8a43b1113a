"""
Token Ledger - fungible token accounts with the allowance model.

Conceptual Background:
---------------------
Each auction is denominated in one fungible token. The auction house never
keeps balances of its own; it moves tokens through the ledger:

1. **transfer_from**: pull a bid from the bidder into the house account,
   spending an allowance the bidder granted with ``approve``.
2. **transfer**: push a refund (or the seller's payout) out of the house
   account.
3. **transfer_back**: undo a transfer_from when a bid cannot complete,
   re-granting the allowance it spent.
4. **balance_of**: read a balance, used to cross-check escrow accounting.

Every method either applies completely or raises; there are no partial
transfers.
"""

from collections import defaultdict
from typing import Dict, Optional, Protocol, Tuple, runtime_checkable

from lossless.crypto import address_from_name, short_address
from lossless.utils.logger import get_logger

logger = get_logger("token")


# =============================================================================
# Errors
# =============================================================================


class TokenError(Exception):
    """Base class for token ledger failures."""


class InsufficientBalance(TokenError):
    """Sender balance is lower than the transfer amount."""

    def __init__(self, owner: bytes, balance: int, amount: int):
        self.owner = owner
        self.balance = balance
        self.amount = amount
        super().__init__(f"Insufficient balance for {short_address(owner)}: {balance} < {amount}")


class InsufficientAllowance(TokenError):
    """Spender has not been approved for the transfer amount."""

    def __init__(self, owner: bytes, spender: bytes, allowance: int, amount: int):
        self.owner = owner
        self.spender = spender
        self.allowance = allowance
        self.amount = amount
        super().__init__(
            f"Insufficient allowance {short_address(owner)} -> {short_address(spender)}: "
            f"{allowance} < {amount}"
        )


# =============================================================================
# Interface
# =============================================================================


@runtime_checkable
class Token(Protocol):
    """The subset of a token ledger the auction house depends on."""

    address: bytes

    def transfer(self, sender: bytes, to: bytes, amount: int) -> None:
        ...

    def transfer_from(self, spender: bytes, owner: bytes, to: bytes, amount: int) -> None:
        ...

    def transfer_back(self, spender: bytes, owner: bytes, amount: int) -> None:
        ...

    def balance_of(self, owner: bytes) -> int:
        ...


# =============================================================================
# In-process ledger
# =============================================================================


class TokenLedger:
    """
    In-memory fungible token.

    Attributes:
        symbol: Ticker used in logs
        address: 20-byte identifier of this token
        balances: owner -> balance
        allowances: (owner, spender) -> remaining allowance
    """

    def __init__(self, symbol: str = "LSS", address: Optional[bytes] = None):
        self.symbol = symbol
        self.address = address or address_from_name(f"token:{symbol}")
        self.balances: Dict[bytes, int] = defaultdict(int)
        self.allowances: Dict[Tuple[bytes, bytes], int] = defaultdict(int)
        self._total_supply = 0

    # =========================================================================
    # Reads
    # =========================================================================

    def balance_of(self, owner: bytes) -> int:
        return self.balances.get(owner, 0)

    def allowance(self, owner: bytes, spender: bytes) -> int:
        return self.allowances.get((owner, spender), 0)

    @property
    def total_supply(self) -> int:
        return self._total_supply

    # =========================================================================
    # Writes
    # =========================================================================

    def mint(self, to: bytes, amount: int) -> None:
        """Create new tokens (test and demo setup)."""
        if amount < 0:
            raise ValueError(f"Mint amount must be non-negative, got {amount}")
        self.balances[to] += amount
        self._total_supply += amount
        logger.debug(f"{self.symbol}: minted {amount} to {short_address(to)}")

    def approve(self, owner: bytes, spender: bytes, amount: int) -> None:
        """Set the allowance of spender over owner's tokens."""
        if amount < 0:
            raise ValueError(f"Allowance must be non-negative, got {amount}")
        self.allowances[(owner, spender)] = amount

    def transfer(self, sender: bytes, to: bytes, amount: int) -> None:
        """Move amount from sender's own balance to to."""
        self._move(sender, to, amount)

    def transfer_from(self, spender: bytes, owner: bytes, to: bytes, amount: int) -> None:
        """Move amount from owner to to, spending spender's allowance."""
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise InsufficientAllowance(owner, spender, allowed, amount)
        # Balance is checked before the allowance is consumed
        self._check_balance(owner, amount)
        self.allowances[(owner, spender)] = allowed - amount
        self._move(owner, to, amount)

    def transfer_back(self, spender: bytes, owner: bytes, amount: int) -> None:
        """
        Return amount that spender pulled from owner with transfer_from.

        The tokens move from spender back to owner and the allowance they
        consumed is re-granted.
        """
        self._move(spender, owner, amount)
        self.allowances[(owner, spender)] += amount

    def _check_balance(self, owner: bytes, amount: int) -> None:
        balance = self.balance_of(owner)
        if balance < amount:
            raise InsufficientBalance(owner, balance, amount)

    def _move(self, sender: bytes, to: bytes, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Transfer amount must be non-negative, got {amount}")
        self._check_balance(sender, amount)
        self.balances[sender] -= amount
        self.balances[to] += amount
        logger.debug(
            f"{self.symbol}: {short_address(sender)} -> {short_address(to)} amount={amount}"
        )

    def __repr__(self) -> str:
        return f"TokenLedger(symbol={self.symbol}, holders={len(self.balances)}, supply={self._total_supply})"


__all__ = [
    "Token",
    "TokenLedger",
    "TokenError",
    "InsufficientBalance",
    "InsufficientAllowance",
]
