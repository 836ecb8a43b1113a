"""Fungible token ledger used as the auction asset"""
from lossless.core.token.ledger import (
    Token,
    TokenLedger,
    TokenError,
    InsufficientBalance,
    InsufficientAllowance,
)

__all__ = [
    "Token",
    "TokenLedger",
    "TokenError",
    "InsufficientBalance",
    "InsufficientAllowance",
]
