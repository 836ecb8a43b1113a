"""
Checked uint256 arithmetic for escrow accounting.

Python integers never overflow, but the token ledger's amounts live in the
uint256 domain. Every money calculation in the auction house goes through
these helpers so a value outside [0, 2**256) is rejected instead of being
silently carried along.
"""

from lossless.core.errors import NumericOverflow

UINT256_MAX = 2**256 - 1


def ensure_uint256(value: int, name: str = "value") -> int:
    """Return value unchanged if it is a uint256, else raise NumericOverflow."""
    if value < 0 or value > UINT256_MAX:
        raise NumericOverflow(f"{name} out of uint256 range: {value}")
    return value


def checked_add(a: int, b: int) -> int:
    return ensure_uint256(a + b, "sum")


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise NumericOverflow(f"Underflow: {a} - {b}")
    return a - b


def checked_mul(a: int, b: int) -> int:
    return ensure_uint256(a * b, "product")


def mul_div_floor(value: int, numerator: int, denominator: int) -> int:
    """
    floor(value * numerator / denominator) with the intermediate product
    checked, matching integer-division semantics of the token ledger.
    """
    if denominator <= 0:
        raise NumericOverflow(f"Invalid denominator: {denominator}")
    return checked_mul(value, numerator) // denominator


__all__ = [
    "UINT256_MAX",
    "ensure_uint256",
    "checked_add",
    "checked_sub",
    "checked_mul",
    "mul_div_floor",
]
