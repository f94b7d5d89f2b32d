"""
Multi-Token Ledger - Account and Value Helpers

Accounts are opaque strings. The null identity marks "no account" and is
never a valid holder or recipient.
"""

from collections.abc import Iterable
from typing import Any, List, Optional, Sequence

from .exceptions import (
    InvalidAccount, InvalidAmount, InvalidArgument, InvalidTokenId, LengthMismatch
)


NULL_ACCOUNT = "0x" + "0" * 40

MAX_UINT256 = 2 ** 256 - 1


def normalize_account(account: Optional[str]) -> str:
    """Return the canonical form of an account identity."""
    if not account:
        return NULL_ACCOUNT
    if not isinstance(account, str):
        raise InvalidAccount(f"Account must be a string, got {type(account).__name__}")
    if account.startswith("0x"):
        return account.lower()
    return account


def is_null(account: Optional[str]) -> bool:
    """Check whether an account is the null identity."""
    return normalize_account(account) == NULL_ACCOUNT


def require_account(account: Optional[str], error=InvalidAccount, message: str = None) -> str:
    """Normalize an account and reject the null identity."""
    normalized = normalize_account(account)
    if normalized == NULL_ACCOUNT:
        raise error(message or "ERC1155: address zero is not a valid owner")
    return normalized


def _check_uint256(value, error, label: str) -> int:
    # bool is an int subclass but never a valid quantity
    if isinstance(value, bool) or not isinstance(value, int):
        raise error(f"{label} must be an integer, got {value!r}")
    if value < 0 or value > MAX_UINT256:
        raise error(f"{label} {value} is outside the unsigned 256-bit range")
    return value


def validate_amount(amount) -> int:
    """Validate a token amount."""
    return _check_uint256(amount, InvalidAmount, "Amount")


def validate_token_id(token_id) -> int:
    """Validate a token identifier."""
    return _check_uint256(token_id, InvalidTokenId, "Token id")


def require_same_length(*sequences: Sequence, message: str = None) -> None:
    """Raise LengthMismatch unless all sequences have equal length."""
    lengths = {len(seq) for seq in sequences}
    if len(lengths) > 1:
        if message:
            raise LengthMismatch(message)
        raise LengthMismatch()


def as_list(values: Sequence, label: str = "argument") -> List:
    """Copy a sequence argument so later caller mutations cannot leak in."""
    # A string is iterable but never a list of accounts, ids or URIs
    if isinstance(values, (str, bytes, bytearray)) or not isinstance(values, Iterable):
        raise InvalidArgument(f"{label} must be a sequence, got {type(values).__name__}")
    return list(values)


def validate_data(data: Any) -> bytes:
    """Opaque callback payload; None means empty."""
    if data is None:
        return b""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise InvalidArgument(f"data must be bytes, got {type(data).__name__}")
    return bytes(data)
