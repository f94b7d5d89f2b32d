"""
Multi-Token Ledger - Exceptions

This module defines the error taxonomy raised by ledger entry points. Every
error aborts the whole invocation; the journal restores any state touched
before the failure.
"""

from typing import Optional


class LedgerError(Exception):
    """Base exception for all ledger errors."""
    pass


class InvalidAccount(LedgerError):
    """Raised when the null identity is used where an account is required."""
    pass


class InvalidRecipient(InvalidAccount):
    """Raised when the null identity is used as a recipient."""
    pass


class LengthMismatch(LedgerError):
    """Raised when parallel sequence arguments differ in length."""
    
    def __init__(self, message: str = "ERC1155: ids and amounts length mismatch"):
        super().__init__(message)


class InsufficientBalance(LedgerError):
    """Raised when a debit would drive a balance below zero."""
    
    def __init__(self, required: int, available: int, message: str = None):
        self.required = required
        self.available = available
        if message is None:
            message = f"ERC1155: insufficient balance (required {required}, available {available})"
        super().__init__(message)


class Unauthorized(LedgerError):
    """Raised when the caller is neither the owner nor an approved operator."""
    pass


class SelfApproval(LedgerError):
    """Raised when an owner tries to approve itself as operator."""
    
    def __init__(self, message: str = "ERC1155: setting approval status for self"):
        super().__init__(message)


class NotAdmin(LedgerError):
    """Raised when an admin-only action is attempted by another account."""
    pass


class InvalidAmount(LedgerError):
    """Raised for amounts that are not unsigned 256-bit integers."""
    pass


class InvalidTokenId(LedgerError):
    """Raised for token ids that are not unsigned 256-bit integers."""
    pass


class BalanceOverflow(LedgerError):
    """Raised when a credit would exceed the maximum representable balance."""
    pass


class InvalidArgument(LedgerError):
    """Raised when an argument has the wrong shape, such as a string where a list is expected."""
    pass


class ReentrantCall(LedgerError):
    """Raised by the re-entrancy guard when a mutating call re-enters."""
    pass


class ReceiverRejected(LedgerError):
    """Raised when a receiver callback ran but did not accept the tokens."""
    
    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(reason or "ERC1155: ERC1155Receiver rejected tokens")


class ReceiverIncompatible(LedgerError):
    """Raised when the recipient does not implement the receiver callbacks."""
    
    def __init__(self, message: str = "ERC1155: transfer to non ERC1155Receiver implementer"):
        super().__init__(message)


class ReceiverRejection(LedgerError):
    """Raised by receiver implementations to refuse tokens with a reason."""
    pass
