"""
Multi-Token Ledger

Fungible and semi-fungible balances for many token ids under one ledger,
with operator delegation, atomic batch operations, a receiver acceptance
handshake and admin-gated disclosure of private token metadata.
"""

from .accounts import NULL_ACCOUNT, MAX_UINT256, normalize_account, is_null

from .exceptions import (
    LedgerError,
    InvalidAccount,
    InvalidRecipient,
    LengthMismatch,
    InsufficientBalance,
    Unauthorized,
    SelfApproval,
    NotAdmin,
    InvalidAmount,
    InvalidTokenId,
    InvalidArgument,
    BalanceOverflow,
    ReentrantCall,
    ReceiverRejected,
    ReceiverIncompatible,
    ReceiverRejection,
)

from .schema import (
    IssuancePolicy,
    LedgerSettings,
    DisclosureRecord,
    LedgerEvent,
    ApprovalForAll,
    TransferSinglePublic,
    TransferSinglePrivate,
    TransferBatchPublic,
    Unlocked,
)

from .receivers import (
    RECEIVED_MARKER,
    BATCH_RECEIVED_MARKER,
    TokenReceiver,
    TokenHolder,
)

from .ledger import (
    MultiTokenLedger,
    INTERFACE_ERC165,
    INTERFACE_MULTI_TOKEN,
    INTERFACE_METADATA_URI,
)

__version__ = "0.1.0"

__all__ = [
    "NULL_ACCOUNT",
    "MAX_UINT256",
    "normalize_account",
    "is_null",
    "LedgerError",
    "InvalidAccount",
    "InvalidRecipient",
    "LengthMismatch",
    "InsufficientBalance",
    "Unauthorized",
    "SelfApproval",
    "NotAdmin",
    "InvalidAmount",
    "InvalidTokenId",
    "InvalidArgument",
    "BalanceOverflow",
    "ReentrantCall",
    "ReceiverRejected",
    "ReceiverIncompatible",
    "ReceiverRejection",
    "IssuancePolicy",
    "LedgerSettings",
    "DisclosureRecord",
    "LedgerEvent",
    "ApprovalForAll",
    "TransferSinglePublic",
    "TransferSinglePrivate",
    "TransferBatchPublic",
    "Unlocked",
    "RECEIVED_MARKER",
    "BATCH_RECEIVED_MARKER",
    "TokenReceiver",
    "TokenHolder",
    "MultiTokenLedger",
    "INTERFACE_ERC165",
    "INTERFACE_MULTI_TOKEN",
    "INTERFACE_METADATA_URI",
]
