"""
Multi-Token Ledger - Schema Models

This module defines the Pydantic models for ledger settings, per-token
disclosure records and the event records emitted to off-chain consumers.
Event fields are declared in their wire order; `args()` returns them as a
tuple in exactly that order.
"""

from enum import Enum
from typing import Any, ClassVar, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .accounts import NULL_ACCOUNT, normalize_account


class IssuancePolicy(str, Enum):
    """Who may call mint and burn entry points."""
    OPEN = "open"
    ADMIN = "admin"


class LedgerSettings(BaseModel):
    """Construction-time settings for a ledger instance."""
    
    admin: str = Field(..., description="Initial admin account")
    contract_uri: str = Field(default="", description="Shared metadata URI returned for every token id")
    issuance_policy: IssuancePolicy = Field(default=IssuancePolicy.OPEN)
    reentrancy_guard: bool = Field(default=False, description="Reject mutating calls that re-enter the ledger")
    
    @field_validator('admin')
    @classmethod
    def validate_admin(cls, v):
        """Admin must be a real account."""
        v = normalize_account(v)
        if v == NULL_ACCOUNT:
            raise ValueError('Admin must not be the null identity')
        return v


class DisclosureRecord(BaseModel):
    """Per-token disclosure state."""
    
    locked: bool = Field(default=True)
    public_uri: str = Field(default="")
    private_uri: str = Field(default="")
    creators: List[str] = Field(default_factory=list)
    
    def snapshot(self) -> "DisclosureRecord":
        """Return an independent copy of this record."""
        return self.model_copy(update={'creators': self.creators[:]})


class LedgerEvent(BaseModel):
    """Base class for emitted events."""
    
    model_config = ConfigDict(frozen=True, populate_by_name=True)
    
    name: ClassVar[str] = "LedgerEvent"
    
    def args(self) -> Tuple[Any, ...]:
        """Event fields in declaration order."""
        return tuple(getattr(self, field) for field in type(self).model_fields)
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert event to a JSON-friendly dictionary."""
        data = {'event': self.name}
        for key, value in self.model_dump(by_alias=True).items():
            data[key] = list(value) if isinstance(value, tuple) else value
        return data


class ApprovalForAll(LedgerEvent):
    name: ClassVar[str] = "ApprovalForAll"
    
    owner: str
    operator: str
    approved: bool


class TransferSinglePublic(LedgerEvent):
    name: ClassVar[str] = "TransferSinglePublic"
    
    operator: str
    from_: str = Field(..., alias="from")
    to: str
    token_id: int = Field(..., ge=0)
    amount: int = Field(..., ge=0)
    public_uri: str


class TransferSinglePrivate(LedgerEvent):
    name: ClassVar[str] = "TransferSinglePrivate"
    
    operator: str
    from_: str = Field(..., alias="from")
    to: str
    token_id: int = Field(..., ge=0)
    amount: int = Field(..., ge=0)
    creators: Tuple[str, ...]
    public_uri: str
    private_uri: str


class TransferBatchPublic(LedgerEvent):
    name: ClassVar[str] = "TransferBatchPublic"
    
    operator: str
    from_: str = Field(..., alias="from")
    to: str
    token_ids: Tuple[int, ...]
    amounts: Tuple[int, ...]
    public_uris: Tuple[str, ...]


class Unlocked(LedgerEvent):
    name: ClassVar[str] = "Unlocked"
    
    creators: Tuple[str, ...]
    token_id: int = Field(..., ge=0)
    public_uri: str
    private_uri: str
