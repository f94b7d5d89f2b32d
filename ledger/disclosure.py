"""
Multi-Token Ledger - Disclosure State Machine and Admin Gate

Each token id carries a lock flag. While locked, transfers only disclose the
public URI; once the admin unlocks an id, transfers also disclose the
private URI and the creators.

    Locked --unlock (admin)--> Unlocked
    Unlocked --mint (same id)--> Locked
"""

import logging
from typing import Dict, Optional, Sequence, Union

from .accounts import NULL_ACCOUNT, normalize_account, require_account, validate_token_id
from .exceptions import InvalidAccount, NotAdmin
from .schema import (
    DisclosureRecord, TransferSinglePrivate, TransferSinglePublic, Unlocked
)


class DisclosureStateMachine:
    """Per-token lock flag, URIs and creators."""
    
    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._records: Dict[int, DisclosureRecord] = {}
    
    def is_locked(self, token_id: int) -> bool:
        """Lock flag; ids that were never minted report locked."""
        record = self._records.get(validate_token_id(token_id))
        return True if record is None else record.locked
    
    def get_record(self, token_id: int) -> DisclosureRecord:
        """Copy of the record for a token id (default record if unknown)."""
        record = self._records.get(validate_token_id(token_id))
        if record is None:
            return DisclosureRecord()
        return record.snapshot()
    
    def on_mint(self, token_id: int, public_uri: str, private_uri: str) -> None:
        """Lock a token id and (re)set its URIs; creators are left untouched."""
        record = self._records.get(token_id)
        if record is None:
            record = DisclosureRecord()
            self._records[token_id] = record
        
        record.locked = True
        record.public_uri = public_uri
        record.private_uri = private_uri
    
    def unlock(self, token_id: int, creators: Sequence[str]) -> Unlocked:
        """Flip a token id to unlocked and record its creators."""
        token_id = validate_token_id(token_id)
        record = self._records.get(token_id)
        if record is None:
            # Never minted: the record is created already unlocked with empty URIs
            record = DisclosureRecord()
            self._records[token_id] = record
        
        record.locked = False
        record.creators = [normalize_account(c) for c in creators]
        
        self.logger.info(f"Token {token_id} unlocked with {len(record.creators)} creator(s)")
        
        return Unlocked(
            creators=tuple(record.creators),
            token_id=token_id,
            public_uri=record.public_uri,
            private_uri=record.private_uri,
        )
    
    def transfer_event(
        self,
        operator: str,
        from_: str,
        to: str,
        token_id: int,
        amount: int
    ) -> Union[TransferSinglePublic, TransferSinglePrivate]:
        """Select the transfer event variant for the current lock state."""
        record = self._records.get(token_id)
        
        if record is None or record.locked:
            return TransferSinglePublic(
                operator=operator,
                from_=from_,
                to=to,
                token_id=token_id,
                amount=amount,
                public_uri=record.public_uri if record else "",
            )
        
        return TransferSinglePrivate(
            operator=operator,
            from_=from_,
            to=to,
            token_id=token_id,
            amount=amount,
            creators=tuple(record.creators),
            public_uri=record.public_uri,
            private_uri=record.private_uri,
        )
    
    def snapshot(self) -> Dict[int, DisclosureRecord]:
        return {tid: record.snapshot() for tid, record in self._records.items()}
    
    def restore(self, snapshot: Dict[int, DisclosureRecord]) -> None:
        self._records = {tid: record.snapshot() for tid, record in snapshot.items()}


class AdminGate:
    """Single privileged account allowed to mutate disclosure state."""
    
    def __init__(self, admin: str, disclosure: DisclosureStateMachine):
        self.logger = logging.getLogger(__name__)
        self._admin = require_account(admin, message="Admin must not be the null identity")
        self.disclosure = disclosure
    
    def get_admin(self) -> str:
        return self._admin
    
    def is_admin(self, account: Optional[str]) -> bool:
        return normalize_account(account) == self._admin
    
    def require_admin(self, caller: str, action: str = "this action") -> None:
        """Raise NotAdmin unless caller is the current admin."""
        if not self.is_admin(caller):
            raise NotAdmin(f"Only the admin may perform {action}")
    
    def change_admin(self, caller: str, new_admin: str) -> str:
        """Hand the admin role to another account."""
        self.require_admin(caller, "changeAdmin")
        new_admin = normalize_account(new_admin)
        if new_admin == NULL_ACCOUNT:
            raise InvalidAccount("New admin must not be the null identity")
        
        previous, self._admin = self._admin, new_admin
        self.logger.info(f"Admin changed from {previous} to {new_admin}")
        return new_admin
    
    def unlock(self, caller: str, token_id: int, creators: Sequence[str]) -> Unlocked:
        """Admin-only Locked -> Unlocked transition."""
        self.require_admin(caller, "unlock")
        return self.disclosure.unlock(token_id, creators)
    
    def snapshot(self) -> str:
        return self._admin
    
    def restore(self, snapshot: str) -> None:
        self._admin = snapshot
