"""
Multi-Token Ledger - Balance Store

Per-token, per-account balances with underflow and overflow protection,
plus per-token total supply which only mint and burn move.
"""

import logging
from typing import Dict, List, Sequence

from .accounts import (
    MAX_UINT256, require_account, require_same_length, validate_token_id
)
from .exceptions import BalanceOverflow, InsufficientBalance


class BalanceStore:
    """Integer balances keyed by token id, then account."""
    
    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._balances: Dict[int, Dict[str, int]] = {}
        self._supply: Dict[int, int] = {}
    
    def balance_of(self, account: str, token_id: int) -> int:
        """Get the balance of an account for one token id."""
        account = require_account(account)
        token_id = validate_token_id(token_id)
        return self._balances.get(token_id, {}).get(account, 0)
    
    def balance_of_batch(self, accounts: Sequence[str], token_ids: Sequence[int]) -> List[int]:
        """Pointwise balance lookup preserving input order."""
        require_same_length(accounts, token_ids, message="ERC1155: accounts and ids length mismatch")
        return [
            self.balance_of(account, token_id)
            for account, token_id in zip(accounts, token_ids)
        ]
    
    def total_supply(self, token_id: int) -> int:
        """Sum of all balances for a token id."""
        return self._supply.get(validate_token_id(token_id), 0)
    
    def exists(self, token_id: int) -> bool:
        """Whether any amount of the token id is in circulation."""
        return self.total_supply(token_id) > 0
    
    def holders(self, token_id: int) -> Dict[str, int]:
        """Non-zero balances for a token id."""
        return {
            account: amount
            for account, amount in self._balances.get(token_id, {}).items()
            if amount > 0
        }
    
    def token_ids(self) -> List[int]:
        """Token ids that have ever held a balance."""
        return sorted(self._balances.keys())
    
    def debit(self, account: str, token_id: int, amount: int) -> int:
        """Subtract from a balance; fails rather than going negative."""
        available = self._balances.get(token_id, {}).get(account, 0)
        if available < amount:
            raise InsufficientBalance(required=amount, available=available)
        self._balances.setdefault(token_id, {})[account] = available - amount
        self.logger.debug(f"Debited {amount} of token {token_id} from {account}")
        return available - amount
    
    def credit(self, account: str, token_id: int, amount: int) -> int:
        """Add to a balance; fails rather than exceeding the uint256 range."""
        current = self._balances.get(token_id, {}).get(account, 0)
        if current + amount > MAX_UINT256:
            raise BalanceOverflow(f"Balance of {account} for token {token_id} would overflow")
        self._balances.setdefault(token_id, {})[account] = current + amount
        self.logger.debug(f"Credited {amount} of token {token_id} to {account}")
        return current + amount
    
    def move(self, from_: str, to: str, token_id: int, amount: int) -> None:
        """Debit one account and credit another as a unit."""
        self.debit(from_, token_id, amount)
        self.credit(to, token_id, amount)
    
    def increase_supply(self, token_id: int, amount: int) -> None:
        supply = self._supply.get(token_id, 0)
        if supply + amount > MAX_UINT256:
            raise BalanceOverflow(f"Total supply of token {token_id} would overflow")
        self._supply[token_id] = supply + amount
    
    def decrease_supply(self, token_id: int, amount: int) -> None:
        self._supply[token_id] = self._supply.get(token_id, 0) - amount
    
    def snapshot(self) -> Dict[str, Dict]:
        """Copy all balances and supplies for rollback."""
        return {
            'balances': {tid: dict(accounts) for tid, accounts in self._balances.items()},
            'supply': dict(self._supply),
        }
    
    def restore(self, snapshot: Dict[str, Dict]) -> None:
        """Restore balances and supplies from a snapshot."""
        self._balances = {tid: dict(accounts) for tid, accounts in snapshot['balances'].items()}
        self._supply = dict(snapshot['supply'])
