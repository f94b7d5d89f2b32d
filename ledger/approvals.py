"""
Multi-Token Ledger - Approval Registry

Owner -> operator delegation flags. An approved operator may move any of
the owner's tokens.
"""

import logging
from typing import Dict, List, Tuple

from .accounts import normalize_account
from .exceptions import SelfApproval


class ApprovalRegistry:
    """Per-owner, per-operator boolean delegation flags."""
    
    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._approvals: Dict[Tuple[str, str], bool] = {}
    
    def set_approval_for_all(self, owner: str, operator: str, approved: bool) -> None:
        """Record whether operator may act for owner."""
        owner = normalize_account(owner)
        operator = normalize_account(operator)
        if owner == operator:
            raise SelfApproval()
        
        if approved:
            self._approvals[(owner, operator)] = True
        else:
            self._approvals.pop((owner, operator), None)
        
        self.logger.debug(f"Approval {owner} -> {operator} set to {approved}")
    
    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return self._approvals.get((normalize_account(owner), normalize_account(operator)), False)
    
    def operators_of(self, owner: str) -> List[str]:
        """Operators currently approved by an owner."""
        owner = normalize_account(owner)
        return sorted(op for (own, op), flag in self._approvals.items() if own == owner and flag)
    
    def snapshot(self) -> Dict[Tuple[str, str], bool]:
        return dict(self._approvals)
    
    def restore(self, snapshot: Dict[Tuple[str, str], bool]) -> None:
        self._approvals = dict(snapshot)
