"""
Multi-Token Ledger - Journal

Snapshot and rollback of the whole ledger state. Every mutating entry point
runs inside a frame; if anything inside the frame raises, the state captured
when the frame opened is restored before the exception propagates. Frames
nest, so a failure in an outer operation also undoes re-entrant operations
that completed inside it.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Tuple

from .approvals import ApprovalRegistry
from .balances import BalanceStore
from .disclosure import AdminGate, DisclosureStateMachine
from .events import EventLog
from .schema import DisclosureRecord


@dataclass
class LedgerSnapshot:
    """Copy of all mutable ledger state."""
    balances: Dict[str, Dict]
    approvals: Dict[Tuple[str, str], bool]
    disclosure: Dict[int, DisclosureRecord]
    admin: str
    event_count: int


class Journal:
    """Transactional frames over ledger components."""
    
    def __init__(
        self,
        balances: BalanceStore,
        approvals: ApprovalRegistry,
        disclosure: DisclosureStateMachine,
        admin_gate: AdminGate,
        event_log: EventLog
    ):
        self.logger = logging.getLogger(__name__)
        self.balances = balances
        self.approvals = approvals
        self.disclosure = disclosure
        self.admin_gate = admin_gate
        self.event_log = event_log
        self._depth = 0
        self.rollback_count = 0
    
    @property
    def depth(self) -> int:
        """Number of open frames."""
        return self._depth
    
    def capture(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            balances=self.balances.snapshot(),
            approvals=self.approvals.snapshot(),
            disclosure=self.disclosure.snapshot(),
            admin=self.admin_gate.snapshot(),
            event_count=len(self.event_log),
        )
    
    def restore(self, snapshot: LedgerSnapshot) -> None:
        self.balances.restore(snapshot.balances)
        self.approvals.restore(snapshot.approvals)
        self.disclosure.restore(snapshot.disclosure)
        self.admin_gate.restore(snapshot.admin)
        self.event_log.truncate(snapshot.event_count)
        self.rollback_count += 1
    
    @contextmanager
    def frame(self, operation: str):
        """Run a block all-or-nothing; commits events when the outermost frame closes."""
        snapshot = self.capture()
        self._depth += 1
        
        try:
            yield
        except BaseException as e:
            self._depth -= 1
            self.restore(snapshot)
            self.logger.warning(f"{operation} rolled back at depth {self._depth}: {e!r}")
            raise
        
        self._depth -= 1
        if self._depth == 0:
            delivered = self.event_log.commit()
            self.logger.debug(f"{operation} committed ({delivered} event(s))")
