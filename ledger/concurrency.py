"""
Multi-Token Ledger - Concurrency Control

Top-level operations are serialized with a re-entrant lock so a receiver
callback running on the same thread can call back into the ledger while
other threads wait. The optional re-entrancy guard turns such nested
mutating calls into ReentrantCall errors instead.
"""

import threading
import time
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from .exceptions import ReentrantCall


class OperationMetrics:
    """Counters for guarded operations."""
    
    def __init__(self):
        self.operation_count = 0
        self.reentrant_count = 0
        self.rejected_count = 0
        self.total_wait_time = 0.0
        self.max_wait_time = 0.0
    
    def record_acquisition(self, wait_time: float, reentrant: bool) -> None:
        self.operation_count += 1
        self.total_wait_time += wait_time
        self.max_wait_time = max(self.max_wait_time, wait_time)
        if reentrant:
            self.reentrant_count += 1
    
    def get_average_wait_time(self) -> float:
        if self.operation_count == 0:
            return 0.0
        return self.total_wait_time / self.operation_count


class OperationGuard:
    """Serializes mutating operations and tracks the active call stack."""
    
    def __init__(self, name: str = "ledger", reject_reentry: bool = False):
        self.name = name
        self.reject_reentry = reject_reentry
        self._lock = threading.RLock()
        self._active: List[str] = []
        self._metrics = OperationMetrics()
    
    @property
    def active_operation(self) -> Optional[str]:
        """Innermost operation in progress on the lock-holding thread."""
        return self._active[-1] if self._active else None
    
    @contextmanager
    def mutation(self, operation: str):
        """Hold the operation lock for the duration of a mutating call."""
        start_time = time.time()
        with self._lock:
            reentrant = bool(self._active)
            if reentrant and self.reject_reentry:
                self._metrics.rejected_count += 1
                raise ReentrantCall(
                    f"{operation} re-entered {self.name} while {self._active[-1]} is in progress"
                )
            
            self._metrics.record_acquisition(time.time() - start_time, reentrant)
            self._active.append(operation)
            try:
                yield
            finally:
                self._active.pop()
    
    @contextmanager
    def reading(self):
        """Hold the operation lock for a query so it never sees a half-applied mutation."""
        with self._lock:
            yield
    
    def get_metrics(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'name': self.name,
                'active_operations': list(self._active),
                'operation_count': self._metrics.operation_count,
                'reentrant_count': self._metrics.reentrant_count,
                'rejected_count': self._metrics.rejected_count,
                'average_wait_time': self._metrics.get_average_wait_time(),
                'max_wait_time': self._metrics.max_wait_time,
            }
