"""
Multi-Token Ledger - Event Log

Events are appended as operations run and handed to subscribers only once
the outermost operation commits. Events of a rolled-back operation are cut
from the log and never delivered.
"""

import logging
from typing import Callable, Iterator, List, Optional

from .schema import LedgerEvent


class EventLog:
    """Ordered log of emitted events with commit-time subscribers."""
    
    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._events: List[LedgerEvent] = []
        self._delivered = 0
        self._delivering = False
        self._subscribers: List[Callable[[LedgerEvent], None]] = []
    
    def subscribe(self, callback: Callable[[LedgerEvent], None]) -> None:
        """Add a callback invoked for each committed event."""
        self._subscribers.append(callback)
    
    def unsubscribe(self, callback: Callable[[LedgerEvent], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)
    
    def emit(self, event: LedgerEvent) -> None:
        self._events.append(event)
        self.logger.debug(f"{event.name}{event.args()}")
    
    def truncate(self, length: int) -> None:
        """Drop events recorded after the given log length."""
        del self._events[length:]
        self._delivered = min(self._delivered, length)
    
    def commit(self) -> int:
        """Deliver pending events to subscribers in log order; returns the number delivered."""
        if self._delivering:
            # Events emitted by a subscriber are drained by the outer delivery loop
            return 0
        
        delivered = 0
        self._delivering = True
        try:
            while self._delivered < len(self._events):
                event = self._events[self._delivered]
                self._delivered += 1
                delivered += 1
                
                for callback in list(self._subscribers):
                    try:
                        callback(event)
                    except Exception as e:
                        # Subscriber failures never affect ledger state
                        self.logger.error(f"Event subscriber failed on {event.name}: {e}")
        finally:
            self._delivering = False
        
        return delivered
    
    def events(self, name: Optional[str] = None) -> List[LedgerEvent]:
        """Recorded events, optionally filtered by event name."""
        if name is None:
            return self._events[:]
        return [event for event in self._events if event.name == name]
    
    def __len__(self) -> int:
        return len(self._events)
    
    def __iter__(self) -> Iterator[LedgerEvent]:
        return iter(self._events[:])
