"""
Multi-Token Ledger - Acceptance Protocol

Recipients come in two variants: plain accounts, which accept anything
without a call, and programmable accounts, which have a receiver object
registered in the ReceiverDirectory. A programmable recipient must answer
the received callback with the expected acceptance marker.

Failure classification:
- wrong return value            -> ReceiverRejected (generic reason)
- LedgerError raised by receiver -> ReceiverRejected (receiver's reason)
- missing callback or any other
  exception                     -> ReceiverIncompatible
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from .accounts import normalize_account
from .exceptions import LedgerError, ReceiverIncompatible, ReceiverRejected


RECEIVED_MARKER = bytes.fromhex("f23a6e61")
BATCH_RECEIVED_MARKER = bytes.fromhex("bc197c81")


@runtime_checkable
class TokenReceiver(Protocol):
    """Callback surface a programmable account exposes."""
    
    def on_received(self, operator: str, from_: str, token_id: int, amount: int, data: bytes) -> bytes:
        ...
    
    def on_batch_received(
        self,
        operator: str,
        from_: str,
        token_ids: List[int],
        amounts: List[int],
        data: bytes
    ) -> bytes:
        ...


class ReceiverDirectory:
    """Maps programmable accounts to their receiver objects."""
    
    def __init__(self):
        self._receivers: Dict[str, Any] = {}
    
    def register(self, account: str, receiver: Any) -> None:
        self._receivers[normalize_account(account)] = receiver
    
    def unregister(self, account: str) -> None:
        self._receivers.pop(normalize_account(account), None)
    
    def get(self, account: str) -> Optional[Any]:
        return self._receivers.get(normalize_account(account))
    
    def is_programmable(self, account: str) -> bool:
        return normalize_account(account) in self._receivers
    
    def accounts(self) -> List[str]:
        return sorted(self._receivers)


class AcceptanceProtocol:
    """Runs the received-callback handshake for programmable recipients."""
    
    def __init__(self, directory: ReceiverDirectory):
        self.logger = logging.getLogger(__name__)
        self.directory = directory
    
    def check_single(
        self,
        operator: str,
        from_: str,
        to: str,
        token_id: int,
        amount: int,
        data: bytes
    ) -> None:
        """Require acceptance of a single-token transfer."""
        receiver = self.directory.get(to)
        if receiver is None:
            return
        
        self._invoke(
            to, receiver, 'on_received', RECEIVED_MARKER,
            (operator, from_, token_id, amount, data)
        )
    
    def check_batch(
        self,
        operator: str,
        from_: str,
        to: str,
        token_ids: Sequence[int],
        amounts: Sequence[int],
        data: bytes
    ) -> None:
        """Require acceptance of a batch transfer."""
        receiver = self.directory.get(to)
        if receiver is None:
            return
        
        self._invoke(
            to, receiver, 'on_batch_received', BATCH_RECEIVED_MARKER,
            (operator, from_, list(token_ids), list(amounts), data)
        )
    
    def _invoke(self, account: str, receiver: Any, method: str, expected: bytes, args: Tuple) -> None:
        callback = getattr(receiver, method, None)
        if not callable(callback):
            self.logger.warning(f"Recipient {account} does not implement {method}")
            raise ReceiverIncompatible()
        
        try:
            response = callback(*args)
        except LedgerError as e:
            self.logger.warning(f"Recipient {account} rejected tokens: {e}")
            raise ReceiverRejected(str(e) or None) from e
        except Exception as e:
            self.logger.warning(f"Recipient {account} failed in {method}: {e!r}")
            raise ReceiverIncompatible() from e
        
        if response != expected:
            self.logger.warning(f"Recipient {account} returned unexpected value {response!r} from {method}")
            raise ReceiverRejected()


class TokenHolder:
    """Receiver that accepts every transfer and remembers what it received."""
    
    def __init__(self):
        self.received: List[Tuple] = []
    
    def on_received(self, operator, from_, token_id, amount, data):
        self.received.append((operator, from_, token_id, amount, data))
        return RECEIVED_MARKER
    
    def on_batch_received(self, operator, from_, token_ids, amounts, data):
        self.received.append((operator, from_, list(token_ids), list(amounts), data))
        return BATCH_RECEIVED_MARKER
