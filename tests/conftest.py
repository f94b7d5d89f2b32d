"""
Pytest configuration and fixtures for ledger tests.
"""

import pytest

from ledger import LedgerSettings, MultiTokenLedger, TokenHolder


ADMIN = "admin"
ALICE = "alice"
BOB = "bob"
CAROL = "carol"


class EventRecorder:
    """Subscriber collecting committed events."""
    
    def __init__(self):
        self.events = []
    
    def __call__(self, event):
        self.events.append(event)
    
    def names(self):
        return [event.name for event in self.events]


@pytest.fixture
def settings():
    """Default ledger settings for testing."""
    return LedgerSettings(admin=ADMIN, contract_uri="https://example.org/metadata/{id}.json")


@pytest.fixture
def ledger(settings):
    """Create a fresh ledger for testing."""
    return MultiTokenLedger(settings)


@pytest.fixture
def funded_ledger(ledger):
    """Ledger where alice holds 5 of token 1, 3 of token 2 and 100 of token 7."""
    ledger.mint(ADMIN, ALICE, 1, 5, "pub-1", "priv-1")
    ledger.mint(ADMIN, ALICE, 2, 3, "pub-2", "priv-2")
    ledger.mint(ADMIN, ALICE, 7, 100, "pub", "priv")
    return ledger


@pytest.fixture
def recorder(ledger):
    """Subscriber attached to the ledger fixture."""
    recorder = EventRecorder()
    ledger.subscribe(recorder)
    return recorder


@pytest.fixture
def holder():
    """Receiver that accepts everything."""
    return TokenHolder()
