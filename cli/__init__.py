"""
Ledger CLI

Command line tools for replaying ledger scenarios and managing configuration.
"""

__version__ = "0.1.0"
