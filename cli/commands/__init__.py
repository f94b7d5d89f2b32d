"""
Ledger CLI Commands Package
"""

__all__ = ['scenario', 'config']
