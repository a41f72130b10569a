"""
Restaurant Ledger: order ledger, kitchen tickets, table and delivery sync
"""

__version__ = "1.0.0"
