"""Domain models and pure logic for the wallet ledger.

This package contains in-memory (Pydantic) models describing reconciled ledger
entries and coin amounts. Nothing in here talks to the network, so the
reconciliation rules can be tested without a ledger node.
"""

__all__ = [
    "coin",
    "digests",
    "ledger",
]
