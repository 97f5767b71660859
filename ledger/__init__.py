"""
Ledger module - Order records, token balances and termination.

This module handles:
- Column resolution over the ledger sheet header
- Record lookup by order number and device serial
- Claim, consume, validate and add-tokens operations
- The completion relay gated on account validity
"""
