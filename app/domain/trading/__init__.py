"""
Trading bounded context, domain layer.

This module contains all domain logic for the trading context:
- Timed orders and their lifecycle
- Tiered price resolution
- Balance ledger
- Settlement of orders against prices or admin decisions
"""
