"""
Credit Ledger Service

Revolving credit accounts with a monthly debt cycle.

Features:
- Credit accounts with limit, consumption and derived balance
- Charges and payments serialized per account
- Debt cycle rollover when a balance is paid off
- Overdue detection gating new accounts
- Transaction reporting to the transaction service
"""

__version__ = "1.0.0"
