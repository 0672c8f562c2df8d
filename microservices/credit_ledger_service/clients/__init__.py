"""
Credit Ledger Client Module

Clients for the collaborators the ledger calls.
"""

from .account_number import RandomAccountNumberGenerator
from .transaction_client import TransactionServiceClient

__all__ = [
    "RandomAccountNumberGenerator",
    "TransactionServiceClient",
]
