"""
Credit Ledger Protocols

Defines interfaces for dependency injection and testing.
Following the protocol-based architecture pattern.
"""

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from .models import (
    Credit,
    CreditFilter,
    Debt,
    DebtStatusEnum,
    TransactionRecord,
    TransactionRequest,
)


# ====================
# Repository Protocols
# ====================


@runtime_checkable
class CreditRepositoryProtocol(Protocol):
    """Account store: persistence for Credit records keyed by id"""

    async def get(self, credit_id: str) -> Optional[Credit]:
        """
        Get credit account by ID.

        Returns:
            Credit or None if not found
        """
        ...

    async def put(self, credit: Credit) -> Credit:
        """
        Insert or replace a credit account.

        Returns:
            The stored credit
        """
        ...

    async def delete(self, credit_id: str) -> bool:
        """
        Delete a credit account.

        Returns:
            True if a record was removed
        """
        ...

    async def list(self, credit_filter: Optional[CreditFilter] = None) -> List[Credit]:
        """List credit accounts matching the filter (all when None)"""
        ...

    async def list_by_client_id(self, client_id: str) -> List[Credit]:
        """List all credit accounts owned by a client"""
        ...


@runtime_checkable
class DebtRepositoryProtocol(Protocol):
    """Debt store: persistence for Debt records"""

    async def put(self, debt: Debt) -> Debt:
        """Insert or replace a debt record"""
        ...

    async def get(self, debt_id: str) -> Optional[Debt]:
        """Get debt by ID"""
        ...

    async def find_active_by_credit_id(self, credit_id: str) -> Optional[Debt]:
        """Get the ACTIVE debt of a credit account, if any"""
        ...

    async def find_active_by_client_id(self, client_id: str) -> Optional[Debt]:
        """Get an ACTIVE debt of a client (oldest due date first), if any"""
        ...

    async def list_by_client_id(
        self, client_id: str, status: Optional[DebtStatusEnum] = None
    ) -> List[Debt]:
        """List debts of a client, optionally restricted to one status"""
        ...

    async def delete(self, debt_id: str) -> bool:
        """Delete one debt record; True if it existed"""
        ...

    async def delete_by_credit_id(self, credit_id: str) -> int:
        """
        Delete all debts of a credit account.

        Returns:
            Number of records deleted
        """
        ...


# ====================
# Service Client Protocols
# ====================


@runtime_checkable
class TransactionRecorderProtocol(Protocol):
    """Interface for the transaction service"""

    async def record(self, transaction: TransactionRequest) -> TransactionRecord:
        """
        Durably record an applied charge or payment.

        Raises:
            OperationFailedError: recorder unreachable or rejected the request
        """
        ...

    async def history(self, product_id: str) -> List[TransactionRecord]:
        """
        Transaction history of a credit account.

        Raises:
            OperationFailedError: recorder unreachable or rejected the request
        """
        ...


@runtime_checkable
class AccountNumberGeneratorProtocol(Protocol):
    """Produces external account numbers"""

    def generate(self) -> str:
        ...


# ====================
# Custom Exceptions (no I/O operations)
# ====================


class CreditLedgerError(Exception):
    """Base exception for credit ledger errors"""

    code = "CREDIT_LEDGER_ERROR"
    error_code = "CREDIT-999"
    status_code = 500
    default_message = "Credit ledger error"

    def __init__(self, message: Optional[str] = None, **details: Any):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "error_code": self.error_code,
            "message": self.message,
            "details": {k: str(v) for k, v in self.details.items()},
        }


class OperationFailedError(CreditLedgerError):
    """Raised when an external call or a store write fails"""

    code = "OPERATION_FAILED"
    error_code = "CREDIT-000"
    status_code = 500
    default_message = "Operation External failed"


class InvalidInputError(CreditLedgerError):
    """Raised for malformed requests and payments above the consumption"""

    code = "INVALID_INPUT"
    error_code = "CREDIT-100"
    status_code = 400
    default_message = "Invalid input provided"


class CreditNotFoundError(CreditLedgerError):
    """Raised when credit account is not found"""

    code = "CREDIT_NOT_FOUND"
    error_code = "CREDIT-001"
    status_code = 404
    default_message = "Bank credit not found"


class OutstandingDebtError(CreditLedgerError):
    """Raised when the client has an overdue ACTIVE debt"""

    code = "OUTSTANDING_DEBT"
    error_code = "CREDIT-006"
    status_code = 409
    default_message = "The client has an outstanding debt."


class InsufficientBalanceError(CreditLedgerError):
    """Raised when a charge exceeds the available credit"""

    code = "INSUFFICIENT_BALANCE"
    error_code = "CREDIT-004"
    status_code = 402
    default_message = "Insufficient balance"


__all__ = [
    "CreditRepositoryProtocol",
    "DebtRepositoryProtocol",
    "TransactionRecorderProtocol",
    "AccountNumberGeneratorProtocol",
    "CreditLedgerError",
    "OperationFailedError",
    "InvalidInputError",
    "CreditNotFoundError",
    "OutstandingDebtError",
    "InsufficientBalanceError",
]
