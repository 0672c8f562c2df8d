"""
Credit Ledger Component Test Fixtures

Provides mocks for credit ledger component testing:
- MockCreditRepository / MockDebtRepository: in-memory stores that yield to
  the event loop on every call (so concurrent operations really interleave)
  and can be told to fail
- MockTransactionRecorder: records requests, can be told to fail
"""

import asyncio
from datetime import date, datetime, timezone
from typing import List, Optional, Set

import pytest

from microservices.credit_ledger_service.memory_repository import (
    InMemoryCreditRepository,
    InMemoryDebtRepository,
)
from microservices.credit_ledger_service.models import (
    TransactionRecord,
    TransactionRequest,
)
from tests.contracts.credit_ledger.data_contract import CreditLedgerTestDataFactory


TODAY = date(2024, 5, 15)


class _FailureInjection:
    """Mixin: fail the named methods, optionally only after N successful calls"""

    def _init_failures(self):
        self.fail_on: Set[str] = set()
        self.fail_after: int = 0
        self.fail_once: bool = False
        self.method_calls: List[tuple] = []

    async def _enter(self, method: str, *args):
        self.method_calls.append((method, *args))
        # Yield so other tasks can run between store steps
        await asyncio.sleep(0)
        if method in self.fail_on:
            if self.fail_after > 0:
                self.fail_after -= 1
                return
            if self.fail_once:
                self.fail_on.discard(method)
            raise ConnectionError(f"store unavailable during {method}")


class MockCreditRepository(_FailureInjection, InMemoryCreditRepository):
    """In-memory credit store with interleaving and failure injection"""

    def __init__(self):
        InMemoryCreditRepository.__init__(self)
        self._init_failures()

    async def get(self, credit_id):
        await self._enter("get", credit_id)
        return await InMemoryCreditRepository.get(self, credit_id)

    async def put(self, credit):
        await self._enter("put", credit.id)
        return await InMemoryCreditRepository.put(self, credit)

    async def delete(self, credit_id):
        await self._enter("delete", credit_id)
        return await InMemoryCreditRepository.delete(self, credit_id)


class MockDebtRepository(_FailureInjection, InMemoryDebtRepository):
    """In-memory debt store with interleaving and failure injection"""

    def __init__(self):
        InMemoryDebtRepository.__init__(self)
        self._init_failures()

    async def put(self, debt):
        await self._enter("put", debt.id)
        return await InMemoryDebtRepository.put(self, debt)

    async def find_active_by_credit_id(self, credit_id):
        await self._enter("find_active_by_credit_id", credit_id)
        return await InMemoryDebtRepository.find_active_by_credit_id(self, credit_id)

    async def delete_by_credit_id(self, credit_id):
        await self._enter("delete_by_credit_id", credit_id)
        return await InMemoryDebtRepository.delete_by_credit_id(self, credit_id)

    def debts_of(self, credit_id: str):
        return [d for d in self.debts.values() if d.credit_id == credit_id]


class MockTransactionRecorder:
    """Mock transaction service"""

    def __init__(self):
        self.recorded: List[TransactionRequest] = []
        self.should_fail: Optional[Exception] = None

    def reset(self):
        self.recorded.clear()
        self.should_fail = None

    async def record(self, transaction: TransactionRequest) -> TransactionRecord:
        await asyncio.sleep(0)
        if self.should_fail is not None:
            raise self.should_fail
        self.recorded.append(transaction)
        return TransactionRecord(
            transaction_id=CreditLedgerTestDataFactory.make_transaction_id(),
            product_id=transaction.product_id,
            client_id=transaction.client_id,
            type=transaction.type,
            amount=transaction.amount,
            balance=transaction.balance,
            created_date=datetime.now(timezone.utc),
        )

    async def history(self, product_id: str) -> List[TransactionRecord]:
        if self.should_fail is not None:
            raise self.should_fail
        return [
            TransactionRecord(
                transaction_id=f"txn_{i}",
                product_id=t.product_id,
                client_id=t.client_id,
                type=t.type,
                amount=t.amount,
                balance=t.balance,
            )
            for i, t in enumerate(self.recorded)
            if t.product_id == product_id
        ]


class FixedAccountNumberGenerator:
    """Deterministic account numbers"""

    def __init__(self):
        self.issued = 0

    def generate(self) -> str:
        self.issued += 1
        return f"000100{self.issued:012d}"


# =============================================================================
# Pytest Fixtures
# =============================================================================


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def mock_credit_repository():
    return MockCreditRepository()


@pytest.fixture
def mock_debt_repository():
    return MockDebtRepository()


@pytest.fixture
def mock_recorder():
    return MockTransactionRecorder()


@pytest.fixture
def account_numbers():
    return FixedAccountNumberGenerator()


@pytest.fixture
def credit_ledger_service(mock_credit_repository, mock_debt_repository, mock_recorder, account_numbers, today):
    """Create credit ledger service with mocked dependencies"""
    from microservices.credit_ledger_service.credit_ledger_service import CreditLedgerService

    return CreditLedgerService(
        credit_repository=mock_credit_repository,
        debt_repository=mock_debt_repository,
        transaction_recorder=mock_recorder,
        account_number_generator=account_numbers,
        clock=lambda: today,
    )


__all__ = [
    "MockCreditRepository",
    "MockDebtRepository",
    "MockTransactionRecorder",
    "FixedAccountNumberGenerator",
]
