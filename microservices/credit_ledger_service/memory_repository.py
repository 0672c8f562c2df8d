"""
In-memory Credit Ledger Repositories

Implements CreditRepositoryProtocol and DebtRepositoryProtocol on plain dicts.
Used for local runs (LEDGER_STORAGE_BACKEND=memory) and tests. Records are
copied in and out so callers never share state with the store.
"""

from typing import Dict, List, Optional

from .models import Credit, CreditFilter, Debt, DebtStatusEnum


class InMemoryCreditRepository:
    """Credit accounts kept in a dict keyed by id"""

    def __init__(self):
        self.credits: Dict[str, Credit] = {}

    async def get(self, credit_id: str) -> Optional[Credit]:
        credit = self.credits.get(credit_id)
        return credit.model_copy() if credit else None

    async def put(self, credit: Credit) -> Credit:
        self.credits[credit.id] = credit.model_copy()
        return credit.model_copy()

    async def delete(self, credit_id: str) -> bool:
        return self.credits.pop(credit_id, None) is not None

    async def list(self, credit_filter: Optional[CreditFilter] = None) -> List[Credit]:
        credit_filter = credit_filter or CreditFilter()
        return [c.model_copy() for c in self.credits.values() if credit_filter.matches(c)]

    async def list_by_client_id(self, client_id: str) -> List[Credit]:
        return [c.model_copy() for c in self.credits.values() if c.client_id == client_id]


class InMemoryDebtRepository:
    """Debt records kept in a dict keyed by id"""

    def __init__(self):
        self.debts: Dict[str, Debt] = {}

    async def put(self, debt: Debt) -> Debt:
        self.debts[debt.id] = debt.model_copy()
        return debt.model_copy()

    async def get(self, debt_id: str) -> Optional[Debt]:
        debt = self.debts.get(debt_id)
        return debt.model_copy() if debt else None

    async def find_active_by_credit_id(self, credit_id: str) -> Optional[Debt]:
        for debt in self.debts.values():
            if debt.credit_id == credit_id and debt.status == DebtStatusEnum.ACTIVE:
                return debt.model_copy()
        return None

    async def find_active_by_client_id(self, client_id: str) -> Optional[Debt]:
        active = await self.list_by_client_id(client_id, DebtStatusEnum.ACTIVE)
        return active[0] if active else None

    async def list_by_client_id(
        self, client_id: str, status: Optional[DebtStatusEnum] = None
    ) -> List[Debt]:
        result = [
            d.model_copy()
            for d in self.debts.values()
            if d.client_id == client_id and (status is None or d.status == status)
        ]
        return sorted(result, key=lambda d: d.due_date)

    async def delete(self, debt_id: str) -> bool:
        return self.debts.pop(debt_id, None) is not None

    async def delete_by_credit_id(self, credit_id: str) -> int:
        doomed = [debt_id for debt_id, d in self.debts.items() if d.credit_id == credit_id]
        for debt_id in doomed:
            del self.debts[debt_id]
        return len(doomed)


__all__ = ["InMemoryCreditRepository", "InMemoryDebtRepository"]
