"""
Debt Cycle Manager

Owns every write to Debt records:
- open_cycle: first ACTIVE debt of a new credit account
- synchronize: mirror the credit's consumption into its ACTIVE debt,
  closing it as PAID and opening the next cycle when fully paid
"""

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from .models import Credit, Debt, DebtStatusEnum
from .overdue import add_months
from .protocols import DebtRepositoryProtocol

logger = logging.getLogger(__name__)

# One billing cycle, in calendar months
CYCLE_MONTHS = 1


class DebtCycleManager:
    """State machine for Debt records: ACTIVE -> PAID, with next-cycle spawn."""

    def __init__(self, debt_repository: DebtRepositoryProtocol):
        self.debt_repository = debt_repository

    @staticmethod
    def _new_debt_id() -> str:
        return f"debt_{uuid.uuid4().hex[:24]}"

    def _build_debt(self, credit_id: str, client_id: str, due_date: date) -> Debt:
        now = datetime.now(timezone.utc)
        return Debt(
            id=self._new_debt_id(),
            credit_id=credit_id,
            client_id=client_id,
            amount=Decimal("0"),
            status=DebtStatusEnum.ACTIVE,
            due_date=due_date,
            created_date=now,
            updated_date=now,
        )

    async def open_cycle(self, credit: Credit, due_date: date) -> Debt:
        """Create the first ACTIVE debt of a credit account."""
        debt = self._build_debt(credit.id, credit.client_id, due_date)
        debt.amount = credit.consumption_amount
        saved = await self.debt_repository.put(debt)
        logger.info(f"Opened debt cycle {saved.id} for credit {credit.id}, due {due_date.isoformat()}")
        return saved

    async def synchronize(self, credit: Credit, previous: Optional[Debt] = None) -> List[Debt]:
        """
        Set the ACTIVE debt amount to the credit's consumption.

        When the amount reaches zero the debt is closed as PAID and a new
        ACTIVE debt with amount 0 is opened one cycle later.

        Args:
            credit: Credit already carrying its new consumption_amount
            previous: The ACTIVE debt loaded by the caller (loaded here when None)

        Returns:
            The debts written, in write order
        """
        debt = previous or await self.debt_repository.find_active_by_credit_id(credit.id)
        if debt is None:
            logger.warning(f"Credit {credit.id} has no ACTIVE debt; opening one")
            return [await self.open_cycle(credit, datetime.now(timezone.utc).date())]

        debt = debt.model_copy()
        debt.amount = credit.consumption_amount
        debt.updated_date = datetime.now(timezone.utc)

        if debt.amount > 0:
            return [await self.debt_repository.put(debt)]

        closed = await self.close_as_paid(debt)
        successor = await self.roll_forward(closed)
        return [closed, successor]

    async def close_as_paid(self, debt: Debt) -> Debt:
        """ACTIVE -> PAID. PAID is terminal."""
        if debt.status != DebtStatusEnum.ACTIVE:
            raise ValueError(f"Debt {debt.id} is {debt.status.value}, only ACTIVE debts can be paid")
        debt = debt.model_copy()
        debt.status = DebtStatusEnum.PAID
        debt.updated_date = datetime.now(timezone.utc)
        saved = await self.debt_repository.put(debt)
        logger.info(f"Debt {saved.id} of credit {saved.credit_id} paid")
        return saved

    async def roll_forward(self, paid: Debt) -> Debt:
        """Open the next cycle after a PAID debt."""
        successor = self._build_debt(
            paid.credit_id, paid.client_id, add_months(paid.due_date, CYCLE_MONTHS)
        )
        saved = await self.debt_repository.put(successor)
        logger.info(
            f"Rolled credit {paid.credit_id} into debt cycle {saved.id}, due {saved.due_date.isoformat()}"
        )
        return saved


__all__ = ["DebtCycleManager", "CYCLE_MONTHS"]
