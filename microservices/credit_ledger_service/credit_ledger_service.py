"""
Credit Ledger Service - Business Logic Layer

Revolving credit accounts and their monthly debt cycle:
- Account creation gated by overdue debt detection
- Charges bounded by the available credit (limit - consumption)
- Payments bounded by the outstanding consumption, rolling the debt
  cycle forward once the balance is paid off
- Limit/type/rate updates and account removal

Every mutation of a credit account runs inside that account's exclusive
region (AccountLockRegistry), so concurrent charges/payments on the same
account never interleave. Reads take no lock.

Balance-first: credit and debt are committed before the transaction service
is notified. A notification failure raises OperationFailedError but the
balance change stands.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .account_locks import AccountLockRegistry
from .debt_cycle import DebtCycleManager
from .models import (
    AmountRequest,
    BalanceResponse,
    CreateCreditRequest,
    Credit,
    CreditFilter,
    CreditTypeEnum,
    Debt,
    DebtStatusEnum,
    TransactionRecord,
    TransactionRequest,
    TransactionTypeEnum,
    UpdateCreditRequest,
)
from .overdue import effective_status, is_overdue
from .protocols import (
    AccountNumberGeneratorProtocol,
    CreditLedgerError,
    CreditNotFoundError,
    CreditRepositoryProtocol,
    DebtRepositoryProtocol,
    InsufficientBalanceError,
    InvalidInputError,
    OperationFailedError,
    OutstandingDebtError,
    TransactionRecorderProtocol,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _validated(model: Type[ModelT], **values: Any) -> ModelT:
    """Build a request model, reporting pydantic errors as InvalidInputError."""
    try:
        return model(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in e.errors()
        )
        fields = ",".join(str(error["loc"][0]) for error in e.errors() if error["loc"])
        raise InvalidInputError(problems, fields=fields) from e


class CreditLedgerService:
    """
    Credit Ledger Service - Core business logic

    Validates and applies create/charge/payment/update/delete operations on
    credit accounts, keeps each account's ACTIVE debt in step with its
    consumption and reports applied transactions to the transaction service.
    """

    def __init__(
        self,
        credit_repository: CreditRepositoryProtocol,
        debt_repository: DebtRepositoryProtocol,
        transaction_recorder: TransactionRecorderProtocol,
        account_number_generator: AccountNumberGeneratorProtocol,
        lock_registry: Optional[AccountLockRegistry] = None,
        clock: Callable[[], date] = _utc_today,
    ):
        """
        Initialize credit ledger service with dependencies.

        Args:
            credit_repository: Account store
            debt_repository: Debt store
            transaction_recorder: Transaction service client
            account_number_generator: Source of external account numbers
            lock_registry: Per-account exclusion (a private one if not provided)
            clock: Returns today's date; overdue checks and first due dates use it
        """
        self.credit_repository = credit_repository
        self.debt_repository = debt_repository
        self.transaction_recorder = transaction_recorder
        self.account_number_generator = account_number_generator
        self.locks = lock_registry or AccountLockRegistry()
        self.clock = clock
        self.debt_cycle = DebtCycleManager(debt_repository)

    # ====================
    # Account Management
    # ====================

    async def create_credit(
        self,
        client_id: str,
        credit_limit: Any,
        interest_rate: Any = Decimal("0"),
        credit_type: Any = CreditTypeEnum.PERSONAL,
    ) -> Credit:
        """
        Open a credit account and its first debt cycle.

        Args:
            client_id: Owner identifier
            credit_limit: Maximum total consumption (>= 0)
            interest_rate: Informational rate (>= 0)
            credit_type: Account category

        Returns:
            Created credit with consumption 0 and balance == credit_limit

        Raises:
            InvalidInputError: Blank client_id, negative limit/rate or unknown type
            OutstandingDebtError: The client has an overdue ACTIVE debt
            OperationFailedError: Credit or debt could not be stored
        """
        request = _validated(
            CreateCreditRequest,
            client_id=client_id,
            credit_limit=credit_limit,
            interest_rate=interest_rate,
            type=credit_type,
        )
        client_id = request.client_id
        limit = request.credit_limit

        async with self.locks.hold(f"client:{client_id}"):
            today = self.clock()
            if await self.has_overdue_debt(client_id, today):
                logger.warning(f"Rejected credit creation for client {client_id}: overdue debt")
                raise OutstandingDebtError(client_id=client_id)

            now = datetime.now(timezone.utc)
            credit = Credit(
                id=f"cred_{uuid.uuid4().hex[:24]}",
                credit_number=self.account_number_generator.generate(),
                client_id=client_id,
                credit_limit=limit,
                consumption_amount=Decimal("0"),
                interest_rate=request.interest_rate,
                type=request.type,
                created_date=now,
                updated_date=now,
            )
            credit.recompute_balance()

            try:
                saved = await self.credit_repository.put(credit)
            except Exception as e:
                logger.error(f"Failed to store credit for client {client_id}: {e}", exc_info=True)
                raise OperationFailedError(f"Failed to create credit: {e}", reason="credit_write_failed") from e

            try:
                await self.debt_cycle.open_cycle(saved, today)
            except Exception as e:
                logger.error(f"Failed to open debt cycle for credit {saved.id}: {e}", exc_info=True)
                await self._compensate(self.credit_repository.delete(saved.id), f"remove credit {saved.id}")
                raise OperationFailedError(f"Failed to create credit: {e}", reason="debt_write_failed") from e

        logger.info(f"Created credit {saved.id} ({saved.credit_number}) for client {client_id}, limit {limit}")
        return saved

    async def update_credit(
        self,
        credit_id: str,
        credit_limit: Any,
        credit_type: Any,
        interest_rate: Any,
    ) -> Credit:
        """
        Overwrite limit, type and rate of an account.

        The balance is recomputed from the new limit. A limit below the
        current consumption is rejected.

        Raises:
            CreditNotFoundError: Unknown credit_id
            InvalidInputError: Negative values, unknown type, limit below consumption
            OperationFailedError: Credit could not be stored
        """
        request = _validated(
            UpdateCreditRequest,
            credit_limit=credit_limit,
            interest_rate=interest_rate,
            type=credit_type,
        )
        limit = request.credit_limit
        credit_type = request.type
        rate = request.interest_rate

        async with self.locks.hold(credit_id):
            credit = await self._require_credit(credit_id)
            if limit < credit.consumption_amount:
                raise InvalidInputError(
                    "credit_limit cannot be lower than the current consumption",
                    credit_limit=limit,
                    consumption_amount=credit.consumption_amount,
                )

            updated = credit.model_copy()
            updated.credit_limit = limit
            updated.type = credit_type
            updated.interest_rate = rate
            updated.recompute_balance()
            updated.updated_date = datetime.now(timezone.utc)

            try:
                saved = await self.credit_repository.put(updated)
            except Exception as e:
                logger.error(f"Failed to update credit {credit_id}: {e}", exc_info=True)
                raise OperationFailedError(f"Failed to update credit: {e}", reason="credit_write_failed") from e

        logger.info(f"Updated credit {credit_id}: limit {limit}, type {credit_type.value}, rate {rate}")
        return saved

    async def delete_credit(self, credit_id: str) -> None:
        """
        Remove an account together with its debt records.

        Debts go first; if either delete fails the debts are written back and
        the credit is left in place.

        Raises:
            CreditNotFoundError: Unknown credit_id
            OperationFailedError: Store failure
        """
        async with self.locks.hold(credit_id):
            credit = await self._require_credit(credit_id)
            debts: List[Debt] = []
            try:
                debts = [
                    debt
                    for debt in await self.debt_repository.list_by_client_id(credit.client_id)
                    if debt.credit_id == credit_id
                ]
                removed = await self.debt_repository.delete_by_credit_id(credit_id)
            except Exception as e:
                logger.error(f"Failed to delete debts of credit {credit_id}: {e}", exc_info=True)
                for debt in debts:
                    await self._compensate(self.debt_repository.put(debt), f"restore debt {debt.id}")
                raise OperationFailedError(f"Failed to delete credit: {e}", reason="debt_delete_failed") from e

            try:
                await self.credit_repository.delete(credit_id)
            except Exception as e:
                logger.error(f"Failed to delete credit {credit_id}: {e}", exc_info=True)
                for debt in debts:
                    await self._compensate(self.debt_repository.put(debt), f"restore debt {debt.id}")
                raise OperationFailedError(f"Failed to delete credit: {e}", reason="credit_delete_failed") from e

        logger.info(f"Deleted credit {credit_id} and {removed} debt record(s)")

    # ====================
    # Charges & Payments
    # ====================

    async def charge_credit_card(self, credit_id: str, amount: Any) -> TransactionRecord:
        """
        Draw `amount` from the available credit.

        Boundary inclusive: amount == credit_limit - consumption_amount succeeds.

        Returns:
            Acknowledgment of the CHARGE transaction from the transaction service

        Raises:
            InvalidInputError: amount <= 0 or not a decimal
            CreditNotFoundError: Unknown credit_id
            InsufficientBalanceError: amount exceeds the available credit
            OperationFailedError: Store write failed (nothing persisted) or the
                transaction service failed (balance change stands)
        """
        value = self._require_positive(amount)

        async with self.locks.hold(credit_id):
            credit = await self._require_credit(credit_id)
            if value > credit.available_credit:
                logger.warning(
                    f"Rejected charge of {value} on credit {credit_id}: available {credit.available_credit}"
                )
                raise InsufficientBalanceError(
                    available=credit.available_credit, required=value
                )

            updated = credit.model_copy()
            updated.consumption_amount = credit.consumption_amount + value
            updated.recompute_balance()
            updated.updated_date = datetime.now(timezone.utc)

            saved = await self._commit(credit, updated)

        logger.info(f"Charged {value} on credit {credit_id}, balance {saved.balance}")
        return await self._notify(saved, TransactionTypeEnum.CHARGE, value)

    async def make_payment(self, credit_id: str, amount: Any) -> TransactionRecord:
        """
        Pay `amount` off the outstanding consumption.

        When the consumption reaches zero the ACTIVE debt becomes PAID and the
        next cycle is opened.

        Returns:
            Acknowledgment of the PAYMENT transaction from the transaction service

        Raises:
            InvalidInputError: amount <= 0, not a decimal, or above the consumption
            CreditNotFoundError: Unknown credit_id
            OperationFailedError: Store write failed (nothing persisted) or the
                transaction service failed (balance change stands)
        """
        value = self._require_positive(amount)

        async with self.locks.hold(credit_id):
            credit = await self._require_credit(credit_id)
            if value > credit.consumption_amount:
                logger.warning(
                    f"Rejected payment of {value} on credit {credit_id}: consumption {credit.consumption_amount}"
                )
                raise InvalidInputError(
                    "Payment amount exceeds the outstanding consumption",
                    amount=value,
                    consumption_amount=credit.consumption_amount,
                )

            updated = credit.model_copy()
            updated.consumption_amount = credit.consumption_amount - value
            updated.recompute_balance()
            updated.updated_date = datetime.now(timezone.utc)

            saved = await self._commit(credit, updated)

        logger.info(f"Received payment of {value} on credit {credit_id}, balance {saved.balance}")
        return await self._notify(saved, TransactionTypeEnum.PAYMENT, value)

    # ====================
    # Queries
    # ====================

    async def get_credit(self, credit_id: str) -> Credit:
        """Raises CreditNotFoundError when absent."""
        return await self._require_credit(credit_id)

    async def get_balance(self, credit_id: str) -> BalanceResponse:
        """Raises CreditNotFoundError when absent."""
        credit = await self._require_credit(credit_id)
        return BalanceResponse(
            credit_id=credit.id,
            client_id=credit.client_id,
            balance=credit.balance,
            credit_limit=credit.credit_limit,
            consumption_amount=credit.consumption_amount,
        )

    async def list_credits(self, credit_filter: Optional[CreditFilter] = None) -> List[Credit]:
        return await self.credit_repository.list(credit_filter or CreditFilter())

    async def list_credits_by_client(self, client_id: str) -> List[Credit]:
        return await self.credit_repository.list_by_client_id(client_id)

    async def get_client_transactions(self, credit_id: str) -> List[TransactionRecord]:
        """
        Transaction history of an account, as held by the transaction service.

        Raises:
            CreditNotFoundError: Unknown credit_id
            OperationFailedError: Transaction service failed
        """
        await self._require_credit(credit_id)
        try:
            return await self.transaction_recorder.history(credit_id)
        except CreditLedgerError:
            raise
        except Exception as e:
            logger.error(f"Failed to fetch transactions of credit {credit_id}: {e}", exc_info=True)
            raise OperationFailedError(f"Failed to fetch transactions: {e}") from e

    async def get_active_debt(self, credit_id: str) -> Optional[Debt]:
        """
        The open debt cycle of an account, as readers see it: an overdue one
        is reported with status EXPIRED. The stored record is not changed.
        """
        await self._require_credit(credit_id)
        debt = await self.debt_repository.find_active_by_credit_id(credit_id)
        return self._as_read(debt, self.clock()) if debt else None

    async def list_client_debts(
        self, client_id: str, status: Optional[DebtStatusEnum] = None
    ) -> List[Debt]:
        """Debts of a client with read-time status, optionally filtered by it."""
        status = DebtStatusEnum(status) if status is not None else None
        # EXPIRED is never stored; those debts are stored as ACTIVE
        stored_status = DebtStatusEnum.ACTIVE if status == DebtStatusEnum.EXPIRED else status
        today = self.clock()
        debts = [
            self._as_read(debt, today)
            for debt in await self.debt_repository.list_by_client_id(client_id, stored_status)
        ]
        if status is None:
            return debts
        return [debt for debt in debts if debt.status == status]

    async def has_overdue_debt(self, client_id: str, today: Optional[date] = None) -> bool:
        """True when any ACTIVE debt of the client is overdue."""
        today = today or self.clock()
        active = await self.debt_repository.list_by_client_id(client_id, DebtStatusEnum.ACTIVE)
        return any(is_overdue(debt, today) for debt in active)

    # ====================
    # Internal helpers
    # ====================

    async def _require_credit(self, credit_id: str) -> Credit:
        credit = await self.credit_repository.get(credit_id)
        if credit is None:
            raise CreditNotFoundError(credit_id=credit_id)
        return credit

    @staticmethod
    def _as_read(debt: Debt, today: date) -> Debt:
        status = effective_status(debt, today)
        if status == debt.status:
            return debt
        return debt.model_copy(update={"status": status})

    @staticmethod
    def _require_positive(amount: Any) -> Decimal:
        return _validated(AmountRequest, amount=amount).amount

    async def _commit(self, original: Credit, updated: Credit) -> Credit:
        """
        Persist debt(s) then credit. Caller holds the account lock.

        On any store failure the previous debt and credit are written back and
        OperationFailedError is raised.
        """
        previous_debt: Optional[Debt] = None
        written: List[Debt] = []
        try:
            previous_debt = await self.debt_repository.find_active_by_credit_id(original.id)
            written = await self.debt_cycle.synchronize(updated, previous_debt)
            return await self.credit_repository.put(updated)
        except Exception as e:
            logger.error(f"Store write failed for credit {original.id}: {e}", exc_info=True)
            await self._rollback(original, previous_debt, written)
            raise OperationFailedError(f"Failed to apply transaction: {e}", reason="store_write_failed") from e

    async def _rollback(self, original: Credit, previous_debt: Optional[Debt], written: List[Debt]) -> None:
        # Successors go first so the restored debt is the only ACTIVE one
        for debt in written:
            if previous_debt is None or debt.id != previous_debt.id:
                await self._compensate(self.debt_repository.delete(debt.id), f"remove debt {debt.id}")
        if previous_debt is not None:
            await self._compensate(self.debt_repository.put(previous_debt), f"restore debt {previous_debt.id}")
        await self._compensate(self.credit_repository.put(original), f"restore credit {original.id}")

    @staticmethod
    async def _compensate(write, description: str) -> None:
        try:
            await write
        except Exception as e:
            logger.error(f"Compensating write failed ({description}): {e}", exc_info=True)

    async def _notify(
        self, credit: Credit, transaction_type: TransactionTypeEnum, amount: Decimal
    ) -> TransactionRecord:
        request = TransactionRequest(
            product_id=credit.id,
            client_id=credit.client_id,
            type=transaction_type,
            amount=amount,
            balance=credit.balance,
        )
        try:
            return await self.transaction_recorder.record(request)
        except CreditLedgerError:
            logger.error(
                f"{transaction_type.value} of {amount} on credit {credit.id} applied but not recorded"
            )
            raise
        except Exception as e:
            logger.error(
                f"{transaction_type.value} of {amount} on credit {credit.id} applied but not recorded: {e}",
                exc_info=True,
            )
            raise OperationFailedError(f"Failed to record transaction: {e}") from e


__all__ = ["CreditLedgerService"]
