"""
Credit Ledger Data Repository

Data access layer - PostgreSQL (asyncpg, async)
Implements CreditRepositoryProtocol and DebtRepositoryProtocol from protocols.py

NUMERIC columns map to Decimal both ways, so amounts round-trip exactly.
"""

import logging
from typing import Any, Dict, List, Optional

from core.postgres_client import PostgresClientWrapper

from .models import Credit, CreditFilter, Debt, DebtStatusEnum

logger = logging.getLogger(__name__)


def _deleted_count(status: str) -> int:
    # asyncpg returns the command tag, e.g. "DELETE 3"
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0


class PostgresCreditRepository:
    """Credit accounts - PostgreSQL (Async)"""

    def __init__(self, db: PostgresClientWrapper, schema: str = "credit_ledger"):
        self.db = db
        self.schema = schema
        self.credits_table = "credits"

    @property
    def _table(self) -> str:
        return f"{self.schema}.{self.credits_table}"

    async def initialize(self):
        """Create schema and table if missing"""
        await self.db.execute(f"CREATE SCHEMA IF NOT EXISTS {self.schema}")
        await self.db.execute(f'''
            CREATE TABLE IF NOT EXISTS {self._table} (
                id TEXT PRIMARY KEY,
                credit_number TEXT NOT NULL UNIQUE,
                client_id TEXT NOT NULL,
                credit_limit NUMERIC NOT NULL,
                consumption_amount NUMERIC NOT NULL DEFAULT 0,
                balance NUMERIC NOT NULL,
                interest_rate NUMERIC NOT NULL DEFAULT 0,
                type TEXT NOT NULL,
                created_date TIMESTAMPTZ,
                updated_date TIMESTAMPTZ
            )
        ''')
        await self.db.execute(
            f"CREATE INDEX IF NOT EXISTS idx_credits_client_id ON {self._table} (client_id)"
        )
        logger.info("Credit repository initialized with PostgreSQL")

    async def get(self, credit_id: str) -> Optional[Credit]:
        """Get credit by ID"""
        try:
            row = await self.db.query_row(f"SELECT * FROM {self._table} WHERE id = $1", [credit_id])
            return self._row_to_credit(row) if row else None
        except Exception as e:
            logger.error(f"Error getting credit {credit_id}: {e}")
            raise

    async def put(self, credit: Credit) -> Credit:
        """Insert or replace a credit"""
        query = f'''
            INSERT INTO {self._table} (
                id, credit_number, client_id, credit_limit, consumption_amount,
                balance, interest_rate, type, created_date, updated_date
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
            ON CONFLICT (id) DO UPDATE SET
                credit_limit = EXCLUDED.credit_limit,
                consumption_amount = EXCLUDED.consumption_amount,
                balance = EXCLUDED.balance,
                interest_rate = EXCLUDED.interest_rate,
                type = EXCLUDED.type,
                updated_date = EXCLUDED.updated_date
            RETURNING *
        '''
        params = [
            credit.id,
            credit.credit_number,
            credit.client_id,
            credit.credit_limit,
            credit.consumption_amount,
            credit.balance,
            credit.interest_rate,
            credit.type.value,
            credit.created_date,
            credit.updated_date,
        ]
        try:
            row = await self.db.query_row(query, params)
            if not row:
                raise RuntimeError(f"Failed to store credit {credit.id}")
            return self._row_to_credit(row)
        except Exception as e:
            logger.error(f"Error storing credit {credit.id}: {e}", exc_info=True)
            raise

    async def delete(self, credit_id: str) -> bool:
        """Delete credit by ID"""
        try:
            status = await self.db.execute(f"DELETE FROM {self._table} WHERE id = $1", [credit_id])
            return _deleted_count(status) > 0
        except Exception as e:
            logger.error(f"Error deleting credit {credit_id}: {e}")
            raise

    async def list(self, credit_filter: Optional[CreditFilter] = None) -> List[Credit]:
        """List credits matching the optional filter"""
        credit_filter = credit_filter or CreditFilter()
        conditions = []
        params: List[Any] = []

        if credit_filter.credit_id:
            params.append(credit_filter.credit_id)
            conditions.append(f"id = ${len(params)}")
        if credit_filter.type:
            params.append(credit_filter.type.value)
            conditions.append(f"type = ${len(params)}")
        if credit_filter.client_id:
            params.append(credit_filter.client_id)
            conditions.append(f"client_id = ${len(params)}")

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        query = f"SELECT * FROM {self._table} {where_clause} ORDER BY created_date"
        try:
            rows = await self.db.query(query, params)
            return [self._row_to_credit(row) for row in rows]
        except Exception as e:
            logger.error(f"Error listing credits: {e}")
            raise

    async def list_by_client_id(self, client_id: str) -> List[Credit]:
        """List credits owned by a client"""
        return await self.list(CreditFilter(client_id=client_id))

    @staticmethod
    def _row_to_credit(row: Dict[str, Any]) -> Credit:
        return Credit.model_validate(row)


class PostgresDebtRepository:
    """Debt records - PostgreSQL (Async)"""

    def __init__(self, db: PostgresClientWrapper, schema: str = "credit_ledger"):
        self.db = db
        self.schema = schema
        self.debts_table = "debts"

    @property
    def _table(self) -> str:
        return f"{self.schema}.{self.debts_table}"

    async def initialize(self):
        """Create schema and table if missing"""
        await self.db.execute(f"CREATE SCHEMA IF NOT EXISTS {self.schema}")
        await self.db.execute(f'''
            CREATE TABLE IF NOT EXISTS {self._table} (
                id TEXT PRIMARY KEY,
                credit_id TEXT NOT NULL,
                client_id TEXT NOT NULL,
                amount NUMERIC NOT NULL DEFAULT 0,
                status TEXT NOT NULL,
                due_date DATE NOT NULL,
                created_date TIMESTAMPTZ,
                updated_date TIMESTAMPTZ
            )
        ''')
        await self.db.execute(
            f"CREATE INDEX IF NOT EXISTS idx_debts_client_status ON {self._table} (client_id, status)"
        )
        # At most one ACTIVE debt per credit account
        await self.db.execute(
            f"CREATE UNIQUE INDEX IF NOT EXISTS uq_debts_active_credit ON {self._table} (credit_id) "
            f"WHERE status = 'ACTIVE'"
        )
        logger.info("Debt repository initialized with PostgreSQL")

    async def put(self, debt: Debt) -> Debt:
        """Insert or replace a debt"""
        query = f'''
            INSERT INTO {self._table} (
                id, credit_id, client_id, amount, status, due_date, created_date, updated_date
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            ON CONFLICT (id) DO UPDATE SET
                amount = EXCLUDED.amount,
                status = EXCLUDED.status,
                due_date = EXCLUDED.due_date,
                updated_date = EXCLUDED.updated_date
            RETURNING *
        '''
        params = [
            debt.id,
            debt.credit_id,
            debt.client_id,
            debt.amount,
            debt.status.value,
            debt.due_date,
            debt.created_date,
            debt.updated_date,
        ]
        try:
            row = await self.db.query_row(query, params)
            if not row:
                raise RuntimeError(f"Failed to store debt {debt.id}")
            return Debt.model_validate(row)
        except Exception as e:
            logger.error(f"Error storing debt {debt.id}: {e}", exc_info=True)
            raise

    async def get(self, debt_id: str) -> Optional[Debt]:
        row = await self.db.query_row(f"SELECT * FROM {self._table} WHERE id = $1", [debt_id])
        return Debt.model_validate(row) if row else None

    async def find_active_by_credit_id(self, credit_id: str) -> Optional[Debt]:
        row = await self.db.query_row(
            f"SELECT * FROM {self._table} WHERE credit_id = $1 AND status = $2",
            [credit_id, DebtStatusEnum.ACTIVE.value],
        )
        return Debt.model_validate(row) if row else None

    async def find_active_by_client_id(self, client_id: str) -> Optional[Debt]:
        row = await self.db.query_row(
            f"SELECT * FROM {self._table} WHERE client_id = $1 AND status = $2 "
            f"ORDER BY due_date LIMIT 1",
            [client_id, DebtStatusEnum.ACTIVE.value],
        )
        return Debt.model_validate(row) if row else None

    async def list_by_client_id(
        self, client_id: str, status: Optional[DebtStatusEnum] = None
    ) -> List[Debt]:
        if status is None:
            rows = await self.db.query(
                f"SELECT * FROM {self._table} WHERE client_id = $1 ORDER BY due_date", [client_id]
            )
        else:
            rows = await self.db.query(
                f"SELECT * FROM {self._table} WHERE client_id = $1 AND status = $2 ORDER BY due_date",
                [client_id, DebtStatusEnum(status).value],
            )
        return [Debt.model_validate(row) for row in rows]

    async def delete(self, debt_id: str) -> bool:
        status = await self.db.execute(f"DELETE FROM {self._table} WHERE id = $1", [debt_id])
        return _deleted_count(status) > 0

    async def delete_by_credit_id(self, credit_id: str) -> int:
        try:
            status = await self.db.execute(f"DELETE FROM {self._table} WHERE credit_id = $1", [credit_id])
            return _deleted_count(status)
        except Exception as e:
            logger.error(f"Error deleting debts of credit {credit_id}: {e}")
            raise


__all__ = ["PostgresCreditRepository", "PostgresDebtRepository"]
