"""
Credit Ledger Service Factory

Factory for creating CreditLedgerService with real dependencies.
This is the ONLY module that imports concrete implementations.
"""

import logging
from typing import Optional

from core.config import LedgerConfig, get_settings
from core.logger import setup_service_logger
from core.postgres_client import PostgresClientWrapper

from .clients.account_number import RandomAccountNumberGenerator
from .clients.transaction_client import TransactionServiceClient
from .credit_ledger_service import CreditLedgerService
from .credit_repository import PostgresCreditRepository, PostgresDebtRepository
from .memory_repository import InMemoryCreditRepository, InMemoryDebtRepository

logger = logging.getLogger(__name__)

SERVICE_NAME = "credit_ledger_service"


class CreditLedgerRuntime:
    """The service plus the resources it owns, closed together."""

    def __init__(
        self,
        service: CreditLedgerService,
        transaction_client: Optional[TransactionServiceClient] = None,
        db: Optional[PostgresClientWrapper] = None,
    ):
        self.service = service
        self.transaction_client = transaction_client
        self.db = db

    async def close(self):
        if self.transaction_client is not None:
            await self.transaction_client.close()
        if self.db is not None:
            await self.db.close()
        logger.info("Credit ledger resources closed")


async def create_credit_ledger_service(
    settings: Optional[LedgerConfig] = None,
    transaction_recorder=None,
    account_number_generator=None,
) -> CreditLedgerRuntime:
    """
    Create CreditLedgerService with all real dependencies

    Args:
        settings: Optional settings (global settings if not provided)
        transaction_recorder: Optional recorder (HTTP client if not provided)
        account_number_generator: Optional generator (random generator if not provided)

    Returns:
        Runtime holding the initialized service and its closable resources
    """
    settings = settings or get_settings()
    setup_service_logger("microservices.credit_ledger_service", config=settings.logging)

    db = None
    backend = settings.services.storage_backend
    if backend == "memory":
        credit_repository = InMemoryCreditRepository()
        debt_repository = InMemoryDebtRepository()
        logger.info("Using in-memory stores")
    elif backend == "postgres":
        db = PostgresClientWrapper(SERVICE_NAME, config=settings.infra)
        await db.connect()
        credit_repository = PostgresCreditRepository(db, schema=settings.infra.postgres_schema)
        debt_repository = PostgresDebtRepository(db, schema=settings.infra.postgres_schema)
        await credit_repository.initialize()
        await debt_repository.initialize()
    else:
        raise ValueError(f"Unknown storage backend: {backend}")

    transaction_client = None
    if transaction_recorder is None:
        transaction_client = TransactionServiceClient(config=settings.services)
        transaction_recorder = transaction_client

    service = CreditLedgerService(
        credit_repository=credit_repository,
        debt_repository=debt_repository,
        transaction_recorder=transaction_recorder,
        account_number_generator=account_number_generator or RandomAccountNumberGenerator(),
    )
    logger.info(f"Credit ledger service ready (storage={backend})")
    return CreditLedgerRuntime(service, transaction_client=transaction_client, db=db)


__all__ = ["create_credit_ledger_service", "CreditLedgerRuntime"]
