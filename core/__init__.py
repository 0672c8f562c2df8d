#!/usr/bin/env python3
"""
Core Module for the Credit Ledger

Shared infrastructure components used by the ledger service.

COMPONENTS:
    - config/: Modular configuration (logging, infra, services) loaded from env
    - logger.py: Service logger setup
    - postgres_client.py: asyncpg connection pool wrapper
    - service_client_base.py: HTTP client base with bounded retry

USAGE:
    from core.config import get_settings
    from core.logger import setup_service_logger

    settings = get_settings()
    logger = setup_service_logger("credit_ledger_service", config=settings.logging)
"""

from .logger import setup_service_logger
from .service_client_base import BaseServiceClient, TransientServiceError

__all__ = [
    "setup_service_logger",
    "BaseServiceClient",
    "TransientServiceError",
]

__version__ = "1.0.0"
