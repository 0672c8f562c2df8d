#!/usr/bin/env python3
"""Service configuration for the credit ledger

External collaborators the ledger calls (transaction service) and the
storage backend selection.
"""
import os
from dataclasses import dataclass

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default

def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default


@dataclass
class ServiceConfig:
    """Ledger collaborator endpoints and retry policy"""

    # ===========================================
    # Transaction service (history recorder)
    # ===========================================
    transaction_service_url: str = "http://localhost:8090"
    transaction_timeout_seconds: float = 10.0
    transaction_max_attempts: int = 3
    transaction_backoff_max_seconds: float = 5.0

    # ===========================================
    # Storage
    # ===========================================
    storage_backend: str = "postgres"  # postgres | memory

    @classmethod
    def from_env(cls) -> 'ServiceConfig':
        """Load service configuration from environment variables"""
        return cls(
            transaction_service_url=os.getenv("TRANSACTION_SERVICE_URL", "http://localhost:8090"),
            transaction_timeout_seconds=_float(os.getenv("TRANSACTION_TIMEOUT_SECONDS", "10"), 10.0),
            transaction_max_attempts=_int(os.getenv("TRANSACTION_MAX_ATTEMPTS", "3"), 3),
            transaction_backoff_max_seconds=_float(os.getenv("TRANSACTION_BACKOFF_MAX_SECONDS", "5"), 5.0),
            storage_backend=os.getenv("LEDGER_STORAGE_BACKEND", "postgres").lower(),
        )
