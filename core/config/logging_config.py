#!/usr/bin/env python3
"""Logging configuration"""
import os
from dataclasses import dataclass

def _bool(val: str) -> bool:
    return val.lower() == "true"


@dataclass
class LoggingConfig:
    """Logging configuration"""
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(service)s [%(environment)s] - %(name)s - %(levelname)s - %(message)s"
    log_file: str = ""
    enable_console: bool = True

    # Service identity for logging
    service_name: str = "credit_ledger_service"
    environment: str = "development"

    @classmethod
    def from_env(cls) -> 'LoggingConfig':
        """Load logging config from environment variables"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            log_level=os.getenv("LOG_LEVEL", "DEBUG" if env == "development" else "INFO"),
            log_format=os.getenv("LOG_FORMAT", "%(asctime)s - %(service)s [%(environment)s] - %(name)s - %(levelname)s - %(message)s"),
            log_file=os.getenv("LOG_FILE", ""),
            enable_console=_bool(os.getenv("LOG_CONSOLE", "true")),
            service_name=os.getenv("SERVICE_NAME", "credit_ledger_service"),
            environment=env,
        )
