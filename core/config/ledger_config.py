#!/usr/bin/env python3
"""Credit ledger main configuration

Combines all sub-configs into the settings object handed to the factory.
"""
import os
from dataclasses import dataclass, field

from .infra_config import InfraConfig
from .logging_config import LoggingConfig
from .service_config import ServiceConfig


@dataclass
class LedgerConfig:
    """Top-level settings for the credit ledger service"""
    environment: str = "development"
    debug: bool = False

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    infra: InfraConfig = field(default_factory=InfraConfig)
    services: ServiceConfig = field(default_factory=ServiceConfig)

    @classmethod
    def from_env(cls) -> 'LedgerConfig':
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            environment=env,
            debug=os.getenv("DEBUG", "false").lower() == "true",
            logging=LoggingConfig.from_env(),
            infra=InfraConfig.from_env(),
            services=ServiceConfig.from_env(),
        )
