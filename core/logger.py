"""
Service logger setup

Configures the standard library logger for a service from LoggingConfig.
Every record handled by the service logger carries `service` and
`environment` attributes, so formats may reference %(service)s and
%(environment)s.
"""

import logging
import sys
from typing import Optional

from .config.logging_config import LoggingConfig


class ServiceContextFilter(logging.Filter):
    """Stamps service identity onto log records"""

    def __init__(self, service: str, environment: str):
        super().__init__()
        self.service = service
        self.environment = environment

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = self.service
        record.environment = self.environment
        return True


def setup_service_logger(
    service_name: str,
    level: Optional[str] = None,
    config: Optional[LoggingConfig] = None,
) -> logging.Logger:
    """
    Configure and return the root logger of a service.

    Args:
        service_name: Logger name (also used as the package prefix)
        level: Overrides config.log_level when given
        config: Logging configuration (loaded from env if not provided)

    Returns:
        The configured service logger
    """
    config = config or LoggingConfig.from_env()
    log_level = getattr(logging, (level or config.log_level).upper(), logging.INFO)
    formatter = logging.Formatter(config.log_format)
    context = ServiceContextFilter(config.service_name, config.environment)

    logger = logging.getLogger(service_name)
    logger.setLevel(log_level)

    # Idempotent: repeated setup replaces previous handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    if config.enable_console:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(formatter)
        console.addFilter(context)
        logger.addHandler(console)

    if config.log_file:
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(context)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


__all__ = ["setup_service_logger", "ServiceContextFilter"]
