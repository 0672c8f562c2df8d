"""
Transaction Service HTTP Client

Provides async HTTP client for the transaction service that records every
applied charge/payment and serves the transaction history of an account.
Implements TransactionRecorderProtocol for dependency injection.
"""

import httpx
import logging
from typing import List, Optional

from core.config.service_config import ServiceConfig
from core.service_client_base import BaseServiceClient, TransientServiceError

from ..models import TransactionRecord, TransactionRequest
from ..protocols import OperationFailedError

logger = logging.getLogger(__name__)

RECORD_PATH = "/v1/transactions"
HISTORY_PATH = "/v1/transactions/{product_id}/card"


class TransactionServiceClient(BaseServiceClient):
    """Async HTTP client for the transaction service"""

    service_name = "transaction_service"

    def __init__(
        self,
        base_url: str = "http://localhost:8090",
        config: Optional[ServiceConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize TransactionServiceClient

        Args:
            base_url: Base URL for the transaction service
            config: ServiceConfig carrying URL, timeout and retry policy
            client: Pre-built httpx client (tests inject a mock transport)
        """
        if config:
            super().__init__(
                base_url=config.transaction_service_url,
                timeout=config.transaction_timeout_seconds,
                max_attempts=config.transaction_max_attempts,
                backoff_max=config.transaction_backoff_max_seconds,
                client=client,
            )
        else:
            super().__init__(base_url=base_url, client=client)
        logger.info(f"TransactionServiceClient initialized with base_url: {self.base_url}")

    async def record(self, transaction: TransactionRequest) -> TransactionRecord:
        """
        Record an applied charge/payment.

        Returns:
            The transaction as acknowledged by the service

        Raises:
            OperationFailedError: Service unreachable, rejected the request
                or answered with an unreadable body
        """
        try:
            response = await self.request("POST", RECORD_PATH, json=transaction.to_payload())
            response.raise_for_status()
            record = TransactionRecord.from_payload(response.json())
            logger.info(f"Request to {RECORD_PATH} succeeded: {record.transaction_id}")
            return record
        except httpx.HTTPStatusError as e:
            logger.error(f"Error during request to {RECORD_PATH}: HTTP {e.response.status_code}")
            raise OperationFailedError(status=e.response.status_code, path=RECORD_PATH) from e
        except (httpx.TransportError, TransientServiceError) as e:
            logger.error(f"Error during request to {RECORD_PATH}: {e}")
            raise OperationFailedError(reason=str(e), path=RECORD_PATH) from e
        except (ValueError, TypeError, KeyError, ArithmeticError) as e:
            logger.error(f"Unreadable response from {RECORD_PATH}: {e}")
            raise OperationFailedError(reason="invalid_response", path=RECORD_PATH) from e

    async def history(self, product_id: str) -> List[TransactionRecord]:
        """
        Transaction history of a credit account.

        Raises:
            OperationFailedError: Service unreachable, rejected the request
                or answered with an unreadable body
        """
        path = HISTORY_PATH.format(product_id=product_id)
        try:
            response = await self.request("GET", path)
            response.raise_for_status()
            payload = response.json()
            items = payload.get("items", []) if isinstance(payload, dict) else payload
            records = [TransactionRecord.from_payload(item) for item in items]
            logger.info(f"Request to {path} succeeded: {len(records)} transaction(s)")
            return records
        except httpx.HTTPStatusError as e:
            logger.error(f"Error during request to {path}: HTTP {e.response.status_code}")
            raise OperationFailedError(status=e.response.status_code, path=path) from e
        except (httpx.TransportError, TransientServiceError) as e:
            logger.error(f"Error during request to {path}: {e}")
            raise OperationFailedError(reason=str(e), path=path) from e
        except (ValueError, TypeError, KeyError, AttributeError, ArithmeticError) as e:
            logger.error(f"Unreadable response from {path}: {e}")
            raise OperationFailedError(reason="invalid_response", path=path) from e
