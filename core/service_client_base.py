"""
Base Service Client for Outbound Service Communication

Base class for HTTP clients that talk to peer services.
"""

import httpx
import logging
from typing import Optional, Dict, Any
from abc import ABC

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)


class TransientServiceError(Exception):
    """Raised for responses worth retrying (5xx)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BaseServiceClient(ABC):
    """
    Service client base class

    Handles:
    1. HTTP client management
    2. Timeout control
    3. Bounded retry with exponential backoff for transport errors and 5xx

    Example:
        class TransactionServiceClient(BaseServiceClient):
            service_name = "transaction_service"

            async def history(self, product_id: str):
                response = await self.request("GET", f"/v1/transactions/{product_id}/card")
                return response.json()
    """

    # Subclasses define this
    service_name: str = None

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        max_attempts: int = 3,
        backoff_max: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize service client

        Args:
            base_url: Base URL of the peer service
            timeout: Request timeout (seconds)
            max_attempts: Total attempts per request, including the first one
            backoff_max: Upper bound of the exponential wait between attempts (seconds)
            client: Pre-built httpx.AsyncClient (tests inject one with a mock transport)
        """
        if not self.service_name:
            raise ValueError(f"{self.__class__.__name__} must define 'service_name'")

        self.base_url = base_url.rstrip('/')
        self.max_attempts = max(1, max_attempts)
        self.backoff_max = backoff_max
        self.client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={
                "Content-Type": "application/json",
                "User-Agent": f"credit-ledger-client/{self.service_name}",
            },
        )

        logger.debug(f"Initialized {self.service_name} client: {self.base_url}")

    async def close(self):
        """Close the HTTP client"""
        await self.client.aclose()
        logger.debug(f"Closed {self.service_name} client")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """
        Send a request, retrying transport errors and 5xx responses.

        4xx responses are returned as-is; the caller decides what they mean.

        Raises:
            httpx.TransportError: transport still failing after the last attempt
            TransientServiceError: 5xx still returned after the last attempt
        """
        url = f"{self.base_url}{path}"

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=self.backoff_max),
            retry=retry_if_exception_type((httpx.TransportError, TransientServiceError)),
            reraise=True,
        ):
            with attempt:
                number = attempt.retry_state.attempt_number
                if number > 1:
                    logger.warning(f"Retrying {method} {url} (attempt {number}/{self.max_attempts})")
                response = await self.client.request(method, url, json=json, params=params)
                if response.status_code >= 500:
                    raise TransientServiceError(
                        f"{self.service_name} returned HTTP {response.status_code}",
                        status_code=response.status_code,
                    )
        return response


__all__ = ["BaseServiceClient", "TransientServiceError"]
