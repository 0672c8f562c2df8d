"""
Transaction Service Client Unit Tests

Exercises the HTTP adapter against httpx.MockTransport: payload shape,
response parsing, retry of transport errors and 5xx, and error mapping.
"""
import json
from decimal import Decimal

import httpx
import pytest

from core.config.service_config import ServiceConfig
from microservices.credit_ledger_service.clients.transaction_client import (
    HISTORY_PATH,
    RECORD_PATH,
    TransactionServiceClient,
)
from microservices.credit_ledger_service.models import TransactionRequest, TransactionTypeEnum
from microservices.credit_ledger_service.protocols import OperationFailedError

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]

BASE_URL = "http://transactions.test"


def _ack(product_id="cred_1", client_id="cli_1", tx_type="CHARGE", amount="10.50", balance="89.50"):
    return {
        "id": "txn_0001",
        "productId": product_id,
        "clientId": client_id,
        "type": tx_type,
        "amount": amount,
        "balance": balance,
        "createdDate": "2024-05-15T10:00:00Z",
    }


class ScriptedTransport:
    """Replays scripted responses and keeps every request"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _client(transport: ScriptedTransport, max_attempts: int = 3) -> TransactionServiceClient:
    config = ServiceConfig(
        transaction_service_url=BASE_URL,
        transaction_timeout_seconds=1.0,
        transaction_max_attempts=max_attempts,
        transaction_backoff_max_seconds=0.1,
    )
    http = httpx.AsyncClient(transport=httpx.MockTransport(transport))
    return TransactionServiceClient(config=config, client=http)


def _request(amount="10.50", balance="89.50"):
    return TransactionRequest(
        product_id="cred_1",
        client_id="cli_1",
        type=TransactionTypeEnum.CHARGE,
        amount=Decimal(amount),
        balance=Decimal(balance),
    )


class TestRecord:

    async def test_posts_camel_case_payload(self):
        transport = ScriptedTransport(httpx.Response(201, json=_ack()))
        async with _client(transport) as client:
            record = await client.record(_request())

        sent = transport.requests[0]
        assert sent.method == "POST"
        assert str(sent.url) == f"{BASE_URL}{RECORD_PATH}"
        assert json.loads(sent.content) == {
            "productId": "cred_1",
            "clientId": "cli_1",
            "type": "CHARGE",
            "amount": "10.50",
            "balance": "89.50",
        }
        assert record.transaction_id == "txn_0001"
        assert record.type == TransactionTypeEnum.CHARGE
        assert record.amount == Decimal("10.50")
        assert record.balance == Decimal("89.50")

    async def test_retries_server_errors(self):
        transport = ScriptedTransport(
            httpx.Response(503, json={"message": "unavailable"}),
            httpx.Response(201, json=_ack()),
        )
        async with _client(transport) as client:
            record = await client.record(_request())

        assert len(transport.requests) == 2
        assert record.product_id == "cred_1"

    async def test_gives_up_after_max_attempts(self):
        transport = ScriptedTransport(httpx.Response(500), httpx.Response(502), httpx.Response(500))
        async with _client(transport, max_attempts=3) as client:
            with pytest.raises(OperationFailedError) as exc_info:
                await client.record(_request())

        assert len(transport.requests) == 3
        assert exc_info.value.error_code == "CREDIT-000"
        assert exc_info.value.details["path"] == RECORD_PATH

    async def test_transport_errors_are_retried(self):
        transport = ScriptedTransport(
            httpx.ConnectError("connection refused"),
            httpx.Response(201, json=_ack()),
        )
        async with _client(transport) as client:
            await client.record(_request())

        assert len(transport.requests) == 2

    async def test_persistent_transport_error(self):
        transport = ScriptedTransport(httpx.ConnectError("connection refused"))
        async with _client(transport, max_attempts=2) as client:
            with pytest.raises(OperationFailedError):
                await client.record(_request())

        assert len(transport.requests) == 2

    async def test_client_error_not_retried(self):
        transport = ScriptedTransport(httpx.Response(400, json={"message": "bad request"}))
        async with _client(transport) as client:
            with pytest.raises(OperationFailedError) as exc_info:
                await client.record(_request())

        assert len(transport.requests) == 1
        assert exc_info.value.details["status"] == 400

    async def test_unreadable_body(self):
        transport = ScriptedTransport(httpx.Response(201, json={"unexpected": True}))
        async with _client(transport) as client:
            with pytest.raises(OperationFailedError) as exc_info:
                await client.record(_request())

        assert exc_info.value.details["reason"] == "invalid_response"


class TestHistory:

    async def test_list_body(self):
        transport = ScriptedTransport(
            httpx.Response(
                200,
                json=[_ack(), _ack(tx_type="PAYMENT", amount="5", balance="94.50")],
            )
        )
        async with _client(transport) as client:
            records = await client.history("cred_1")

        sent = transport.requests[0]
        assert sent.method == "GET"
        assert str(sent.url) == BASE_URL + HISTORY_PATH.format(product_id="cred_1")
        assert [r.type for r in records] == [TransactionTypeEnum.CHARGE, TransactionTypeEnum.PAYMENT]
        assert records[1].balance == Decimal("94.50")

    async def test_paged_body(self):
        transport = ScriptedTransport(httpx.Response(200, json={"items": [_ack()], "total": 1}))
        async with _client(transport) as client:
            records = await client.history("cred_1")

        assert len(records) == 1

    async def test_snake_case_body(self):
        item = {
            "transaction_id": "txn_9",
            "product_id": "cred_1",
            "client_id": "cli_1",
            "type": "PAYMENT",
            "amount": 12.5,
            "balance": 100,
        }
        transport = ScriptedTransport(httpx.Response(200, json=[item]))
        async with _client(transport) as client:
            records = await client.history("cred_1")

        assert records[0].transaction_id == "txn_9"
        assert records[0].amount == Decimal("12.5")

    async def test_not_found(self):
        transport = ScriptedTransport(httpx.Response(404))
        async with _client(transport) as client:
            with pytest.raises(OperationFailedError) as exc_info:
                await client.history("cred_missing")

        assert exc_info.value.details["status"] == 404
