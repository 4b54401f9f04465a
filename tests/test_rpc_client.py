import asyncio
import json
from decimal import Decimal

import httpx
import pytest

from budgarden.client.rpc import (
    BudGardenRpcClient,
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
    RequestRejectedError,
    TransientError,
)


def error_body(code: str, message: str = "error", details=None) -> dict:
    return {"success": False, "error": {"code": code, "message": message, "details": details or {}}}


def make_client(settings, handler) -> BudGardenRpcClient:
    return BudGardenRpcClient(
        "player-1", settings=settings, transport=httpx.MockTransport(handler)
    )


def call(settings, handler, method_name: str, *args):
    async def _run():
        async with make_client(settings, handler) as client:
            return await getattr(client, method_name)(*args)

    return asyncio.run(_run())


class TestRequests:
    def test_get_balance(self, settings):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path))
            return httpx.Response(
                200,
                json={
                    "total_balance": "100.000000",
                    "accumulated_balance": "12.500000",
                    "accrual_rate_per_minute": "1000",
                    "server_time": "2025-01-01T12:00:00Z",
                },
            )

        balance = call(settings, handler, "get_balance")

        assert seen == [("GET", "/api/v1/players/player-1/balance")]
        assert balance.total_balance == Decimal("100")
        assert balance.accumulated_balance == Decimal("12.5")

    def test_purchase_sends_item_kind_only(self, settings):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(
                200,
                json={"success": True, "new_count": 1, "new_balance": "40", "message": "ok"},
            )

        result = call(settings, handler, "purchase_item", "golden-bud")

        assert bodies == [{"item_kind": "golden-bud"}]
        assert result.new_balance == Decimal("40")

    def test_place_item(self, settings):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(201, json={"placed_item_id": 7})

        result = call(settings, handler, "place_item", "sprout", 1, 2, 1)

        assert result.placed_item_id == 7
        assert requests == [
            (
                "POST",
                "/api/v1/players/player-1/placed-items",
                {"item_kind": "sprout", "row": 1, "col": 2, "rotation": 1},
            )
        ]

    def test_remove_item(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "DELETE"
            assert request.url.path == "/api/v1/players/player-1/placed-items/7"
            return httpx.Response(200, json={"success": True})

        assert call(settings, handler, "remove_item", 7).success is True


class TestErrorMapping:
    @pytest.mark.parametrize(
        "status_code,code,expected",
        [
            (404, "PLAYER_NOT_FOUND", NotFoundError),
            (404, "UNKNOWN_ITEM", NotFoundError),
            (404, "NOT_FOUND_001", NotFoundError),
            (409, "TILE_OCCUPIED", ConflictError),
            (409, "PURCHASE_LIMIT_REACHED", ConflictError),
            (409, "NOT_IN_INVENTORY", ConflictError),
            (400, "BALANCE_001", InsufficientBalanceError),
            (422, "VALIDATION_001", RequestRejectedError),
            (500, "INTERNAL_001", TransientError),
            (503, "HTTP_ERROR", TransientError),
        ],
    )
    def test_error_codes(self, settings, status_code, code, expected):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, json=error_body(code, "rejected"))

        with pytest.raises(expected) as exc_info:
            call(settings, handler, "claim")

        assert exc_info.value.code == code
        assert exc_info.value.status_code == status_code

    def test_insufficient_balance_shortfall(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400,
                json=error_body(
                    "BALANCE_001",
                    details={"required": "60", "available": "45", "shortfall": "15.000000"},
                ),
            )

        with pytest.raises(InsufficientBalanceError) as exc_info:
            call(settings, handler, "purchase_item", "golden-bud")

        assert exc_info.value.shortfall == Decimal("15")

    def test_non_json_error_body(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        with pytest.raises(TransientError) as exc_info:
            call(settings, handler, "get_balance")

        assert exc_info.value.message == "Bad Gateway"

    def test_timeout_is_transient(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransientError) as exc_info:
            call(settings, handler, "get_balance")

        assert exc_info.value.code == "TIMEOUT"

    def test_connection_error_is_transient(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransientError) as exc_info:
            call(settings, handler, "claim")

        assert exc_info.value.code == "UNREACHABLE"

    def test_non_json_success_body_is_transient(self, settings):
        """프록시/캡티브 포털이 돌려준 200 HTML 응답"""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>captive portal</html>")

        with pytest.raises(TransientError) as exc_info:
            call(settings, handler, "get_balance")

        assert exc_info.value.code == "BAD_RESPONSE"
        assert exc_info.value.status_code == 200

    @pytest.mark.parametrize(
        "body",
        [
            {"total_balance": "lots"},
            ["not", "an", "object"],
            "just a string",
        ],
    )
    def test_malformed_success_body_is_transient(self, settings, body):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=body)

        with pytest.raises(TransientError) as exc_info:
            call(settings, handler, "get_balance")

        assert exc_info.value.code == "BAD_RESPONSE"
