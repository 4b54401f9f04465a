"""
BUD Garden 서버 RPC 클라이언트 (비신뢰 클라이언트 측)

- 모든 호출은 요청 단위 타임아웃을 가진다 (응답 지연 시 실패로 처리)
- 잔액/가격 등 계산된 값은 절대 보내지 않는다. 식별자와 좌표만 전송
- 서버 에러 응답은 에러 코드별 예외로 변환
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from budgarden.config import Settings, settings as default_settings
from budgarden.schemas.balance import BalanceResponse, ClaimResponse, HarvestResponse
from budgarden.schemas.grid import OperationResponse, PlaceItemResponse
from budgarden.schemas.player import PlayerStateResponse, ReferralStatsResponse
from budgarden.schemas.shop import PurchaseResponse, ShopCatalogResponse

logger = logging.getLogger(__name__)

SchemaType = TypeVar("SchemaType", bound=BaseModel)


class RpcError(Exception):
    """서버 호출 실패"""

    def __init__(
        self,
        message: str,
        code: str = "RPC_ERROR",
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}


class NotFoundError(RpcError):
    """재시도해도 소용없는 실패 (플레이어/아이템/배치 없음)"""


class ConflictError(RpcError):
    """비즈니스 규칙 거절. 권위 있는 상태를 다시 받아와야 한다."""


class InsufficientBalanceError(RpcError):
    @property
    def shortfall(self) -> Decimal:
        return Decimal(str(self.details.get("shortfall", "0")))


class RequestRejectedError(RpcError):
    """요청 형식 오류 (422 등)"""


class TransientError(RpcError):
    """타임아웃, 연결 실패, 5xx - 다음 폴링에서 자연히 재시도"""


NOT_FOUND_CODES = {"PLAYER_NOT_FOUND", "UNKNOWN_ITEM", "NOT_FOUND_001", "INVALID_INVITE_CODE"}
CONFLICT_CODES = {
    "TILE_OCCUPIED",
    "PURCHASE_LIMIT_REACHED",
    "NOT_IN_INVENTORY",
    "USERNAME_TAKEN",
    "CONFLICT_001",
}


def error_from_response(response: httpx.Response) -> RpcError:
    """서버 에러 envelope {"success": false, "error": {...}}를 예외로 변환"""
    try:
        body = response.json()
    except ValueError:
        body = {}

    error = body.get("error") if isinstance(body, dict) else None
    error = error if isinstance(error, dict) else {}
    code = error.get("code", "HTTP_ERROR")
    message = error.get("message") or response.text or response.reason_phrase
    details = error.get("details") or {}
    status_code = response.status_code

    if status_code >= 500:
        return TransientError(message, code, status_code, details)
    if code == "BALANCE_001":
        return InsufficientBalanceError(message, code, status_code, details)
    if code in NOT_FOUND_CODES or status_code == 404:
        return NotFoundError(message, code, status_code, details)
    if code in CONFLICT_CODES or status_code == 409:
        return ConflictError(message, code, status_code, details)
    return RequestRejectedError(message, code, status_code, details)


class BudGardenRpcClient:
    """플레이어 한 명을 위한 비동기 RPC 클라이언트"""

    def __init__(
        self,
        player_id: str,
        settings: Settings = default_settings,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.player_id = player_id
        self.timeout = timeout if timeout is not None else settings.RPC_TIMEOUT_SECONDS
        self._client = httpx.AsyncClient(
            base_url=(base_url or settings.API_BASE_URL).rstrip("/"),
            timeout=self.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "BudGardenRpcClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def _player_path(self) -> str:
        return f"/players/{self.player_id}"

    async def _request(
        self, method: str, path: str, json: Optional[Dict[str, Any]] = None
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TimeoutException:
            logger.warning(f"RPC timeout: {method} {path} ({self.timeout}s)")
            raise TransientError("Server did not respond in time", code="TIMEOUT")
        except httpx.TransportError as e:
            logger.warning(f"RPC transport error: {method} {path}: {str(e)}")
            raise TransientError(f"Server unreachable: {str(e)}", code="UNREACHABLE")

        if response.status_code >= 400:
            error = error_from_response(response)
            logger.debug(
                f"RPC {method} {path} -> {response.status_code} {error.code}: {error.message}"
            )
            raise error

        try:
            return response.json()
        except ValueError:
            logger.warning(
                f"RPC {method} {path} returned non-JSON body ({response.status_code})"
            )
            raise TransientError(
                "Server returned an unreadable response",
                code="BAD_RESPONSE",
                status_code=response.status_code,
            )

    def _parse(self, schema: Type[SchemaType], data: Any) -> SchemaType:
        """응답 본문 검증. 형식이 맞지 않는 응답은 일시 장애로 취급"""
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            logger.warning(f"RPC response failed {schema.__name__} validation: {str(e)}")
            raise TransientError(
                f"Server returned a malformed {schema.__name__}", code="BAD_RESPONSE"
            )

    async def get_balance(self) -> BalanceResponse:
        data = await self._request("GET", f"{self._player_path}/balance")
        return self._parse(BalanceResponse, data)

    async def claim(self) -> ClaimResponse:
        data = await self._request("POST", f"{self._player_path}/claim")
        return self._parse(ClaimResponse, data)

    async def harvest(self) -> HarvestResponse:
        data = await self._request("POST", f"{self._player_path}/harvest")
        return self._parse(HarvestResponse, data)

    async def get_state(self) -> PlayerStateResponse:
        data = await self._request("GET", f"{self._player_path}/state")
        return self._parse(PlayerStateResponse, data)

    async def get_referral_stats(self) -> ReferralStatsResponse:
        data = await self._request("GET", f"{self._player_path}/referrals")
        return self._parse(ReferralStatsResponse, data)

    async def list_shop(self) -> ShopCatalogResponse:
        data = await self._request("GET", f"{self._player_path}/shop")
        return self._parse(ShopCatalogResponse, data)

    async def purchase_item(self, item_kind: str) -> PurchaseResponse:
        data = await self._request(
            "POST", f"{self._player_path}/shop/purchase", json={"item_kind": item_kind}
        )
        return self._parse(PurchaseResponse, data)

    async def place_item(
        self, item_kind: str, row: int, col: int, rotation: int = 0
    ) -> PlaceItemResponse:
        data = await self._request(
            "POST",
            f"{self._player_path}/placed-items",
            json={"item_kind": item_kind, "row": row, "col": col, "rotation": rotation},
        )
        return self._parse(PlaceItemResponse, data)

    async def move_item(self, placed_item_id: int, row: int, col: int) -> OperationResponse:
        data = await self._request(
            "POST",
            f"{self._player_path}/placed-items/{placed_item_id}/move",
            json={"row": row, "col": col},
        )
        return self._parse(OperationResponse, data)

    async def rotate_item(self, placed_item_id: int, rotation: int) -> OperationResponse:
        data = await self._request(
            "POST",
            f"{self._player_path}/placed-items/{placed_item_id}/rotate",
            json={"rotation": rotation},
        )
        return self._parse(OperationResponse, data)

    async def remove_item(self, placed_item_id: int) -> OperationResponse:
        data = await self._request(
            "DELETE", f"{self._player_path}/placed-items/{placed_item_id}"
        )
        return self._parse(OperationResponse, data)
