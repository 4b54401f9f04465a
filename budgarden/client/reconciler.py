"""
조정(Reconciliation) 클라이언트

비신뢰 클라이언트에서 실행되며 서버 응답만을 권위 있는 값으로 취급한다.

1. 시작: claim 1회 → 전체 상태 조회 → 로컬 상태 교체 → 오프라인 캐시 기록
   서버에 닿지 않으면 캐시를 표시 전용으로 불러오고 오프라인 모드로 표시
2. 폴링: 주기마다 getBalance로 잔액을 무조건 덮어씀 (병합 없음)
   실패한 주기는 로그만 남기고 다음 주기에 재시도, 오프라인이었다면 복구 시 전체 재조회
3. 변경 요청: 서버 우선. 잔액은 서버 응답으로만 갱신
   그리드 조작은 낙관적으로 반영하고 실패 시 되돌림
4. 오프라인 추정치: 표시 전용 계산. 저장/전송하지 않으며 재연결 시 폐기
"""

import asyncio
import contextlib
import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, Optional

from pydantic import BaseModel, Field

from budgarden.client.grid import GridMirror
from budgarden.client.offline_cache import OfflineCache
from budgarden.client.rpc import (
    BudGardenRpcClient,
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
    RpcError,
    TransientError,
)
from budgarden.config import Settings, settings as default_settings
from budgarden.schemas.balance import BalanceResponse, HarvestResponse
from budgarden.schemas.cache import OfflineCacheSnapshot
from budgarden.schemas.grid import PlacedItemView
from budgarden.schemas.player import InventoryItem, PlayerStateResponse
from budgarden.schemas.shop import PurchaseResponse
from budgarden.utils.amount_utils import accrued_amount
from budgarden.utils.timezone_utils import Clock, elapsed_minutes, utc_now

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]

# 서버 확인 전 낙관적 배치의 임시 ID
PENDING_ID = 0

_NOTIFY_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def log_notifier(level: str, message: str) -> None:
    """기본 알림 - UI가 없으면 로그로 대신한다."""
    logger.log(_NOTIFY_LEVELS.get(level, logging.INFO), f"[notify] {message}")


class GameView(BaseModel):
    """화면에 표시되는 상태. authoritative=False면 오프라인(표시 전용)"""

    total_balance: Decimal = Decimal("0")
    accumulated_balance: Decimal = Decimal("0")
    accrual_rate_per_minute: Decimal = Decimal("0")
    inventory: Dict[str, int] = Field(default_factory=dict)
    synced_at: Optional[datetime] = None
    authoritative: bool = False


class ReconciliationClient:
    def __init__(
        self,
        rpc: BudGardenRpcClient,
        cache: OfflineCache,
        grid: GridMirror,
        notify: Optional[Notifier] = None,
        sync_interval: float = 1.0,
        clock: Clock = utc_now,
    ):
        self.rpc = rpc
        self.cache = cache
        self.grid = grid
        self.notify = notify if notify is not None else log_notifier
        self.sync_interval = sync_interval
        self.clock = clock
        self.view = GameView()
        self._poll_task: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(
        cls,
        player_id: str,
        settings: Settings = default_settings,
        notify: Optional[Notifier] = None,
        **rpc_kwargs,
    ) -> "ReconciliationClient":
        return cls(
            rpc=BudGardenRpcClient(player_id, settings=settings, **rpc_kwargs),
            cache=OfflineCache(settings.OFFLINE_CACHE_PATH, key=settings.OFFLINE_CACHE_KEY),
            grid=GridMirror(settings.GRID_ROWS, settings.GRID_COLS, settings.BLOCKED_TILES),
            notify=notify,
            sync_interval=settings.SYNC_INTERVAL_SECONDS,
        )

    @property
    def degraded(self) -> bool:
        return not self.view.authoritative

    # ------------------------------------------------------------------
    # 세션 시작 / 종료
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """
        세션 시작. 서버 상태로 동기화되면 True, 오프라인 모드면 False

        플레이어가 없는 등 재시도 불가능한 에러는 그대로 전파된다.
        """
        try:
            await self.rpc.claim()
            state = await self.rpc.get_state()
        except TransientError as e:
            logger.warning(f"Session start could not reach server: {e.message}")
            self._enter_offline_mode()
        else:
            self._apply_state(state)

        if self._poll_task is None:
            self._poll_task = asyncio.create_task(self._poll_loop())
        return self.view.authoritative

    async def stop(self) -> None:
        """폴링 중단. 이미 커밋된 서버 측 효과는 그대로 유지된다."""
        if self._poll_task is not None:
            self._poll_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._poll_task
            self._poll_task = None
        await self.rpc.aclose()

    # ------------------------------------------------------------------
    # 동기화
    # ------------------------------------------------------------------

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sync_interval)
            try:
                await self.sync_once()
            except Exception:
                # 한 주기의 실패가 폴링 자체를 멈추지 않도록 기록 후 다음 주기로
                logger.exception("Unexpected error during balance sync")

    async def sync_once(self) -> bool:
        """폴링 1회. 실패는 로그만 남기고 False 반환"""
        try:
            if self.degraded:
                state = await self.rpc.get_state()
                self._apply_state(state)
                self.notify("info", "Reconnected to server")
            else:
                balance = await self.rpc.get_balance()
                self._apply_balance(balance)
        except RpcError as e:
            logger.warning(f"Balance sync failed ({e.code}): {e.message}")
            return False
        return True

    async def refresh_state(self) -> bool:
        try:
            state = await self.rpc.get_state()
        except RpcError as e:
            logger.warning(f"State refresh failed ({e.code}): {e.message}")
            return False
        self._apply_state(state)
        return True

    def _apply_state(self, state: PlayerStateResponse) -> None:
        """서버 상태로 통째로 교체"""
        self.view = GameView(
            total_balance=state.balance.total_balance,
            accumulated_balance=state.balance.accumulated_balance,
            accrual_rate_per_minute=state.balance.accrual_rate_per_minute,
            inventory={entry.item_kind: entry.count for entry in state.inventory},
            synced_at=state.balance.server_time,
            authoritative=True,
        )
        self.grid.replace_all(state.placed_items)
        self._write_cache()

    def _apply_balance(self, balance: BalanceResponse) -> None:
        self.view.total_balance = balance.total_balance
        self.view.accumulated_balance = balance.accumulated_balance
        self.view.accrual_rate_per_minute = balance.accrual_rate_per_minute
        self.view.synced_at = balance.server_time
        self.view.authoritative = True
        self._write_cache()

    def _write_cache(self) -> None:
        snapshot = OfflineCacheSnapshot(
            player_id=self.rpc.player_id,
            total_balance=self.view.total_balance,
            accumulated_balance=self.view.accumulated_balance,
            accrual_rate_per_minute=self.view.accrual_rate_per_minute,
            inventory=[
                InventoryItem(item_kind=kind, count=count)
                for kind, count in self.view.inventory.items()
            ],
            # 서버 ID를 받기 전의 낙관적 배치는 캐시에 남기지 않음
            placed_items=[item for item in self.grid.items() if item.id != PENDING_ID],
            synced_at=self.view.synced_at or self.clock(),
        )
        try:
            self.cache.write(snapshot)
        except OSError as e:
            logger.warning(f"Offline cache write failed: {str(e)}")

    def _enter_offline_mode(self) -> None:
        snapshot = self.cache.read()
        if snapshot is not None and snapshot.player_id == self.rpc.player_id:
            self.view = GameView(
                total_balance=snapshot.total_balance,
                accumulated_balance=snapshot.accumulated_balance,
                accrual_rate_per_minute=snapshot.accrual_rate_per_minute,
                inventory={entry.item_kind: entry.count for entry in snapshot.inventory},
                synced_at=snapshot.synced_at,
                authoritative=False,
            )
            self.grid.replace_all(snapshot.placed_items)
        else:
            self.view = GameView(authoritative=False)
        self.notify("warning", "Offline: showing last synced state, actions are disabled")

    def estimated_display_balance(self, now: Optional[datetime] = None) -> Decimal:
        """
        표시용 누적 잔액

        온라인이면 서버 값 그대로. 오프라인이면 캐시 값 + 캐시 생산량 x 경과 시간 추정치.
        이 값은 어디에도 저장/전송되지 않는다.
        """
        if self.view.authoritative or self.view.synced_at is None:
            return self.view.accumulated_balance
        minutes = elapsed_minutes(self.view.synced_at, now or self.clock())
        return self.view.accumulated_balance + accrued_amount(
            self.view.accrual_rate_per_minute, minutes
        )

    # ------------------------------------------------------------------
    # 변경 요청
    # ------------------------------------------------------------------

    def _refuse_if_offline(self, action: str) -> bool:
        if self.degraded:
            self.notify("warning", f"Cannot {action} while offline")
            return True
        return False

    async def _report_failure(self, action: str, error: RpcError) -> None:
        if isinstance(error, TransientError):
            self.notify("error", f"Could not {action}: server unreachable, try again")
        elif isinstance(error, (ConflictError, NotFoundError)):
            self.notify("warning", f"Could not {action}: {error.message}")
            # 로컬 미러가 어긋났을 수 있으므로 권위 있는 상태로 다시 그림
            await self.refresh_state()
        else:
            self.notify("error", f"Could not {action}: {error.message}")

    def _adjust_inventory(self, item_kind: str, delta: int) -> None:
        count = self.view.inventory.get(item_kind, 0) + delta
        if count > 0:
            self.view.inventory[item_kind] = count
        else:
            self.view.inventory.pop(item_kind, None)

    async def harvest(self) -> Optional[HarvestResponse]:
        if self._refuse_if_offline("harvest"):
            return None
        try:
            result = await self.rpc.harvest()
        except RpcError as e:
            await self._report_failure("harvest", e)
            return None

        if result.warning:
            self.notify("warning", result.warning)
        try:
            self._apply_balance(await self.rpc.get_balance())
        except RpcError as e:
            logger.warning(f"Balance refresh after harvest failed: {e.message}")
        return result

    async def purchase(self, item_kind: str) -> Optional[PurchaseResponse]:
        if self._refuse_if_offline("purchase"):
            return None
        try:
            result = await self.rpc.purchase_item(item_kind)
        except InsufficientBalanceError as e:
            # 로컬 상태는 건드리지 않음
            self.notify("warning", f"Not enough BUD: {e.shortfall} more needed")
            return None
        except RpcError as e:
            await self._report_failure("purchase", e)
            return None

        if result.new_balance is not None:
            self.view.total_balance = result.new_balance
        if result.new_count is not None:
            self.view.inventory[item_kind] = result.new_count
        self._write_cache()
        return result

    async def place_item(
        self, item_kind: str, row: int, col: int, rotation: int = 0
    ) -> Optional[int]:
        """배치 성공 시 서버 발급 배치 ID 반환"""
        if self._refuse_if_offline("place item"):
            return None
        if not self.grid.can_place(row, col):
            self.notify("warning", f"Tile [{row}, {col}] is not available")
            return None
        if self.view.inventory.get(item_kind, 0) < 1:
            self.notify("warning", f"No {item_kind} in inventory")
            return None

        pending = PlacedItemView(
            id=PENDING_ID,
            item_kind=item_kind,
            row=row,
            col=col,
            rotation=rotation,
            accrual_rate_per_minute=Decimal("0"),
            placed_at=self.clock(),
        )
        self.grid.put(pending)
        self._adjust_inventory(item_kind, -1)

        try:
            result = await self.rpc.place_item(item_kind, row, col, rotation)
        except RpcError as e:
            self.grid.pop(row, col)
            self._adjust_inventory(item_kind, 1)
            await self._report_failure("place item", e)
            return None

        pending.id = result.placed_item_id
        self._write_cache()
        return result.placed_item_id

    async def move_item(self, placed_item_id: int, row: int, col: int) -> bool:
        if self._refuse_if_offline("move item"):
            return False
        item = self.grid.find(placed_item_id)
        if item is None:
            self.notify("warning", "Item is no longer on the grid")
            return False
        if (item.row, item.col) == (row, col):
            return True
        if not self.grid.can_place(row, col):
            self.notify("warning", f"Tile [{row}, {col}] is not available")
            return False

        old_row, old_col = item.row, item.col
        self.grid.pop(old_row, old_col)
        item.row, item.col = row, col
        self.grid.put(item)

        try:
            await self.rpc.move_item(placed_item_id, row, col)
        except RpcError as e:
            self.grid.pop(row, col)
            item.row, item.col = old_row, old_col
            self.grid.put(item)
            await self._report_failure("move item", e)
            return False

        self._write_cache()
        return True

    async def rotate_item(self, placed_item_id: int, rotation: int) -> bool:
        if self._refuse_if_offline("rotate item"):
            return False
        item = self.grid.find(placed_item_id)
        if item is None:
            self.notify("warning", "Item is no longer on the grid")
            return False

        old_rotation = item.rotation
        item.rotation = rotation
        try:
            await self.rpc.rotate_item(placed_item_id, rotation)
        except RpcError as e:
            item.rotation = old_rotation
            await self._report_failure("rotate item", e)
            return False

        self._write_cache()
        return True

    async def remove_item(self, placed_item_id: int) -> bool:
        if self._refuse_if_offline("remove item"):
            return False
        item = self.grid.find(placed_item_id)
        if item is None:
            self.notify("warning", "Item is no longer on the grid")
            return False

        self.grid.pop(item.row, item.col)
        self._adjust_inventory(item.item_kind, 1)
        try:
            await self.rpc.remove_item(placed_item_id)
        except RpcError as e:
            self.grid.put(item)
            self._adjust_inventory(item.item_kind, -1)
            await self._report_failure("remove item", e)
            return False

        self._write_cache()
        return True
