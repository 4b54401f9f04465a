"""
그리드 배치 서비스

점유 검사는 서버가 다시 수행한다 (클라이언트 검사는 UX 용도일 뿐).
(player_id, grid_row, grid_col) 유니크 제약이 동시 배치 경쟁의 최종 방어선.

배치/제거는 분당 생산량을 바꾸므로, 변경 전에 기존 생산량으로 누적분을 먼저 병합한다.
막힌 타일 목록은 서버에서 검증하지 않고 그리드 범위만 검증한다.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from budgarden.config import Settings
from budgarden.core.exceptions import (
    NotInInventoryError,
    PlacedItemNotFoundError,
    TileOccupiedError,
    UnknownItemError,
    ValidationError,
)
from budgarden.models.items import PlacedItem
from budgarden.repositories.item_repository import (
    CatalogRepository,
    InventoryRepository,
    PlacedItemRepository,
)
from budgarden.schemas.grid import OperationResponse, PlaceItemResponse
from budgarden.services.accrual_service import AccrualService
from budgarden.services.base_service import BaseLedgerService
from budgarden.utils.timezone_utils import Clock, utc_now

logger = logging.getLogger(__name__)


class GridService(BaseLedgerService):
    def __init__(self, db: Session, settings: Settings, clock: Clock = utc_now):
        super().__init__(db, settings, clock)
        self.catalog_repo = CatalogRepository(db)
        self.inventory_repo = InventoryRepository(db)
        self.placed_repo = PlacedItemRepository(db)
        self.accrual_service = AccrualService(db, settings, clock)

    def _validate_tile(self, row: int, col: int) -> None:
        if not (0 <= row < self.settings.GRID_ROWS and 0 <= col < self.settings.GRID_COLS):
            raise ValidationError(
                f"Tile [{row}, {col}] is outside the grid",
                details={
                    "row": row,
                    "col": col,
                    "grid_rows": self.settings.GRID_ROWS,
                    "grid_cols": self.settings.GRID_COLS,
                },
            )

    def _get_placed_item(self, player_id: str, placed_item_id: int) -> PlacedItem:
        item = self.placed_repo.get_for_player(player_id, placed_item_id)
        if item is None:
            raise PlacedItemNotFoundError(placed_item_id)
        return item

    def _flush_tile(self, row: int, col: int) -> None:
        """유니크 제약 위반(동시 배치)을 TileOccupied로 변환"""
        try:
            self.db.flush()
        except IntegrityError as e:
            logger.info(f"Tile [{row}, {col}] taken concurrently: {str(e.orig)}")
            raise TileOccupiedError(row, col)

    def place_item(
        self, player_id: str, item_kind: str, row: int, col: int, rotation: int = 0
    ) -> PlaceItemResponse:
        """인벤토리에서 하나를 꺼내 그리드에 배치. 생산량은 카탈로그 값을 복사"""
        self._validate_tile(row, col)

        def _place() -> PlaceItemResponse:
            player = self._lock_player(player_id)

            catalog_item = self.catalog_repo.get_item(item_kind)
            if catalog_item is None:
                raise UnknownItemError(item_kind)
            if self.placed_repo.get_at(player_id, row, col) is not None:
                raise TileOccupiedError(row, col)
            if self.inventory_repo.get_count(player_id, item_kind) < 1:
                raise NotInInventoryError(item_kind)

            now = self.clock()
            self.accrual_service.merge_accrual(player, now)

            self.inventory_repo.decrement(player_id, item_kind)
            placed = PlacedItem(
                player_id=player_id,
                item_kind=item_kind,
                grid_row=row,
                grid_col=col,
                rotation=rotation,
                accrual_rate_per_minute=catalog_item.accrual_rate_per_minute,
                placed_at=now,
            )
            self.db.add(placed)
            self._flush_tile(row, col)
            return PlaceItemResponse(placed_item_id=placed.id)

        result = self._safe_transaction(_place)
        logger.info(
            f"Player {player_id} placed {item_kind} at [{row}, {col}] "
            f"(id={result.placed_item_id})"
        )
        return result

    def move_item(
        self, player_id: str, placed_item_id: int, row: int, col: int
    ) -> OperationResponse:
        """배치 아이템 이동. 같은 타일로의 이동은 성공 처리"""
        self._validate_tile(row, col)

        def _move() -> OperationResponse:
            self._lock_player(player_id)
            item = self._get_placed_item(player_id, placed_item_id)
            if item.grid_row == row and item.grid_col == col:
                return OperationResponse(success=True)

            if self.placed_repo.get_at(player_id, row, col) is not None:
                raise TileOccupiedError(row, col)

            item.grid_row = row
            item.grid_col = col
            self._flush_tile(row, col)
            return OperationResponse(success=True)

        result = self._safe_transaction(_move)
        logger.info(f"Player {player_id} moved item {placed_item_id} to [{row}, {col}]")
        return result

    def rotate_item(
        self, player_id: str, placed_item_id: int, rotation: int
    ) -> OperationResponse:
        if rotation not in (0, 1):
            raise ValidationError(
                "Rotation must be 0 or 1", details={"rotation": rotation}
            )

        def _rotate() -> OperationResponse:
            self._lock_player(player_id)
            item = self._get_placed_item(player_id, placed_item_id)
            item.rotation = rotation
            self.db.flush()
            return OperationResponse(success=True)

        return self._safe_transaction(_rotate)

    def remove_item(self, player_id: str, placed_item_id: int) -> OperationResponse:
        """배치 해제 - 누적분 병합 후 행 삭제, 같은 트랜잭션에서 인벤토리로 반환"""

        def _remove() -> OperationResponse:
            player = self._lock_player(player_id)
            item = self._get_placed_item(player_id, placed_item_id)

            self.accrual_service.merge_accrual(player, self.clock())

            item_kind = item.item_kind
            self.placed_repo.remove(item)
            self.inventory_repo.increment(player_id, item_kind)
            return OperationResponse(success=True)

        result = self._safe_transaction(_remove)
        logger.info(f"Player {player_id} removed item {placed_item_id}")
        return result
