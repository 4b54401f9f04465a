"""
아이템 관련 리포지토리

- CatalogRepository: 서버 소유 카탈로그 (가격/생산량)
- InventoryRepository: 플레이어별 보유 수량
- PlacedItemRepository: 그리드 배치 아이템
"""

from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import asc, func
from sqlalchemy.orm import Session

from budgarden.models.items import InventoryEntry, ItemCatalog, PlacedItem
from budgarden.repositories.base import BaseRepository
from budgarden.schemas.grid import PlacedItemView
from budgarden.schemas.player import InventoryItem
from budgarden.schemas.shop import ShopItem


class CatalogRepository(BaseRepository[ItemCatalog, ShopItem]):
    def __init__(self, db: Session):
        super().__init__(ItemCatalog, ShopItem, db)

    def get_item(self, item_kind: str) -> Optional[ItemCatalog]:
        return self.get_model(item_kind)

    def list_purchasable(self) -> List[ItemCatalog]:
        return (
            self.db.query(ItemCatalog)
            .filter(ItemCatalog.is_purchasable.is_(True))
            .order_by(asc(ItemCatalog.price), asc(ItemCatalog.item_kind))
            .all()
        )

    def upsert_item(self, **fields) -> ItemCatalog:
        """카탈로그 항목 생성/갱신 (시드 스크립트용)"""
        item = self.get_item(fields["item_kind"])
        if item is None:
            item = ItemCatalog(**fields)
            self.db.add(item)
        else:
            for key, value in fields.items():
                setattr(item, key, value)
        self.db.flush()
        return item


class InventoryRepository(BaseRepository[InventoryEntry, InventoryItem]):
    def __init__(self, db: Session):
        super().__init__(InventoryEntry, InventoryItem, db)

    def _get_entry(self, player_id: str, item_kind: str) -> Optional[InventoryEntry]:
        return (
            self.db.query(InventoryEntry)
            .filter(
                InventoryEntry.player_id == player_id,
                InventoryEntry.item_kind == item_kind,
            )
            .first()
        )

    def get_count(self, player_id: str, item_kind: str) -> int:
        entry = self._get_entry(player_id, item_kind)
        return entry.count if entry else 0

    def list_for_player(self, player_id: str) -> List[InventoryItem]:
        entries = (
            self.db.query(InventoryEntry)
            .filter(InventoryEntry.player_id == player_id, InventoryEntry.count > 0)
            .order_by(asc(InventoryEntry.item_kind))
            .all()
        )
        return [self._to_schema(entry) for entry in entries]

    def counts_for_player(self, player_id: str) -> Dict[str, int]:
        rows = (
            self.db.query(InventoryEntry.item_kind, InventoryEntry.count)
            .filter(InventoryEntry.player_id == player_id)
            .all()
        )
        return {kind: count for kind, count in rows}

    def increment(self, player_id: str, item_kind: str, amount: int = 1) -> int:
        """보유 수량 증가 (upsert). 증가 후 수량 반환"""
        entry = self._get_entry(player_id, item_kind)
        if entry is None:
            entry = InventoryEntry(player_id=player_id, item_kind=item_kind, count=amount)
            self.db.add(entry)
        else:
            entry.count += amount
        self.db.flush()
        return entry.count

    def decrement(self, player_id: str, item_kind: str, amount: int = 1) -> int:
        """보유 수량 감소. 0이 되면 행 삭제. 감소 후 수량 반환

        호출 전에 get_count로 수량을 확인해야 한다.
        """
        entry = self._get_entry(player_id, item_kind)
        if entry is None or entry.count < amount:
            raise ValueError(f"Inventory underflow for {player_id}/{item_kind}")

        entry.count -= amount
        remaining = entry.count
        if remaining == 0:
            self.db.delete(entry)
        self.db.flush()
        return remaining


class PlacedItemRepository(BaseRepository[PlacedItem, PlacedItemView]):
    def __init__(self, db: Session):
        super().__init__(PlacedItem, PlacedItemView, db)

    def list_for_player(self, player_id: str) -> List[PlacedItemView]:
        items = (
            self.db.query(PlacedItem)
            .filter(PlacedItem.player_id == player_id)
            .order_by(asc(PlacedItem.id))
            .all()
        )
        return [self._to_schema(item) for item in items]

    def total_rate(self, player_id: str) -> Decimal:
        """배치된 아이템의 분당 생산량 합계"""
        result = (
            self.db.query(func.sum(PlacedItem.accrual_rate_per_minute))
            .filter(PlacedItem.player_id == player_id)
            .scalar()
        )
        return Decimal(str(result)) if result is not None else Decimal("0")

    def get_for_player(self, player_id: str, placed_item_id: int) -> Optional[PlacedItem]:
        return (
            self.db.query(PlacedItem)
            .filter(PlacedItem.id == placed_item_id, PlacedItem.player_id == player_id)
            .first()
        )

    def get_at(self, player_id: str, row: int, col: int) -> Optional[PlacedItem]:
        return (
            self.db.query(PlacedItem)
            .filter(
                PlacedItem.player_id == player_id,
                PlacedItem.grid_row == row,
                PlacedItem.grid_col == col,
            )
            .first()
        )

    def count_kind(self, player_id: str, item_kind: str) -> int:
        return (
            self.db.query(PlacedItem)
            .filter(PlacedItem.player_id == player_id, PlacedItem.item_kind == item_kind)
            .count()
        )

    def counts_for_player(self, player_id: str) -> Dict[str, int]:
        rows = (
            self.db.query(PlacedItem.item_kind, func.count(PlacedItem.id))
            .filter(PlacedItem.player_id == player_id)
            .group_by(PlacedItem.item_kind)
            .all()
        )
        return {kind: count for kind, count in rows}

    def remove(self, item: PlacedItem) -> None:
        self.db.delete(item)
        self.db.flush()
