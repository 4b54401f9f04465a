from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import UniqueConstraint

from budgarden.models.base import Amount, BaseModel


class ItemCatalog(BaseModel):
    """서버 소유 아이템 카탈로그 - 가격과 생산량의 유일한 출처"""

    __tablename__ = "item_catalog"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_item_catalog_price"),
        CheckConstraint(
            "accrual_rate_per_minute >= 0", name="ck_item_catalog_accrual_rate"
        ),
    )

    item_kind: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    accrual_rate_per_minute: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    max_purchases_per_player: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )
    # 시작 아이템처럼 무료로 지급되는 아이템은 상점에 노출하지 않음
    is_purchasable: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )


class InventoryEntry(BaseModel):
    """플레이어별 아이템 보유 수량. 수량이 0이 되면 행을 삭제한다."""

    __tablename__ = "player_inventory"
    __table_args__ = (CheckConstraint("count >= 0", name="ck_player_inventory_count"),)

    player_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("players.id"), primary_key=True
    )
    item_kind: Mapped[str] = mapped_column(
        String(50), ForeignKey("item_catalog.item_kind"), primary_key=True
    )
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class PlacedItem(BaseModel):
    """그리드에 배치된 아이템 인스턴스. 타일 하나에는 최대 하나의 아이템만 존재."""

    __tablename__ = "placed_items"
    __table_args__ = (
        UniqueConstraint(
            "player_id", "grid_row", "grid_col", name="uq_placed_items_tile"
        ),
        CheckConstraint("rotation IN (0, 1)", name="ck_placed_items_rotation"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    player_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("players.id"), nullable=False, index=True
    )
    item_kind: Mapped[str] = mapped_column(
        String(50), ForeignKey("item_catalog.item_kind"), nullable=False
    )
    grid_row: Mapped[int] = mapped_column(Integer, nullable=False)
    grid_col: Mapped[int] = mapped_column(Integer, nullable=False)
    # 배치 시점의 카탈로그 생산량 (클라이언트 값은 절대 사용하지 않음)
    accrual_rate_per_minute: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    rotation: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    placed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
