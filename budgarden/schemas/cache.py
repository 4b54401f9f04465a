from pydantic import BaseModel, Field
from typing import List
from datetime import datetime
from decimal import Decimal

from budgarden.schemas.grid import PlacedItemView
from budgarden.schemas.player import InventoryItem


class OfflineCacheSnapshot(BaseModel):
    """클라이언트 로컬 캐시 (표시 전용, 권위 없음)"""

    player_id: str = Field(..., description="플레이어 ID")
    total_balance: Decimal = Field(..., description="마지막 동기화 시 정산 잔액")
    accumulated_balance: Decimal = Field(..., description="마지막 동기화 시 누적 잔액")
    accrual_rate_per_minute: Decimal = Field(Decimal("0"), description="마지막 동기화 시 분당 생산량")
    inventory: List[InventoryItem] = Field(default_factory=list)
    placed_items: List[PlacedItemView] = Field(default_factory=list)
    synced_at: datetime = Field(..., description="마지막 동기화 시각 (UTC)")
