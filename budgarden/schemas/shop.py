from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal


class ShopItem(BaseModel):
    """상점 아이템 (플레이어 구매 현황 포함)"""

    item_kind: str = Field(..., description="아이템 식별자")
    name: str = Field(..., description="아이템 이름")
    description: Optional[str] = Field(None, description="아이템 설명")
    price: Decimal = Field(..., description="가격")
    accrual_rate_per_minute: Decimal = Field(..., description="분당 생산량")
    max_purchases_per_player: Optional[int] = Field(None, description="플레이어당 최대 구매 수")
    purchased_count: int = Field(0, description="보유 + 배치 수량")
    sold_out: bool = Field(False, description="구매 한도 도달 여부")

    class Config:
        from_attributes = True


class ShopCatalogResponse(BaseModel):
    """상점 카탈로그 응답"""

    items: List[ShopItem] = Field(..., description="아이템 목록")
    total_count: int = Field(..., description="총 아이템 수")


class PurchaseRequest(BaseModel):
    """구매 요청 - 가격은 받지 않고 아이템 식별자만 받는다"""

    item_kind: str = Field(..., min_length=1, max_length=50, description="구매할 아이템")


class PurchaseResponse(BaseModel):
    """구매 응답"""

    success: bool = Field(..., description="성공 여부")
    new_count: Optional[int] = Field(None, description="구매 후 보유 수량")
    new_balance: Optional[Decimal] = Field(None, description="구매 후 정산 잔액")
    message: str = Field(..., description="응답 메시지")
