from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal

from budgarden.schemas.balance import BalanceResponse
from budgarden.schemas.grid import PlacedItemView


class RegisterPlayerRequest(BaseModel):
    """가입 요청"""

    username: str = Field(..., min_length=3, max_length=20, pattern=r"^[A-Za-z0-9_]+$")
    wallet_address: str = Field(..., min_length=32, max_length=44, description="Solana 지갑 주소")
    invite_code: str = Field(..., min_length=1, max_length=16, description="사용한 초대 코드")


class PlayerResponse(BaseModel):
    """플레이어 정보"""

    id: str = Field(..., description="플레이어 ID")
    username: str = Field(..., description="사용자명")
    wallet_address: str = Field(..., description="지갑 주소")
    referral_code: Optional[str] = Field(None, description="본인 추천 코드")
    referred_by: Optional[str] = Field(None, description="추천인 플레이어 ID")

    class Config:
        from_attributes = True


class InventoryItem(BaseModel):
    item_kind: str = Field(..., description="아이템 식별자")
    count: int = Field(..., ge=0, description="보유 수량")

    class Config:
        from_attributes = True


class PlayerStateResponse(BaseModel):
    """동기화용 플레이어 전체 상태 (권위 있는 값)"""

    player_id: str = Field(..., description="플레이어 ID")
    balance: BalanceResponse = Field(..., description="잔액")
    inventory: List[InventoryItem] = Field(default_factory=list, description="인벤토리")
    placed_items: List[PlacedItemView] = Field(default_factory=list, description="배치 아이템")


class ReferralStatsResponse(BaseModel):
    """추천 코드 통계"""

    code: Optional[str] = Field(None, description="본인 추천 코드")
    times_used: int = Field(0, description="사용 횟수")
    total_referral_earnings: Decimal = Field(Decimal("0"), description="누적 추천 보상")
