from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime
from decimal import Decimal


class VerifyPaymentRequest(BaseModel):
    """클라이언트가 확인한 온체인 결제 정보. 서명은 한 번만 사용 가능"""

    signature: str = Field(..., min_length=32, max_length=128, description="트랜잭션 서명")
    wallet_from: str = Field(..., min_length=32, max_length=44, description="송금 지갑")
    wallet_to: str = Field(..., min_length=32, max_length=44, description="수신 지갑")
    amount_sol: Decimal = Field(..., gt=0, description="결제 금액 (SOL)")
    transaction_time: datetime = Field(..., description="트랜잭션 시각")
    item_purchased: Optional[str] = Field(None, max_length=50, description="구매 아이템")
    used_for: Literal["upgrade", "purchase"] = Field("upgrade", description="결제 용도")


class VerifiedPaymentResponse(BaseModel):
    id: int = Field(..., description="결제 기록 ID")
    signature: str = Field(..., description="트랜잭션 서명")
    player_id: str = Field(..., description="플레이어 ID")
    amount_sol: Decimal = Field(..., description="결제 금액 (SOL)")
    item_purchased: Optional[str] = Field(None, description="구매 아이템")
    used_for: str = Field(..., description="결제 용도")

    class Config:
        from_attributes = True


class SignatureStatusResponse(BaseModel):
    signature: str = Field(..., description="트랜잭션 서명")
    used: bool = Field(..., description="이미 사용된 서명인지 여부")


class JointUpgradeRequest(BaseModel):
    """업그레이드 요청 - 먼저 저장된 upgrade 용도 결제 서명을 참조"""

    signature: str = Field(..., min_length=32, max_length=128, description="결제 서명")


class JointUpgradeStatusResponse(BaseModel):
    player_id: str = Field(..., description="플레이어 ID")
    upgraded: bool = Field(..., description="업그레이드 완료 여부")
    upgraded_at: Optional[datetime] = Field(None, description="업그레이드 시각")
