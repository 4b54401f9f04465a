from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal


class BalanceResponse(BaseModel):
    """잔액 조회 응답 (누적분은 응답에만 반영되고 저장되지 않음)"""

    total_balance: Decimal = Field(..., description="정산 완료 잔액")
    accumulated_balance: Decimal = Field(..., description="수확 전 누적 잔액 (미저장 누적분 포함)")
    accrual_rate_per_minute: Decimal = Field(..., description="배치된 아이템의 분당 생산량 합계")
    server_time: datetime = Field(..., description="계산 기준 서버 시각 (UTC)")

    class Config:
        from_attributes = True


class ClaimResponse(BaseModel):
    """누적분 병합 응답"""

    success: bool = Field(..., description="성공 여부")
    claimed: Decimal = Field(..., description="이번 호출로 병합된 누적분")
    elapsed_minutes: Decimal = Field(..., description="정산 구간 길이 (분)")


class HarvestResponse(BaseModel):
    """수확 응답"""

    success: bool = Field(..., description="성공 여부")
    claimed: Decimal = Field(..., description="정산 잔액으로 이동한 금액")
    referral_payout: Decimal = Field(Decimal("0"), description="추천인에게 지급된 보상")
    warning: Optional[str] = Field(None, description="추천 보상 처리 경고 (수확 결과에는 영향 없음)")
