from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal


class LedgerEntry(BaseModel):
    """잔액 원장 항목"""

    id: int = Field(..., description="원장 항목 ID")
    entry_type: str = Field(..., description="항목 타입")
    delta_total: Decimal = Field(..., description="정산 잔액 변화량")
    delta_accumulated: Decimal = Field(..., description="누적 잔액 변화량")
    total_after: Decimal = Field(..., description="변동 후 정산 잔액")
    accumulated_after: Decimal = Field(..., description="변동 후 누적 잔액")
    reason: str = Field(..., description="사유")
    ref_id: Optional[str] = Field(None, description="참조 ID")
    created_at: str = Field(..., description="생성 시간")


class LedgerResponse(BaseModel):
    """원장 조회 응답"""

    total_balance: Decimal = Field(..., description="현재 정산 잔액")
    accumulated_balance: Decimal = Field(..., description="현재 누적 잔액 (저장된 값)")
    entries: List[LedgerEntry] = Field(..., description="원장 항목 목록")
    total_count: int = Field(..., description="전체 항목 수")
    has_next: bool = Field(..., description="다음 페이지 존재 여부")


class IntegrityCheckResponse(BaseModel):
    """잔액 정합성 검증 응답"""

    status: str = Field(..., description="검증 상태 (OK, MISMATCH)")
    player_id: str = Field(..., description="플레이어 ID")
    calculated_total: Decimal = Field(..., description="원장 합계 기준 정산 잔액")
    recorded_total: Decimal = Field(..., description="저장된 정산 잔액")
    calculated_accumulated: Decimal = Field(..., description="원장 합계 기준 누적 잔액")
    recorded_accumulated: Decimal = Field(..., description="저장된 누적 잔액")
    entry_count: int = Field(..., description="항목 수")
    verified_at: str = Field(..., description="검증 시간")
