"""
잔액 API 라우터

- GET /players/{player_id}/balance: 잔액 조회 (누적분은 응답에만 반영)
- POST /players/{player_id}/claim: 누적분 병합
- POST /players/{player_id}/harvest: 수확 (추천 보상 전파 포함)

경과 시간은 서버 시계로만 계산하며, 요청 본문은 받지 않는다.
"""

from fastapi import APIRouter, Depends, Path

from budgarden.deps import get_accrual_service
from budgarden.schemas.balance import BalanceResponse, ClaimResponse, HarvestResponse
from budgarden.services.accrual_service import AccrualService

router = APIRouter(prefix="/players", tags=["balance"])


@router.get("/{player_id}/balance", response_model=BalanceResponse)
def get_balance(
    player_id: str = Path(..., description="플레이어 ID"),
    accrual_service: AccrualService = Depends(get_accrual_service),
) -> BalanceResponse:
    """클라이언트 폴링 대상. 잠금 없이 읽기만 한다."""
    return accrual_service.get_balance(player_id)


@router.post("/{player_id}/claim", response_model=ClaimResponse)
def claim(
    player_id: str = Path(..., description="플레이어 ID"),
    accrual_service: AccrualService = Depends(get_accrual_service),
) -> ClaimResponse:
    return accrual_service.claim(player_id)


@router.post("/{player_id}/harvest", response_model=HarvestResponse)
def harvest(
    player_id: str = Path(..., description="플레이어 ID"),
    accrual_service: AccrualService = Depends(get_accrual_service),
) -> HarvestResponse:
    """
    수확

    Returns:
        HarvestResponse: 수확량, 추천 보상, 추천 보상 실패 경고

    HTTP Status:
        200: 수확 성공 (수확할 금액이 없어도 claimed=0으로 성공)
        404: 플레이어 없음 (PLAYER_NOT_FOUND)
    """
    return accrual_service.harvest(player_id)
