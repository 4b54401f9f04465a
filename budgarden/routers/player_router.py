"""
플레이어 API 라우터

- POST /players/register: 초대 코드로 가입
- GET /players/{player_id}/state: 동기화용 전체 상태 (잔액/인벤토리/배치)
- GET /players/{player_id}/referrals: 본인 추천 코드 통계
- GET /players/{player_id}/ledger: 잔액 원장 (최신순, 페이징)
- GET /players/{player_id}/ledger/integrity: 원장 합계와 잔액 정합성 검증
"""

from fastapi import APIRouter, Depends, Path, Query, status

from budgarden.deps import get_player_service
from budgarden.schemas.ledger import IntegrityCheckResponse, LedgerResponse
from budgarden.schemas.player import (
    PlayerResponse,
    PlayerStateResponse,
    ReferralStatsResponse,
    RegisterPlayerRequest,
)
from budgarden.services.player_service import PlayerService

router = APIRouter(prefix="/players", tags=["players"])


@router.post(
    "/register", response_model=PlayerResponse, status_code=status.HTTP_201_CREATED
)
def register_player(
    payload: RegisterPlayerRequest,
    player_service: PlayerService = Depends(get_player_service),
) -> PlayerResponse:
    """
    신규 플레이어 가입

    Returns:
        PlayerResponse: 생성된 플레이어 (본인 추천 코드 포함)

    HTTP Status:
        201: 가입 성공
        404: 초대 코드 없음 (INVALID_INVITE_CODE)
        409: 사용자명 중복 (USERNAME_TAKEN)
    """
    return player_service.register(payload)


@router.get("/{player_id}/state", response_model=PlayerStateResponse)
def get_player_state(
    player_id: str = Path(..., description="플레이어 ID"),
    player_service: PlayerService = Depends(get_player_service),
) -> PlayerStateResponse:
    """클라이언트는 이 응답으로 로컬 상태를 통째로 교체한다."""
    return player_service.get_state(player_id)


@router.get("/{player_id}/referrals", response_model=ReferralStatsResponse)
def get_referral_stats(
    player_id: str = Path(..., description="플레이어 ID"),
    player_service: PlayerService = Depends(get_player_service),
) -> ReferralStatsResponse:
    return player_service.get_referral_stats(player_id)


@router.get("/{player_id}/ledger", response_model=LedgerResponse)
def get_ledger(
    player_id: str = Path(..., description="플레이어 ID"),
    limit: int = Query(50, ge=1, le=100, description="페이지 크기"),
    offset: int = Query(0, ge=0, description="오프셋"),
    player_service: PlayerService = Depends(get_player_service),
) -> LedgerResponse:
    return player_service.get_ledger(player_id, limit=limit, offset=offset)


@router.get("/{player_id}/ledger/integrity", response_model=IntegrityCheckResponse)
def verify_ledger_integrity(
    player_id: str = Path(..., description="플레이어 ID"),
    player_service: PlayerService = Depends(get_player_service),
) -> IntegrityCheckResponse:
    """원장 델타 합계와 players 행의 잔액 비교 (OK / MISMATCH)"""
    return player_service.verify_integrity(player_id)
