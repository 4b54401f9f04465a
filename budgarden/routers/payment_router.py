"""
결제 검증 API 라우터

- GET /payments/{signature}: 서명 사용 여부 확인
- POST /players/{player_id}/payments: 검증된 결제 서명 저장 (재사용 시 409)
- GET /players/{player_id}/joint-upgrade: joint 업그레이드 여부
- POST /players/{player_id}/joint-upgrade: 저장된 결제로 1회 업그레이드
"""

from fastapi import APIRouter, Depends, Path, status

from budgarden.deps import get_payment_service
from budgarden.schemas.payment import (
    JointUpgradeRequest,
    JointUpgradeStatusResponse,
    SignatureStatusResponse,
    VerifiedPaymentResponse,
    VerifyPaymentRequest,
)
from budgarden.services.payment_service import PaymentService

router = APIRouter(tags=["payments"])


@router.get("/payments/{signature}", response_model=SignatureStatusResponse)
def check_payment_signature(
    signature: str = Path(..., description="트랜잭션 서명"),
    payment_service: PaymentService = Depends(get_payment_service),
) -> SignatureStatusResponse:
    return payment_service.is_signature_used(signature)


@router.post(
    "/players/{player_id}/payments",
    response_model=VerifiedPaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
def store_verified_payment(
    payload: VerifyPaymentRequest,
    player_id: str = Path(..., description="플레이어 ID"),
    payment_service: PaymentService = Depends(get_payment_service),
) -> VerifiedPaymentResponse:
    """
    HTTP Status:
        201: 저장 성공
        404: 플레이어 없음 (PLAYER_NOT_FOUND)
        409: 이미 사용된 서명 (PAYMENT_SIGNATURE_USED)
        422: 플레이어 지갑에서 보낸 결제가 아님
    """
    return payment_service.store_verified_payment(player_id, payload)


@router.get(
    "/players/{player_id}/joint-upgrade", response_model=JointUpgradeStatusResponse
)
def get_joint_upgrade_status(
    player_id: str = Path(..., description="플레이어 ID"),
    payment_service: PaymentService = Depends(get_payment_service),
) -> JointUpgradeStatusResponse:
    return payment_service.get_joint_upgrade_status(player_id)


@router.post(
    "/players/{player_id}/joint-upgrade", response_model=JointUpgradeStatusResponse
)
def upgrade_joint(
    payload: JointUpgradeRequest,
    player_id: str = Path(..., description="플레이어 ID"),
    payment_service: PaymentService = Depends(get_payment_service),
) -> JointUpgradeStatusResponse:
    """두 번째 호출은 409 (JOINT_ALREADY_UPGRADED)"""
    return payment_service.mark_joint_upgraded(player_id, payload.signature)
