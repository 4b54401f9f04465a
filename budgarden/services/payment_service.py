"""
결제 검증 서비스

온체인 결제 확인 자체는 클라이언트/지갑 쪽에서 이루어지지만, 재사용 방지와
1회성 업그레이드 판단은 서버가 플레이어 행 잠금 아래에서 수행한다.

- store_verified_payment: 서명 유니크 보장 (같은 서명 재사용 시 PAYMENT_SIGNATURE_USED)
- mark_joint_upgraded: upgrade 용도로 저장된 본인 결제가 있어야 하며 플레이어당 1회
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from budgarden.config import Settings
from budgarden.core.exceptions import (
    JointAlreadyUpgradedError,
    PaymentNotFoundError,
    PaymentSignatureUsedError,
    UnknownItemError,
    ValidationError,
)
from budgarden.models.payment import VerifiedPayment
from budgarden.repositories.item_repository import CatalogRepository, InventoryRepository
from budgarden.repositories.payment_repository import PaymentRepository
from budgarden.schemas.payment import (
    JointUpgradeStatusResponse,
    SignatureStatusResponse,
    VerifiedPaymentResponse,
    VerifyPaymentRequest,
)
from budgarden.services.base_service import BaseLedgerService
from budgarden.utils.timezone_utils import Clock, utc_now

logger = logging.getLogger(__name__)


class PaymentService(BaseLedgerService):
    def __init__(self, db: Session, settings: Settings, clock: Clock = utc_now):
        super().__init__(db, settings, clock)
        self.payment_repo = PaymentRepository(db)
        self.catalog_repo = CatalogRepository(db)
        self.inventory_repo = InventoryRepository(db)

    def is_signature_used(self, signature: str) -> SignatureStatusResponse:
        return self._read_only(
            lambda: SignatureStatusResponse(
                signature=signature, used=self.payment_repo.signature_used(signature)
            )
        )

    def store_verified_payment(
        self, player_id: str, request: VerifyPaymentRequest
    ) -> VerifiedPaymentResponse:
        """
        결제 서명 저장

        Raises:
            PlayerNotFoundError: 플레이어 없음
            ValidationError: 플레이어 지갑에서 보낸 결제가 아님
            PaymentSignatureUsedError: 이미 사용된 서명 (다른 플레이어 포함)
        """

        def _store() -> VerifiedPaymentResponse:
            player = self._lock_player(player_id)
            if request.wallet_from != player.wallet_address:
                raise ValidationError(
                    "Payment was not sent from the player's wallet",
                    details={"wallet_from": request.wallet_from},
                )
            if self.payment_repo.signature_used(request.signature):
                raise PaymentSignatureUsedError(request.signature)

            payment = VerifiedPayment(
                signature=request.signature,
                player_id=player_id,
                wallet_from=request.wallet_from,
                wallet_to=request.wallet_to,
                amount_sol=request.amount_sol,
                transaction_time=request.transaction_time,
                item_purchased=request.item_purchased,
                used_for=request.used_for,
            )
            self.db.add(payment)
            try:
                self.db.flush()
            except IntegrityError:
                # 다른 플레이어가 같은 서명을 동시에 제출한 경우
                raise PaymentSignatureUsedError(request.signature)
            return self.payment_repo.to_response(payment)

        result = self._safe_transaction(_store)
        logger.info(
            f"Stored verified payment {request.signature} for player {player_id} "
            f"({request.used_for}, {request.amount_sol} SOL)"
        )
        return result

    def _upgrade_status(self, player) -> JointUpgradeStatusResponse:
        return JointUpgradeStatusResponse(
            player_id=player.id,
            upgraded=player.joint_upgraded,
            upgraded_at=player.joint_upgraded_at,
        )

    def get_joint_upgrade_status(self, player_id: str) -> JointUpgradeStatusResponse:
        return self._read_only(lambda: self._upgrade_status(self._get_player(player_id)))

    def mark_joint_upgraded(
        self, player_id: str, signature: str
    ) -> JointUpgradeStatusResponse:
        """
        joint -> sprout 업그레이드 (플레이어당 1회)

        1. 이미 업그레이드했으면 JOINT_ALREADY_UPGRADED
        2. 본인이 upgrade 용도로 저장한 결제가 아니면 PAYMENT_NOT_FOUND / VALIDATION_001
        3. 플래그 설정 + 업그레이드 아이템 1개 지급
        """

        def _upgrade() -> JointUpgradeStatusResponse:
            player = self._lock_player(player_id)
            if player.joint_upgraded:
                raise JointAlreadyUpgradedError(player_id)

            payment = self.payment_repo.get_by_signature(signature)
            if payment is None or payment.player_id != player_id:
                raise PaymentNotFoundError(signature)
            if payment.used_for != "upgrade":
                raise ValidationError(
                    "Payment was not made for an upgrade",
                    details={"signature": signature, "used_for": payment.used_for},
                )

            item_kind = self.settings.JOINT_UPGRADE_ITEM
            if self.catalog_repo.get_item(item_kind) is None:
                raise UnknownItemError(item_kind)

            player.joint_upgraded = True
            player.joint_upgraded_at = self.clock()
            self.inventory_repo.increment(player_id, item_kind)
            return self._upgrade_status(player)

        result = self._safe_transaction(_upgrade)
        logger.info(f"Player {player_id} upgraded joint (payment {signature})")
        return result
