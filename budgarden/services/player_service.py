"""
플레이어 서비스

- 가입: 초대 코드 검증, 본인 추천 코드 발급, 시작 아이템 지급
- 동기화용 전체 상태 조회 (잔액/인벤토리/배치)
- 추천 통계, 잔액 원장 조회 및 정합성 검증
"""

import logging
import uuid

from sqlalchemy.orm import Session

from budgarden.config import Settings
from budgarden.core.exceptions import InvalidInviteCodeError, UsernameTakenError
from budgarden.models.player import Player
from budgarden.repositories.item_repository import (
    CatalogRepository,
    InventoryRepository,
    PlacedItemRepository,
)
from budgarden.repositories.ledger_repository import LedgerRepository
from budgarden.repositories.referral_repository import ReferralRepository
from budgarden.schemas.ledger import IntegrityCheckResponse, LedgerResponse
from budgarden.schemas.player import (
    PlayerResponse,
    PlayerStateResponse,
    ReferralStatsResponse,
    RegisterPlayerRequest,
)
from budgarden.services.accrual_service import AccrualService
from budgarden.services.base_service import BaseLedgerService
from budgarden.services.referral_service import ReferralService
from budgarden.utils.amount_utils import to_amount
from budgarden.utils.timezone_utils import Clock, utc_now

logger = logging.getLogger(__name__)


class PlayerService(BaseLedgerService):
    """플레이어 관련 비즈니스 로직을 담당하는 서비스"""

    MAX_LEDGER_PAGE_SIZE = 100

    def __init__(self, db: Session, settings: Settings, clock: Clock = utc_now):
        super().__init__(db, settings, clock)
        self.catalog_repo = CatalogRepository(db)
        self.inventory_repo = InventoryRepository(db)
        self.placed_repo = PlacedItemRepository(db)
        self.referral_repo = ReferralRepository(db)
        self.ledger_repo = LedgerRepository(db)
        self.accrual_service = AccrualService(db, settings, clock)
        self.referral_service = ReferralService(db, settings, clock)

    def register(self, request: RegisterPlayerRequest) -> PlayerResponse:
        """
        신규 플레이어 가입

        Raises:
            InvalidInviteCodeError: 존재하지 않는 초대 코드
            UsernameTakenError: 이미 사용 중인 사용자명
        """
        invite_code = request.invite_code.strip().upper()

        def _register() -> PlayerResponse:
            invite = self.referral_repo.get_code(invite_code, for_update=True)
            if invite is None:
                raise InvalidInviteCodeError(invite_code)
            if self.player_repo.get_by_username(request.username) is not None:
                raise UsernameTakenError(request.username)

            own_code = self.referral_service.generate_unique_code()
            player = Player(
                id=str(uuid.uuid4()),
                username=request.username,
                wallet_address=request.wallet_address,
                total_balance=to_amount(0),
                accumulated_balance=to_amount(0),
                last_reconciled_at=self.clock(),
                # 시스템 코드(소유자 없음)로 가입하면 추천인 없음
                referred_by=invite.owner_player_id,
                referral_code=own_code,
            )
            self.player_repo.add(player)
            self.referral_repo.create_code(own_code, player.id)
            invite.times_used += 1

            for item_kind, count in self.settings.STARTER_ITEMS.items():
                if self.catalog_repo.get_item(item_kind) is None:
                    logger.warning(f"Starter item {item_kind} missing from catalog")
                    continue
                self.inventory_repo.increment(player.id, item_kind, count)

            self.db.flush()
            return self.player_repo._to_schema(player)

        result = self._safe_transaction(_register)
        logger.info(
            f"Registered player {result.username} ({result.id}) "
            f"with invite code {invite_code}"
        )
        return result

    def get_state(self, player_id: str) -> PlayerStateResponse:
        """클라이언트 동기화용 권위 있는 전체 상태"""

        def _get_state() -> PlayerStateResponse:
            player = self._get_player(player_id)
            return PlayerStateResponse(
                player_id=player.id,
                balance=self.accrual_service.balance_view(player, self.clock()),
                inventory=self.inventory_repo.list_for_player(player.id),
                placed_items=self.placed_repo.list_for_player(player.id),
            )

        return self._read_only(_get_state)

    def get_referral_stats(self, player_id: str) -> ReferralStatsResponse:
        def _get_stats() -> ReferralStatsResponse:
            player = self._get_player(player_id)
            owned = self.referral_repo.get_owned_code(player.id)
            if owned is None:
                return ReferralStatsResponse(code=player.referral_code)
            return ReferralStatsResponse(
                code=owned.code,
                times_used=owned.times_used,
                total_referral_earnings=to_amount(owned.total_referral_earnings),
            )

        return self._read_only(_get_stats)

    def get_ledger(
        self, player_id: str, limit: int = 50, offset: int = 0
    ) -> LedgerResponse:
        """잔액 원장 조회 (최신순)"""
        if limit > self.MAX_LEDGER_PAGE_SIZE:
            limit = self.MAX_LEDGER_PAGE_SIZE

        def _get_ledger() -> LedgerResponse:
            player = self._get_player(player_id)
            return self.ledger_repo.get_player_ledger(player, limit=limit, offset=offset)

        return self._read_only(_get_ledger)

    def verify_integrity(self, player_id: str) -> IntegrityCheckResponse:
        """원장 델타 합계와 저장된 잔액 비교"""

        def _verify() -> IntegrityCheckResponse:
            player = self._get_player(player_id)
            return self.ledger_repo.verify_integrity_for_player(player)

        result = self._read_only(_verify)
        if result.status != "OK":
            logger.error(
                f"Balance integrity mismatch for player {player_id}: "
                f"total {result.recorded_total} vs ledger {result.calculated_total}, "
                f"accumulated {result.recorded_accumulated} vs ledger "
                f"{result.calculated_accumulated}"
            )
        return result
