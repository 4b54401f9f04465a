"""
누적(Accrual) 엔진

플레이어 잔액의 시간 기반 누적을 서버 시계로만 계산한다.

- get_balance: 응답에만 누적분을 더해서 보여줌 (저장하지 않음, 잠금 없음)
- claim: 플레이어 행 잠금 후 누적분을 accumulated_balance에 병합
- harvest: claim 병합 후 accumulated_balance 전액을 total_balance로 이동,
  커밋 이후 추천 보상 전파 (실패해도 수확은 유지)
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Tuple

from sqlalchemy.orm import Session

from budgarden.config import Settings
from budgarden.models.ledger import LedgerEntryType
from budgarden.models.player import Player
from budgarden.repositories.item_repository import PlacedItemRepository
from budgarden.repositories.ledger_repository import LedgerRepository
from budgarden.schemas.balance import BalanceResponse, ClaimResponse, HarvestResponse
from budgarden.services.base_service import BaseLedgerService
from budgarden.services.referral_service import ReferralService
from budgarden.utils.amount_utils import AMOUNT_QUANTUM, accrued_amount, to_amount
from budgarden.utils.timezone_utils import Clock, elapsed_minutes, ensure_utc, utc_now

logger = logging.getLogger(__name__)


class AccrualService(BaseLedgerService):
    """잔액 누적/정산 비즈니스 로직"""

    def __init__(self, db: Session, settings: Settings, clock: Clock = utc_now):
        super().__init__(db, settings, clock)
        self.placed_repo = PlacedItemRepository(db)
        self.ledger_repo = LedgerRepository(db)
        self.referral_service = ReferralService(db, settings, clock)

    def _pending_accrual(
        self, player: Player, now: datetime
    ) -> Tuple[Decimal, Decimal, Decimal]:
        """(분당 생산량 합계, 경과 분, 누적분)"""
        rate = self.placed_repo.total_rate(player.id)
        minutes = elapsed_minutes(player.last_reconciled_at, now)
        return rate, minutes, accrued_amount(rate, minutes)

    def balance_view(self, player: Player, now: datetime) -> BalanceResponse:
        """저장된 잔액 + 미병합 누적분 (표시용 계산, 저장하지 않음)"""
        rate, _, pending = self._pending_accrual(player, now)
        return BalanceResponse(
            total_balance=to_amount(player.total_balance),
            accumulated_balance=to_amount(player.accumulated_balance) + pending,
            accrual_rate_per_minute=rate,
            server_time=now,
        )

    def merge_accrual(self, player: Player, now: datetime) -> Tuple[Decimal, Decimal]:
        """
        잠긴 플레이어의 누적분을 accumulated_balance에 병합 (커밋은 호출자가 수행)

        last_reconciled_at은 앞으로만 이동한다. 저장된 시각보다 이른 시계 값은
        경과 0분으로 처리된다.

        Returns:
            (병합된 누적분, 경과 분)
        """
        rate, minutes, delta = self._pending_accrual(player, now)

        if ensure_utc(now) > ensure_utc(player.last_reconciled_at):
            player.last_reconciled_at = now

        if delta > 0:
            player.accumulated_balance = to_amount(player.accumulated_balance) + delta
            self.db.flush()
            self.ledger_repo.record(
                player,
                LedgerEntryType.CLAIM,
                delta_total=Decimal("0"),
                delta_accumulated=delta,
                reason=f"Accrual {rate}/min for {minutes.quantize(AMOUNT_QUANTUM)} min",
            )
        else:
            self.db.flush()

        return delta, minutes

    def get_balance(self, player_id: str) -> BalanceResponse:
        """잔액 조회 - 누적분은 응답에만 반영"""

        def _get_balance() -> BalanceResponse:
            player = self._get_player(player_id)
            return self.balance_view(player, self.clock())

        return self._read_only(_get_balance)

    def claim(self, player_id: str) -> ClaimResponse:
        """누적분 병합. 직후 재호출은 약 0을 반환한다."""

        def _claim() -> ClaimResponse:
            player = self._lock_player(player_id)
            delta, minutes = self.merge_accrual(player, self.clock())
            return ClaimResponse(
                success=True,
                claimed=delta,
                elapsed_minutes=minutes.quantize(AMOUNT_QUANTUM),
            )

        result = self._safe_transaction(_claim)
        logger.info(f"Claimed {result.claimed} BUD for player {player_id}")
        return result

    def harvest(self, player_id: str) -> HarvestResponse:
        """
        수확 - accumulated_balance 전액을 total_balance로 이동

        추천 보상은 수확 커밋 이후 별도 트랜잭션으로 한 번만 시도한다.
        수확할 금액이 없으면 claimed=0, success=True.
        """

        def _harvest() -> Tuple[Decimal, str]:
            player = self._lock_player(player_id)
            self.merge_accrual(player, self.clock())

            claimed = to_amount(player.accumulated_balance)
            if claimed <= 0:
                return Decimal("0"), ""

            player.total_balance = to_amount(player.total_balance) + claimed
            player.accumulated_balance = Decimal("0")
            self.db.flush()

            ref_id = LedgerRepository.new_ref_id(LedgerEntryType.HARVEST, player.id)
            self.ledger_repo.record(
                player,
                LedgerEntryType.HARVEST,
                delta_total=claimed,
                delta_accumulated=-claimed,
                reason="Harvest",
                ref_id=ref_id,
            )
            return claimed, ref_id

        claimed, harvest_ref_id = self._safe_transaction(_harvest)

        if claimed <= 0:
            logger.debug(f"Nothing to harvest for player {player_id}")
            return HarvestResponse(success=True, claimed=Decimal("0"))

        logger.info(f"Harvested {claimed} BUD for player {player_id}")

        payout, warning = self.referral_service.propagate(
            referee_id=player_id, claimed=claimed, harvest_ref_id=harvest_ref_id
        )
        return HarvestResponse(
            success=True, claimed=claimed, referral_payout=payout, warning=warning
        )
