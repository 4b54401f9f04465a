"""
추천(Referral) 서비스

1. 추천 코드 생성 - 제한된 횟수의 무작위 시도 후 순번 기반 코드로 대체
2. 추천 보상 전파 - 피추천인이 수확한 금액의 일정 비율을 추천인에게 지급
   (수확 커밋 이후 별도 트랜잭션, 실패는 경고로만 보고)
"""

import logging
import secrets
import string
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from budgarden.config import Settings
from budgarden.core.exceptions import InternalServerError, PlayerNotFoundError
from budgarden.models.ledger import LedgerEntryType
from budgarden.repositories.ledger_repository import LedgerRepository
from budgarden.repositories.referral_repository import ReferralRepository
from budgarden.services.base_service import BaseLedgerService
from budgarden.utils.amount_utils import floor_whole, to_amount
from budgarden.utils.timezone_utils import Clock, utc_now

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
BASE36_DIGITS = string.digits + string.ascii_uppercase


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


class ReferralService(BaseLedgerService):
    def __init__(self, db: Session, settings: Settings, clock: Clock = utc_now):
        super().__init__(db, settings, clock)
        self.referral_repo = ReferralRepository(db)
        self.ledger_repo = LedgerRepository(db)

    # ------------------------------------------------------------------
    # 코드 생성
    # ------------------------------------------------------------------

    def _random_code(self, length: int) -> str:
        return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))

    def sequential_code(self, length: int) -> str:
        """
        발급된 코드 수에서 시작하는 36진수 순번 코드 중 비어 있는 첫 번째

        무작위 시도가 모두 충돌했을 때만 사용한다. 코드 공간이 가득 차면 InternalServerError.
        """
        start = self.referral_repo.count_codes()
        for sequence in range(start, start + 36**length):
            code = to_base36(sequence % 36**length).rjust(length, "0")
            if not self.referral_repo.code_exists(code):
                return code
        raise InternalServerError("Referral code space exhausted")

    def generate_unique_code(self) -> str:
        """
        사용되지 않은 추천 코드 생성

        REFERRAL_CODE_MAX_ATTEMPTS 번까지 무작위 코드를 시도하고, 모두 충돌하면
        순번 기반 대체 코드를 반환한다.
        """
        length = self.settings.REFERRAL_CODE_LENGTH

        for attempt in range(1, self.settings.REFERRAL_CODE_MAX_ATTEMPTS + 1):
            code = self._random_code(length)
            if not self.referral_repo.code_exists(code):
                return code
            logger.debug(f"Referral code collision on attempt {attempt}: {code}")

        code = self.sequential_code(length)
        logger.warning(
            f"Referral code generation exhausted "
            f"{self.settings.REFERRAL_CODE_MAX_ATTEMPTS} attempts, using fallback {code}"
        )
        return code

    # ------------------------------------------------------------------
    # 보상 전파
    # ------------------------------------------------------------------

    def _credit_referrer(
        self, referee_id: str, claimed: Decimal, harvest_ref_id: str
    ) -> Decimal:
        referee = self._get_player(referee_id)
        if not referee.referred_by:
            return Decimal("0")

        payout = floor_whole(claimed * self.settings.REFERRAL_RATE)
        if payout <= 0:
            return Decimal("0")

        ref_id = f"referral_{harvest_ref_id}"
        if self.ledger_repo.ref_exists(ref_id):
            logger.info(f"Referral payout already recorded for {harvest_ref_id}")
            return Decimal("0")

        referrer = self.player_repo.get_model(referee.referred_by, for_update=True)
        if referrer is None:
            raise PlayerNotFoundError(referee.referred_by)

        # 추천 보상은 두 잔액 모두에 반영
        referrer.total_balance = to_amount(referrer.total_balance) + payout
        referrer.accumulated_balance = to_amount(referrer.accumulated_balance) + payout

        owned_code = self.referral_repo.get_owned_code(referrer.id, for_update=True)
        if owned_code is not None:
            owned_code.total_referral_earnings = (
                to_amount(owned_code.total_referral_earnings) + payout
            )
        else:
            logger.warning(f"Referrer {referrer.id} has no referral code row")

        self.db.flush()
        self.ledger_repo.record(
            referrer,
            LedgerEntryType.REFERRAL,
            delta_total=payout,
            delta_accumulated=payout,
            reason=f"Referral reward from {referee.username}",
            ref_id=ref_id,
        )
        return payout

    def propagate(
        self, referee_id: str, claimed: Decimal, harvest_ref_id: str
    ) -> Tuple[Decimal, Optional[str]]:
        """
        추천 보상 지급 (best-effort, 1회 시도)

        Returns:
            (지급액, 경고 메시지). 실패 시 (0, 경고)이며 예외를 던지지 않는다.
        """
        try:
            payout = self._safe_transaction(
                lambda: self._credit_referrer(referee_id, claimed, harvest_ref_id)
            )
        except Exception as e:
            logger.warning(
                f"Referral payout failed for referee {referee_id} "
                f"(harvest {harvest_ref_id}): {str(e)}"
            )
            return Decimal("0"), f"Referral payout failed: {str(e)}"

        if payout > 0:
            logger.info(f"Referral payout {payout} BUD for referee {referee_id}")
        return payout, None
