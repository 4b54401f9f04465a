from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from budgarden.models.referral import ReferralCode
from budgarden.repositories.base import BaseRepository
from budgarden.schemas.player import ReferralStatsResponse


class ReferralRepository(BaseRepository[ReferralCode, ReferralStatsResponse]):
    """추천 코드 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(ReferralCode, ReferralStatsResponse, db)

    def get_code(self, code: str, for_update: bool = False) -> Optional[ReferralCode]:
        return self.get_model(code, for_update=for_update)

    def get_owned_code(
        self, owner_player_id: str, for_update: bool = False
    ) -> Optional[ReferralCode]:
        query = self.db.query(ReferralCode).filter(
            ReferralCode.owner_player_id == owner_player_id
        )
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def code_exists(self, code: str) -> bool:
        return self.exists({"code": code})

    def create_code(self, code: str, owner_player_id: Optional[str]) -> ReferralCode:
        return self.add(
            ReferralCode(
                code=code,
                owner_player_id=owner_player_id,
                times_used=0,
                total_referral_earnings=Decimal("0"),
            )
        )

    def count_codes(self) -> int:
        return self.db.query(ReferralCode).count()
