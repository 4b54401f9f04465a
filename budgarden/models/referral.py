from decimal import Decimal
from typing import Optional

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from budgarden.models.base import Amount, BaseModel


class ReferralCode(BaseModel):
    """추천(초대) 코드. owner_player_id가 없는 코드는 시스템 코드."""

    __tablename__ = "referral_codes"

    code: Mapped[str] = mapped_column(String(16), primary_key=True)
    owner_player_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("players.id"), nullable=True, unique=True
    )
    times_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # 단조 증가 - 추천 보상이 지급될 때만 증가
    total_referral_earnings: Mapped[Decimal] = mapped_column(
        Amount, nullable=False, default=Decimal("0")
    )
