"""
온체인 결제 검증 기록

클라이언트가 제출한 결제 서명(transaction signature)을 한 번만 사용할 수 있도록
유니크 제약으로 보관한다. 같은 서명으로 두 번째 구매/업그레이드를 시도하면 거절된다.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from budgarden.models.base import BaseModel


class VerifiedPayment(BaseModel):
    __tablename__ = "verified_payments"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    signature: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    player_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("players.id"), nullable=False, index=True
    )
    wallet_from: Mapped[str] = mapped_column(Text, nullable=False)
    wallet_to: Mapped[str] = mapped_column(Text, nullable=False)
    amount_sol: Mapped[Decimal] = mapped_column(Numeric(20, 9), nullable=False)
    transaction_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    item_purchased: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    # upgrade / purchase
    used_for: Mapped[str] = mapped_column(String(20), nullable=False, default="upgrade")
