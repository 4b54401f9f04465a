"""
플레이어 데이터 모델

플레이어 행은 잔액과 마지막 정산 시각을 보관하며, 모든 잔액 변경 작업의
상호 배제 단위(row lock 대상)이다.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from budgarden.models.base import Amount, BaseModel


class Player(BaseModel):
    __tablename__ = "players"
    __table_args__ = (
        CheckConstraint("total_balance >= 0", name="ck_players_total_balance"),
        CheckConstraint(
            "accumulated_balance >= 0", name="ck_players_accumulated_balance"
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    # 외부 신원 바인딩 - 한번 설정되면 변경되지 않음
    wallet_address: Mapped[str] = mapped_column(Text, nullable=False)

    # 정산 완료 잔액 (구매에 사용 가능)
    total_balance: Mapped[Decimal] = mapped_column(
        Amount, nullable=False, default=Decimal("0")
    )
    # 수확 전 누적 잔액
    accumulated_balance: Mapped[Decimal] = mapped_column(
        Amount, nullable=False, default=Decimal("0")
    )
    # 마지막 누적 계산 시각 (UTC, 단조 증가)
    last_reconciled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    # 추천인 - 가입 시 설정되며 이후 불변. 시스템 코드로 가입한 경우 NULL
    referred_by: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("players.id"), nullable=True
    )
    # 본인 소유 추천 코드
    referral_code: Mapped[Optional[str]] = mapped_column(
        String(16), unique=True, nullable=True
    )

    # joint -> sprout 업그레이드는 플레이어당 한 번
    joint_upgraded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    joint_upgraded_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
