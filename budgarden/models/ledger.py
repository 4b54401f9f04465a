"""
잔액 원장 데이터 모델

플레이어 잔액(total/accumulated)의 모든 변동 내역을 저장하는 원장 테이블.
잔액 자체는 players 행에 저장되고, 이 테이블은 감사 추적(Audit Trail)과
"수확 전 / 정산 완료" 구분을 위한 수확 기록 역할을 한다.
"""

import enum
from decimal import Decimal

from sqlalchemy import BigInteger, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import UniqueConstraint

from budgarden.models.base import Amount, BaseModel


class LedgerEntryType(enum.Enum):
    CLAIM = "CLAIM"  # 누적분 병합 (accumulated 증가)
    HARVEST = "HARVEST"  # accumulated -> total 이동
    PURCHASE = "PURCHASE"  # 상점 구매 차감
    REFERRAL = "REFERRAL"  # 추천 보상 지급


class BalanceLedgerEntry(BaseModel):
    """
    잔액 원장 테이블 - 모든 잔액 변동 내역을 저장

    1. 불변성(Immutable): 한번 생성된 레코드는 수정되지 않음
    2. 완전성(Complete): 모든 잔액 변동사항이 기록됨
    3. 정합성(Integrity): 변동 후 잔액을 함께 저장
    """

    __tablename__ = "balance_ledger"
    __table_args__ = (UniqueConstraint("ref_id"),)

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    player_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("players.id"), nullable=False, index=True
    )
    entry_type: Mapped[LedgerEntryType] = mapped_column(
        Enum(LedgerEntryType), nullable=False
    )

    # 변동량 - 양수면 증가, 음수면 감소
    delta_total: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    delta_accumulated: Mapped[Decimal] = mapped_column(Amount, nullable=False)

    # 거래 후 잔액
    total_after: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    accumulated_after: Mapped[Decimal] = mapped_column(Amount, nullable=False)

    reason: Mapped[str] = mapped_column(Text, nullable=False)
    # 참조 ID - 중복 기록 방지용 고유 식별자
    ref_id: Mapped[str] = mapped_column(Text, nullable=False)
