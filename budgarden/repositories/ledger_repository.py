"""
잔액 원장 리포지토리

모든 잔액 변동은 players 행을 직접 변경한 뒤 이 원장에 기록한다.
- 변동 후 잔액(total_after/accumulated_after)을 함께 저장
- ref_id 유니크 제약으로 같은 사건이 두 번 기록되지 않음
- 원장 델타 합계와 players 잔액을 비교하는 정합성 검증 제공
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from budgarden.models.ledger import BalanceLedgerEntry, LedgerEntryType
from budgarden.models.player import Player
from budgarden.repositories.base import BaseRepository
from budgarden.schemas.ledger import (
    IntegrityCheckResponse,
    LedgerEntry,
    LedgerResponse,
)


class LedgerRepository(BaseRepository[BalanceLedgerEntry, LedgerEntry]):
    def __init__(self, db: Session):
        super().__init__(BalanceLedgerEntry, LedgerEntry, db)

    def _to_ledger_entry(self, model_instance: BalanceLedgerEntry) -> LedgerEntry:
        """SQLAlchemy 모델을 Pydantic 스키마로 변환"""
        return LedgerEntry(
            id=model_instance.id,
            entry_type=model_instance.entry_type.value,
            delta_total=model_instance.delta_total,
            delta_accumulated=model_instance.delta_accumulated,
            total_after=model_instance.total_after,
            accumulated_after=model_instance.accumulated_after,
            reason=model_instance.reason,
            ref_id=model_instance.ref_id,
            created_at=(
                model_instance.created_at.strftime("%Y-%m-%d %H:%M:%S")
                if model_instance.created_at
                else ""
            ),
        )

    @staticmethod
    def new_ref_id(entry_type: LedgerEntryType, player_id: str) -> str:
        return f"{entry_type.value.lower()}_{player_id}_{uuid.uuid4().hex}"

    def record(
        self,
        player: Player,
        entry_type: LedgerEntryType,
        delta_total: Decimal,
        delta_accumulated: Decimal,
        reason: str,
        ref_id: str = "",
    ) -> BalanceLedgerEntry:
        """잔액 변동 기록. player의 잔액은 호출 전에 이미 변경되어 있어야 한다."""
        entry = BalanceLedgerEntry(
            player_id=player.id,
            entry_type=entry_type,
            delta_total=delta_total,
            delta_accumulated=delta_accumulated,
            total_after=player.total_balance,
            accumulated_after=player.accumulated_balance,
            reason=reason,
            ref_id=ref_id or self.new_ref_id(entry_type, player.id),
        )
        return self.add(entry)

    def ref_exists(self, ref_id: str) -> bool:
        """기록 존재 여부 확인 (중복 지급 방지용)"""
        return self.exists({"ref_id": ref_id})

    def get_player_ledger(
        self, player: Player, limit: int = 50, offset: int = 0
    ) -> LedgerResponse:
        """플레이어 원장 조회 (페이징, 최신순)"""
        base_query = self.db.query(BalanceLedgerEntry).filter(
            BalanceLedgerEntry.player_id == player.id
        )
        total_count = base_query.count()

        model_instances = (
            base_query.order_by(desc(BalanceLedgerEntry.id))
            .limit(limit)
            .offset(offset)
            .all()
        )

        return LedgerResponse(
            total_balance=player.total_balance,
            accumulated_balance=player.accumulated_balance,
            entries=[self._to_ledger_entry(instance) for instance in model_instances],
            total_count=total_count,
            has_next=offset + limit < total_count,
        )

    def verify_integrity_for_player(self, player: Player) -> IntegrityCheckResponse:
        """
        플레이어 잔액 정합성 검증

        1. 모든 원장 항목의 델타 합계 계산
        2. players 행에 저장된 잔액과 비교
        3. 일치하지 않으면 MISMATCH
        """
        sums = (
            self.db.query(
                func.coalesce(func.sum(BalanceLedgerEntry.delta_total), 0),
                func.coalesce(func.sum(BalanceLedgerEntry.delta_accumulated), 0),
                func.count(BalanceLedgerEntry.id),
            )
            .filter(BalanceLedgerEntry.player_id == player.id)
            .one()
        )
        calculated_total = Decimal(str(sums[0])).quantize(Decimal("0.000001"))
        calculated_accumulated = Decimal(str(sums[1])).quantize(Decimal("0.000001"))
        recorded_total = Decimal(str(player.total_balance)).quantize(Decimal("0.000001"))
        recorded_accumulated = Decimal(str(player.accumulated_balance)).quantize(
            Decimal("0.000001")
        )

        status = (
            "OK"
            if calculated_total == recorded_total
            and calculated_accumulated == recorded_accumulated
            else "MISMATCH"
        )

        return IntegrityCheckResponse(
            status=status,
            player_id=player.id,
            calculated_total=calculated_total,
            recorded_total=recorded_total,
            calculated_accumulated=calculated_accumulated,
            recorded_accumulated=recorded_accumulated,
            entry_count=sums[2],
            verified_at=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
        )

