import logging
from typing import Callable, TypeVar

from sqlalchemy.orm import Session

from budgarden.config import Settings
from budgarden.core.exceptions import PlayerNotFoundError
from budgarden.models.player import Player
from budgarden.repositories.player_repository import PlayerRepository
from budgarden.utils.timezone_utils import Clock, utc_now

logger = logging.getLogger(__name__)

R = TypeVar("R")


class BaseLedgerService:
    """잔액을 변경하는 서비스의 공통 베이스

    - 트랜잭션 경계(commit/rollback)는 서비스 메서드 단위
    - 플레이어 행 잠금은 _lock_player로만 획득
    """

    def __init__(self, db: Session, settings: Settings, clock: Clock = utc_now):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.player_repo = PlayerRepository(db)

    def _safe_transaction(self, operation: Callable[[], R]) -> R:
        """Safe transaction execution helper."""
        try:
            result = operation()
            self.db.commit()
            return result
        except Exception:
            self.db.rollback()
            raise

    def _get_player(self, player_id: str) -> Player:
        player = self.player_repo.get_model(player_id)
        if player is None:
            raise PlayerNotFoundError(player_id)
        return player

    def _lock_player(self, player_id: str) -> Player:
        """플레이어 행 잠금 (SELECT ... FOR UPDATE). 트랜잭션 종료 시 해제"""
        player = self.player_repo.get_model(player_id, for_update=True)
        if player is None:
            raise PlayerNotFoundError(player_id)
        return player

    def _read_only(self, operation: Callable[[], R]) -> R:
        """조회 전용 실행. 결과를 만든 뒤 트랜잭션을 닫아 잠금을 오래 잡지 않는다."""
        try:
            return operation()
        finally:
            self.db.rollback()
