from typing import Optional

from sqlalchemy.orm import Session

from budgarden.models.player import Player
from budgarden.repositories.base import BaseRepository
from budgarden.schemas.player import PlayerResponse


class PlayerRepository(BaseRepository[Player, PlayerResponse]):
    """플레이어 리포지토리 - 잔액 변경 작업은 get_model(..., for_update=True)로 행을 잠근 뒤 수행"""

    def __init__(self, db: Session):
        super().__init__(Player, PlayerResponse, db)

    def get_by_username(self, username: str) -> Optional[Player]:
        return (
            self.db.query(Player)
            .filter(Player.username == username)
            .first()
        )
