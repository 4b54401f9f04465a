"""
상점 / 구매 검증 서비스

구매 가능 여부 판단은 모두 서버 카탈로그와 플레이어 행 잠금 아래에서 이루어진다.
클라이언트는 아이템 식별자만 보낸다 (가격, 잔액은 받지 않음).

검사 순서:
1. UnknownItem - 카탈로그에 없거나 판매하지 않는 아이템
2. PurchaseLimitReached - 보유 + 배치 수량이 한도 이상 (잔액과 무관)
3. InsufficientBalance - total_balance < 가격 (수확 전 누적분은 사용할 수 없음)
"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from budgarden.config import Settings
from budgarden.core.exceptions import (
    InsufficientBalanceError,
    PurchaseLimitReachedError,
    UnknownItemError,
)
from budgarden.models.ledger import LedgerEntryType
from budgarden.repositories.item_repository import (
    CatalogRepository,
    InventoryRepository,
    PlacedItemRepository,
)
from budgarden.repositories.ledger_repository import LedgerRepository
from budgarden.schemas.shop import ShopCatalogResponse, ShopItem, PurchaseResponse
from budgarden.services.base_service import BaseLedgerService
from budgarden.utils.amount_utils import to_amount
from budgarden.utils.timezone_utils import Clock, utc_now

logger = logging.getLogger(__name__)


class ShopService(BaseLedgerService):
    """상점 관련 비즈니스 로직을 담당하는 서비스"""

    def __init__(self, db: Session, settings: Settings, clock: Clock = utc_now):
        super().__init__(db, settings, clock)
        self.catalog_repo = CatalogRepository(db)
        self.inventory_repo = InventoryRepository(db)
        self.placed_repo = PlacedItemRepository(db)
        self.ledger_repo = LedgerRepository(db)

    def _owned_count(self, player_id: str, item_kind: str) -> int:
        """구매 한도 계산용 수량 (인벤토리 + 그리드 배치)"""
        return self.inventory_repo.get_count(
            player_id, item_kind
        ) + self.placed_repo.count_kind(player_id, item_kind)

    def list_shop(self, player_id: str) -> ShopCatalogResponse:
        """판매 중인 카탈로그 + 플레이어별 구매 현황"""

        def _list_shop() -> ShopCatalogResponse:
            self._get_player(player_id)
            inventory_counts = self.inventory_repo.counts_for_player(player_id)
            placed_counts = self.placed_repo.counts_for_player(player_id)

            items = []
            for catalog_item in self.catalog_repo.list_purchasable():
                owned = inventory_counts.get(
                    catalog_item.item_kind, 0
                ) + placed_counts.get(catalog_item.item_kind, 0)
                limit = catalog_item.max_purchases_per_player
                item = ShopItem.model_validate(catalog_item)
                item.purchased_count = owned
                item.sold_out = limit is not None and owned >= limit
                items.append(item)

            return ShopCatalogResponse(items=items, total_count=len(items))

        return self._read_only(_list_shop)

    def purchase_item(self, player_id: str, item_kind: str) -> PurchaseResponse:
        """
        아이템 구매

        Args:
            player_id: 플레이어 ID
            item_kind: 구매할 아이템 식별자

        Returns:
            PurchaseResponse: 구매 후 보유 수량과 잔액

        Raises:
            PlayerNotFoundError, UnknownItemError, PurchaseLimitReachedError,
            InsufficientBalanceError
        """

        def _purchase() -> PurchaseResponse:
            # 잠금 이후의 검사-차감은 같은 플레이어의 다른 구매/수확과 직렬화됨
            player = self._lock_player(player_id)

            catalog_item = self.catalog_repo.get_item(item_kind)
            if catalog_item is None or not catalog_item.is_purchasable:
                raise UnknownItemError(item_kind)

            limit = catalog_item.max_purchases_per_player
            if limit is not None and self._owned_count(player_id, item_kind) >= limit:
                raise PurchaseLimitReachedError(item_kind, limit)

            price = to_amount(catalog_item.price)
            balance = to_amount(player.total_balance)
            if balance < price:
                raise InsufficientBalanceError(required=price, available=balance)

            player.total_balance = balance - price
            self.db.flush()

            new_count = self.inventory_repo.increment(player_id, item_kind)
            self.ledger_repo.record(
                player,
                LedgerEntryType.PURCHASE,
                delta_total=-price,
                delta_accumulated=Decimal("0"),
                reason=f"Purchase {item_kind}",
            )

            return PurchaseResponse(
                success=True,
                new_count=new_count,
                new_balance=player.total_balance,
                message=f"Purchased {catalog_item.name}",
            )

        try:
            result = self._safe_transaction(_purchase)
        except InsufficientBalanceError as e:
            logger.info(
                f"Purchase rejected for player {player_id}: {item_kind} "
                f"(shortfall {e.shortfall})"
            )
            raise

        logger.info(
            f"Player {player_id} purchased {item_kind} "
            f"(count={result.new_count}, balance={result.new_balance})"
        )
        return result
