from fastapi import APIRouter, Depends, Path

from budgarden.deps import get_shop_service
from budgarden.schemas.shop import PurchaseRequest, PurchaseResponse, ShopCatalogResponse
from budgarden.services.shop_service import ShopService

router = APIRouter(prefix="/players", tags=["shop"])


@router.get("/{player_id}/shop", response_model=ShopCatalogResponse)
def list_shop(
    player_id: str = Path(..., description="플레이어 ID"),
    shop_service: ShopService = Depends(get_shop_service),
) -> ShopCatalogResponse:
    """판매 중인 아이템과 플레이어별 구매 현황"""
    return shop_service.list_shop(player_id)


@router.post("/{player_id}/shop/purchase", response_model=PurchaseResponse)
def purchase_item(
    payload: PurchaseRequest,
    player_id: str = Path(..., description="플레이어 ID"),
    shop_service: ShopService = Depends(get_shop_service),
) -> PurchaseResponse:
    """
    아이템 구매 - 가격과 잔액은 서버 카탈로그/원장 기준

    HTTP Status:
        200: 구매 성공
        400: 잔액 부족 (BALANCE_001, details에 shortfall)
        404: 플레이어/아이템 없음
        409: 구매 한도 도달 (PURCHASE_LIMIT_REACHED)
    """
    return shop_service.purchase_item(player_id, payload.item_kind)
