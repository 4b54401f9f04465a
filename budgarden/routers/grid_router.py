"""
그리드 배치 API 라우터

- POST /players/{player_id}/placed-items: 인벤토리 아이템 배치
- POST /players/{player_id}/placed-items/{placed_item_id}/move: 이동
- POST /players/{player_id}/placed-items/{placed_item_id}/rotate: 회전
- DELETE /players/{player_id}/placed-items/{placed_item_id}: 배치 해제 (인벤토리 반환)
"""

from fastapi import APIRouter, Depends, Path, status

from budgarden.deps import get_grid_service
from budgarden.schemas.grid import (
    MoveItemRequest,
    OperationResponse,
    PlaceItemRequest,
    PlaceItemResponse,
    RotateItemRequest,
)
from budgarden.services.grid_service import GridService

router = APIRouter(prefix="/players", tags=["grid"])


@router.post(
    "/{player_id}/placed-items",
    response_model=PlaceItemResponse,
    status_code=status.HTTP_201_CREATED,
)
def place_item(
    payload: PlaceItemRequest,
    player_id: str = Path(..., description="플레이어 ID"),
    grid_service: GridService = Depends(get_grid_service),
) -> PlaceItemResponse:
    """
    아이템 배치

    HTTP Status:
        201: 배치 성공 (서버 발급 placed_item_id 반환)
        404: 아이템 없음 (UNKNOWN_ITEM)
        409: 타일 점유 (TILE_OCCUPIED) 또는 인벤토리 부족 (NOT_IN_INVENTORY)
        422: 그리드 범위 밖
    """
    return grid_service.place_item(
        player_id,
        item_kind=payload.item_kind,
        row=payload.row,
        col=payload.col,
        rotation=payload.rotation,
    )


@router.post(
    "/{player_id}/placed-items/{placed_item_id}/move",
    response_model=OperationResponse,
)
def move_item(
    payload: MoveItemRequest,
    player_id: str = Path(..., description="플레이어 ID"),
    placed_item_id: int = Path(..., description="배치 ID"),
    grid_service: GridService = Depends(get_grid_service),
) -> OperationResponse:
    return grid_service.move_item(player_id, placed_item_id, payload.row, payload.col)


@router.post(
    "/{player_id}/placed-items/{placed_item_id}/rotate",
    response_model=OperationResponse,
)
def rotate_item(
    payload: RotateItemRequest,
    player_id: str = Path(..., description="플레이어 ID"),
    placed_item_id: int = Path(..., description="배치 ID"),
    grid_service: GridService = Depends(get_grid_service),
) -> OperationResponse:
    return grid_service.rotate_item(player_id, placed_item_id, payload.rotation)


@router.delete(
    "/{player_id}/placed-items/{placed_item_id}",
    response_model=OperationResponse,
)
def remove_item(
    player_id: str = Path(..., description="플레이어 ID"),
    placed_item_id: int = Path(..., description="배치 ID"),
    grid_service: GridService = Depends(get_grid_service),
) -> OperationResponse:
    return grid_service.remove_item(player_id, placed_item_id)
