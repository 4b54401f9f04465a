from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal


class PlacedItemView(BaseModel):
    """배치된 아이템"""

    id: int = Field(..., description="서버 발급 배치 ID")
    item_kind: str = Field(..., description="아이템 식별자")
    row: int = Field(..., validation_alias="grid_row", description="행")
    col: int = Field(..., validation_alias="grid_col", description="열")
    rotation: int = Field(0, description="회전 (0 또는 1)")
    accrual_rate_per_minute: Decimal = Field(..., description="분당 생산량")
    placed_at: datetime = Field(..., description="배치 시각")

    class Config:
        from_attributes = True
        populate_by_name = True


class PlaceItemRequest(BaseModel):
    """배치 요청 - 생산량은 받지 않는다"""

    item_kind: str = Field(..., min_length=1, max_length=50)
    row: int = Field(..., ge=0)
    col: int = Field(..., ge=0)
    rotation: int = Field(0, ge=0, le=1)


class PlaceItemResponse(BaseModel):
    placed_item_id: int = Field(..., description="서버 발급 배치 ID")


class MoveItemRequest(BaseModel):
    row: int = Field(..., ge=0)
    col: int = Field(..., ge=0)


class RotateItemRequest(BaseModel):
    rotation: int = Field(..., ge=0, le=1)


class OperationResponse(BaseModel):
    success: bool = Field(..., description="성공 여부")
