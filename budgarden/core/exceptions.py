from decimal import Decimal
from fastapi import HTTPException, status
from typing import Optional, Dict, Any

class BaseAPIException(HTTPException):
    """Base exception for API errors"""
    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}

        super().__init__(
            status_code=status_code,
            detail={
                "success": False,
                "error": {
                    "code": error_code,
                    "message": message,
                    "details": self.details
                }
            }
        )

    def __str__(self) -> str:  # Ensure str(e) returns the human message
        return self.message

class ValidationError(BaseAPIException):
    """Validation errors"""
    def __init__(self, message: str = "Validation failed", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="VALIDATION_001",
            message=message,
            details=details
        )

class NotFoundError(BaseAPIException):
    """Resource not found errors"""
    def __init__(
        self,
        message: str = "Resource not found",
        details: Optional[Dict] = None,
        error_code: str = "NOT_FOUND_001",
    ):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code=error_code,
            message=message,
            details=details
        )

class ConflictError(BaseAPIException):
    """Resource conflict errors"""
    def __init__(
        self,
        message: str = "Resource conflict",
        details: Optional[Dict] = None,
        error_code: str = "CONFLICT_001",
    ):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code=error_code,
            message=message,
            details=details
        )

class InternalServerError(BaseAPIException):
    """Internal server errors"""
    def __init__(self, message: str = "Internal server error", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="INTERNAL_001",
            message=message,
            details=details
        )

class InsufficientBalanceError(BaseAPIException):
    """Insufficient balance errors"""
    def __init__(
        self,
        required: Decimal,
        available: Decimal,
        message: Optional[str] = None,
    ):
        self.required = required
        self.available = available
        self.shortfall = required - available
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="BALANCE_001",
            message=message
            or f"Insufficient balance. Required: {required}, Available: {available}",
            details={
                "required": str(required),
                "available": str(available),
                "shortfall": str(self.shortfall),
            }
        )

# Not-found family

class PlayerNotFoundError(NotFoundError):
    def __init__(self, player_id: str):
        super().__init__(
            message=f"Player not found: {player_id}",
            details={"player_id": player_id},
            error_code="PLAYER_NOT_FOUND",
        )

class UnknownItemError(NotFoundError):
    def __init__(self, item_kind: str):
        super().__init__(
            message=f"Unknown item: {item_kind}",
            details={"item_kind": item_kind},
            error_code="UNKNOWN_ITEM",
        )

class PlacedItemNotFoundError(NotFoundError):
    def __init__(self, placed_item_id: int):
        super().__init__(
            message=f"Placed item not found: {placed_item_id}",
            details={"placed_item_id": placed_item_id},
        )

class InvalidInviteCodeError(NotFoundError):
    def __init__(self, code: str):
        super().__init__(
            message="Invalid referral code",
            details={"code": code},
            error_code="INVALID_INVITE_CODE",
        )

# Conflict family

class TileOccupiedError(ConflictError):
    def __init__(self, row: int, col: int):
        super().__init__(
            message=f"Tile [{row}, {col}] is already occupied",
            details={"row": row, "col": col},
            error_code="TILE_OCCUPIED",
        )

class PurchaseLimitReachedError(ConflictError):
    def __init__(self, item_kind: str, limit: int):
        super().__init__(
            message=f"Purchase limit reached for {item_kind} (max {limit})",
            details={"item_kind": item_kind, "limit": limit},
            error_code="PURCHASE_LIMIT_REACHED",
        )

class NotInInventoryError(ConflictError):
    def __init__(self, item_kind: str):
        super().__init__(
            message=f"No {item_kind} left in inventory",
            details={"item_kind": item_kind},
            error_code="NOT_IN_INVENTORY",
        )

class UsernameTakenError(ConflictError):
    def __init__(self, username: str):
        super().__init__(
            message="Username already taken",
            details={"username": username},
            error_code="USERNAME_TAKEN",
        )

class PaymentSignatureUsedError(ConflictError):
    def __init__(self, signature: str):
        super().__init__(
            message="Payment signature has already been used",
            details={"signature": signature},
            error_code="PAYMENT_SIGNATURE_USED",
        )

class JointAlreadyUpgradedError(ConflictError):
    def __init__(self, player_id: str):
        super().__init__(
            message="Joint has already been upgraded",
            details={"player_id": player_id},
            error_code="JOINT_ALREADY_UPGRADED",
        )

class PaymentNotFoundError(NotFoundError):
    def __init__(self, signature: str):
        super().__init__(
            message="Verified payment not found",
            details={"signature": signature},
            error_code="PAYMENT_NOT_FOUND",
        )
