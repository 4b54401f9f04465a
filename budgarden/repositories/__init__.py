# Repository layer - Data access with Pydantic responses

from .base import BaseRepository
from .player_repository import PlayerRepository
from .item_repository import CatalogRepository, InventoryRepository, PlacedItemRepository
from .referral_repository import ReferralRepository
from .ledger_repository import LedgerRepository
from .payment_repository import PaymentRepository

__all__ = [
    "BaseRepository",
    "PlayerRepository",
    "CatalogRepository",
    "InventoryRepository",
    "PlacedItemRepository",
    "ReferralRepository",
    "LedgerRepository",
    "PaymentRepository",
]
