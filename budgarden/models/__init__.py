from .base import Base, BaseModel
from .player import Player
from .items import ItemCatalog, InventoryEntry, PlacedItem
from .referral import ReferralCode
from .ledger import BalanceLedgerEntry, LedgerEntryType
from .payment import VerifiedPayment

__all__ = [
    "Base",
    "BaseModel",
    "Player",
    "ItemCatalog",
    "InventoryEntry",
    "PlacedItem",
    "ReferralCode",
    "BalanceLedgerEntry",
    "LedgerEntryType",
    "VerifiedPayment",
]
