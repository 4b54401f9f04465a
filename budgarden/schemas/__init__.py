from .balance import BalanceResponse, ClaimResponse, HarvestResponse
from .shop import ShopItem, ShopCatalogResponse, PurchaseRequest, PurchaseResponse
from .grid import PlacedItemView, PlaceItemRequest, PlaceItemResponse
from .player import PlayerResponse, PlayerStateResponse, InventoryItem
