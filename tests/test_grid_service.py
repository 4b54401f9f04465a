from decimal import Decimal

import pytest

from budgarden.core.exceptions import (
    NotInInventoryError,
    PlacedItemNotFoundError,
    PlayerNotFoundError,
    TileOccupiedError,
    UnknownItemError,
    ValidationError,
)
from budgarden.models.items import PlacedItem
from budgarden.services.grid_service import GridService
from budgarden.services.player_service import PlayerService
from budgarden.services.shop_service import ShopService


@pytest.fixture
def grid_service(seeded, settings, clock):
    def _make() -> GridService:
        return GridService(seeded(), settings, clock)

    return _make


@pytest.fixture
def player_state(seeded, settings, clock):
    def _state(player_id):
        return PlayerService(seeded(), settings, clock).get_state(player_id)

    return _state


def inventory_of(state) -> dict:
    return {entry.item_kind: entry.count for entry in state.inventory}


class TestPlaceItem:
    def test_place_uses_inventory_and_catalog_rate(
        self, register_player, grid_service, player_state
    ):
        player = register_player("planter")

        result = grid_service().place_item(player.id, "sprout", 2, 3, rotation=1)

        state = player_state(player.id)
        assert inventory_of(state) == {}
        assert len(state.placed_items) == 1
        placed = state.placed_items[0]
        assert placed.id == result.placed_item_id
        assert (placed.row, placed.col, placed.rotation) == (2, 3, 1)
        assert placed.accrual_rate_per_minute == Decimal("1000")

    def test_occupied_tile_then_retry_after_removal(
        self, register_player, set_total_balance, seeded, settings, clock, grid_service
    ):
        """같은 타일 두 번째 배치는 TileOccupied, 제거 후 재시도는 성공"""
        # Given
        player = register_player("crowded")
        set_total_balance(player.id, 100)
        ShopService(seeded(), settings, clock).purchase_item(player.id, "golden-bud")
        first = grid_service().place_item(player.id, "sprout", 1, 1)

        # When
        with pytest.raises(TileOccupiedError) as exc_info:
            grid_service().place_item(player.id, "golden-bud", 1, 1)

        # Then
        assert exc_info.value.error_code == "TILE_OCCUPIED"

        grid_service().remove_item(player.id, first.placed_item_id)
        retry = grid_service().place_item(player.id, "golden-bud", 1, 1)
        assert retry.placed_item_id > 0

    def test_failed_placement_keeps_inventory(
        self, register_player, set_total_balance, seeded, settings, clock, grid_service,
        player_state,
    ):
        player = register_player("careful")
        set_total_balance(player.id, 100)
        ShopService(seeded(), settings, clock).purchase_item(player.id, "golden-bud")
        grid_service().place_item(player.id, "sprout", 4, 4)

        with pytest.raises(TileOccupiedError):
            grid_service().place_item(player.id, "golden-bud", 4, 4)

        assert inventory_of(player_state(player.id)) == {"golden-bud": 1}

    def test_not_in_inventory(self, register_player, grid_service):
        player = register_player("emptyhanded")

        with pytest.raises(NotInInventoryError) as exc_info:
            grid_service().place_item(player.id, "golden-bud", 0, 0)

        assert exc_info.value.error_code == "NOT_IN_INVENTORY"

    def test_unknown_item(self, register_player, grid_service):
        player = register_player("dreamer")

        with pytest.raises(UnknownItemError):
            grid_service().place_item(player.id, "unicorn", 0, 0)

    @pytest.mark.parametrize("row,col", [(5, 0), (0, 5), (-1, 2)])
    def test_out_of_bounds(self, register_player, grid_service, row, col):
        player = register_player("edgy")

        with pytest.raises(ValidationError):
            grid_service().place_item(player.id, "sprout", row, col)

    def test_unknown_player(self, seeded, grid_service):
        with pytest.raises(PlayerNotFoundError):
            grid_service().place_item("missing-player", "sprout", 0, 0)

    def test_placement_credits_time_at_previous_rate(
        self, register_player, set_total_balance, seeded, settings, clock, grid_service,
        load_player,
    ):
        """배치 전까지의 경과 시간은 기존 생산량으로 먼저 정산된다"""
        player = register_player("upgrader")
        set_total_balance(player.id, 100)
        ShopService(seeded(), settings, clock).purchase_item(player.id, "golden-bud")
        grid_service().place_item(player.id, "sprout", 0, 3)
        clock.advance(minutes=2)

        grid_service().place_item(player.id, "golden-bud", 0, 4)

        stored = load_player(player.id)
        assert stored.accumulated_balance == Decimal("2000")

    def test_same_tile_for_different_players(self, register_player, grid_service):
        first = register_player("neighbor1")
        second = register_player("neighbor2")

        grid_service().place_item(first.id, "sprout", 2, 2)
        result = grid_service().place_item(second.id, "sprout", 2, 2)

        assert result.placed_item_id > 0


class TestMoveRotateRemove:
    @pytest.fixture
    def placed(self, register_player, grid_service):
        player = register_player("mover")
        result = grid_service().place_item(player.id, "sprout", 3, 0)
        return player, result.placed_item_id

    def test_move(self, placed, grid_service, player_state):
        player, placed_item_id = placed

        result = grid_service().move_item(player.id, placed_item_id, 4, 2)

        assert result.success is True
        item = player_state(player.id).placed_items[0]
        assert (item.row, item.col) == (4, 2)

    def test_move_onto_own_tile_is_noop(self, placed, grid_service):
        player, placed_item_id = placed

        result = grid_service().move_item(player.id, placed_item_id, 3, 0)

        assert result.success is True

    def test_move_onto_occupied_tile(
        self, placed, set_total_balance, seeded, settings, clock, grid_service
    ):
        player, placed_item_id = placed
        set_total_balance(player.id, 100)
        ShopService(seeded(), settings, clock).purchase_item(player.id, "golden-bud")
        grid_service().place_item(player.id, "golden-bud", 3, 1)

        with pytest.raises(TileOccupiedError):
            grid_service().move_item(player.id, placed_item_id, 3, 1)

    def test_move_missing_item(self, placed, grid_service):
        player, _ = placed

        with pytest.raises(PlacedItemNotFoundError) as exc_info:
            grid_service().move_item(player.id, 9999, 1, 1)

        assert exc_info.value.error_code == "NOT_FOUND_001"

    def test_rotate(self, placed, grid_service, player_state):
        player, placed_item_id = placed

        grid_service().rotate_item(player.id, placed_item_id, 1)

        assert player_state(player.id).placed_items[0].rotation == 1

    def test_rotate_rejects_invalid_rotation(self, placed, grid_service):
        player, placed_item_id = placed

        with pytest.raises(ValidationError):
            grid_service().rotate_item(player.id, placed_item_id, 2)

    def test_rotate_missing_item(self, placed, grid_service):
        player, _ = placed

        with pytest.raises(PlacedItemNotFoundError):
            grid_service().rotate_item(player.id, 9999, 0)

    def test_remove_returns_item_to_inventory(
        self, placed, grid_service, player_state, seeded
    ):
        player, placed_item_id = placed

        grid_service().remove_item(player.id, placed_item_id)

        state = player_state(player.id)
        assert state.placed_items == []
        assert inventory_of(state) == {"sprout": 1}

        session = seeded()
        assert session.get(PlacedItem, placed_item_id) is None
        session.close()

    def test_remove_merges_pending_accrual(self, placed, grid_service, clock, load_player):
        player, placed_item_id = placed
        clock.advance(minutes=3)

        grid_service().remove_item(player.id, placed_item_id)
        clock.advance(minutes=3)

        assert load_player(player.id).accumulated_balance == Decimal("3000")

    def test_remove_missing_item(self, placed, grid_service):
        player, _ = placed

        with pytest.raises(PlacedItemNotFoundError):
            grid_service().remove_item(player.id, 9999)

    def test_other_players_item_is_not_found(self, placed, register_player, grid_service):
        _, placed_item_id = placed
        intruder = register_player("intruder")

        with pytest.raises(PlacedItemNotFoundError):
            grid_service().rotate_item(intruder.id, placed_item_id, 1)
        with pytest.raises(PlacedItemNotFoundError):
            grid_service().remove_item(intruder.id, placed_item_id)
