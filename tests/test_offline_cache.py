import json
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from budgarden.client.offline_cache import OfflineCache
from budgarden.schemas.cache import OfflineCacheSnapshot
from budgarden.schemas.grid import PlacedItemView
from budgarden.schemas.player import InventoryItem

SYNCED_AT = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def cache(tmp_path):
    return OfflineCache(tmp_path / "state" / "cache.json", key="budGarden_gameState")


def snapshot(total="100") -> OfflineCacheSnapshot:
    return OfflineCacheSnapshot(
        player_id="player-1",
        total_balance=Decimal(total),
        accumulated_balance=Decimal("12.5"),
        accrual_rate_per_minute=Decimal("1000"),
        inventory=[InventoryItem(item_kind="sprout", count=2)],
        placed_items=[
            PlacedItemView(
                id=7,
                item_kind="radio",
                row=1,
                col=3,
                rotation=1,
                accrual_rate_per_minute=Decimal("0"),
                placed_at=SYNCED_AT,
            )
        ],
        synced_at=SYNCED_AT,
    )


class TestOfflineCache:
    def test_read_missing(self, cache):
        assert cache.read() is None

    def test_write_then_read(self, cache):
        cache.write(snapshot())

        restored = cache.read()

        assert restored.total_balance == Decimal("100")
        assert restored.placed_items[0].id == 7
        assert (restored.placed_items[0].row, restored.placed_items[0].col) == (1, 3)
        assert restored.synced_at == SYNCED_AT

    def test_blob_is_stored_under_fixed_key(self, cache):
        cache.write(snapshot())

        stored = json.loads(cache.path.read_text(encoding="utf-8"))

        assert list(stored) == ["budGarden_gameState"]

    def test_write_replaces_wholesale(self, cache):
        cache.write(snapshot(total="100"))
        replacement = snapshot(total="5")
        replacement.placed_items = []

        cache.write(replacement)

        restored = cache.read()
        assert restored.total_balance == Decimal("5")
        assert restored.placed_items == []

    def test_corrupt_file_reads_as_none(self, cache):
        cache.path.parent.mkdir(parents=True)
        cache.path.write_text("{not json", encoding="utf-8")

        assert cache.read() is None

    def test_invalid_blob_reads_as_none(self, cache):
        cache.path.parent.mkdir(parents=True)
        cache.path.write_text(
            json.dumps({"budGarden_gameState": {"total_balance": "lots"}}), encoding="utf-8"
        )

        assert cache.read() is None

    def test_clear(self, cache):
        cache.write(snapshot())

        cache.clear()

        assert cache.read() is None
