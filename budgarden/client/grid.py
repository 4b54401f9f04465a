"""
클라이언트 측 그리드 미러

서버가 내려준 배치 목록을 그대로 비추는 로컬 점유 맵.
막힌 타일/점유 검사는 UX 용도이며 서버가 최종 판단한다.
"""

from typing import Dict, Iterable, List, Optional, Set, Tuple

from budgarden.schemas.grid import PlacedItemView

Tile = Tuple[int, int]


class GridMirror:
    def __init__(self, rows: int, cols: int, blocked_tiles: Iterable[Tile] = ()):
        self.rows = rows
        self.cols = cols
        self.blocked_tiles: Set[Tile] = {(int(r), int(c)) for r, c in blocked_tiles}
        self._by_tile: Dict[Tile, PlacedItemView] = {}

    def replace_all(self, placed_items: Iterable[PlacedItemView]) -> None:
        """서버 응답으로 통째로 교체"""
        self._by_tile = {(item.row, item.col): item for item in placed_items}

    def items(self) -> List[PlacedItemView]:
        return list(self._by_tile.values())

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def is_blocked(self, row: int, col: int) -> bool:
        return (row, col) in self.blocked_tiles

    def is_occupied(self, row: int, col: int) -> bool:
        return (row, col) in self._by_tile

    def can_place(self, row: int, col: int) -> bool:
        return (
            self.in_bounds(row, col)
            and not self.is_blocked(row, col)
            and not self.is_occupied(row, col)
        )

    def item_at(self, row: int, col: int) -> Optional[PlacedItemView]:
        return self._by_tile.get((row, col))

    def find(self, placed_item_id: int) -> Optional[PlacedItemView]:
        for item in self._by_tile.values():
            if item.id == placed_item_id:
                return item
        return None

    def put(self, item: PlacedItemView) -> None:
        self._by_tile[(item.row, item.col)] = item

    def pop(self, row: int, col: int) -> Optional[PlacedItemView]:
        return self._by_tile.pop((row, col), None)
