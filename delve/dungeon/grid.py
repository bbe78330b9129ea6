"""Grid occupancy tracking.

Holds derived state only: which world cells are claimed and by which element.
The generator rebuilds it from its room/corridor lists after a rollback.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Set

from .models import Corridor, Grid, Position, Room
from .templates import TemplateCatalog, default_catalog


def effective_pattern(room: Room, catalog: Optional[TemplateCatalog] = None) -> Grid:
    """Room mask: custom pattern, else its template's, else the full rectangle."""
    if room.grid_pattern is not None:
        return room.grid_pattern
    template = (catalog or default_catalog).by_id(room.template_id)
    if template is not None and template.width == room.width and template.height == room.height:
        return [list(row) for row in template.grid_pattern]
    return [[True] * room.width for _ in range(room.height)]


def room_cells(room: Room, catalog: Optional[TemplateCatalog] = None) -> List[Position]:
    pattern = effective_pattern(room, catalog)
    cells = []
    for y, row in enumerate(pattern):
        for x, filled in enumerate(row):
            if filled and x < room.width and y < room.height:
                cells.append(Position(room.position.x + x, room.position.y + y))
    return cells


class GridManager:
    def __init__(self, grid_size: int, catalog: Optional[TemplateCatalog] = None):
        self.grid_size = grid_size
        self.catalog = catalog or default_catalog
        self._owners: Dict[Position, str] = {}

    def reset(self) -> None:
        self._owners.clear()

    def mark_room_occupied(self, room: Room) -> None:
        for cell in room_cells(room, self.catalog):
            self._owners[cell] = room.id

    def mark_corridor_occupied(self, corridor: Corridor) -> None:
        for cell in corridor.path:
            self._owners[cell] = corridor.id

    def is_occupied(self, position: Position) -> bool:
        return position in self._owners

    def owner_of(self, position: Position) -> Optional[str]:
        return self._owners.get(position)

    def is_within_bounds(self, position: Position) -> bool:
        return 0 <= position.x < self.grid_size and 0 <= position.y < self.grid_size

    def available_area(self, origin: Position, width: int, height: int) -> Grid:
        """``grid[y][x]`` is True when that cell is in bounds and unclaimed."""
        grid = []
        for y in range(height):
            row = []
            for x in range(width):
                cell = Position(origin.x + x, origin.y + y)
                row.append(self.is_within_bounds(cell) and not self.is_occupied(cell))
            grid.append(row)
        return grid

    def is_area_available(self, origin: Position, width: int, height: int) -> bool:
        return all(all(row) for row in self.available_area(origin, width, height))

    def force_mark_available(self, local_pos: Position, grid: Grid) -> None:
        """Flip one template-local cell of an availability grid to True.

        Used for the incoming connection point's cell so a stale occupancy
        answer does not trim away the anchor before placement.
        """
        if 0 <= local_pos.y < len(grid) and 0 <= local_pos.x < len(grid[local_pos.y]):
            grid[local_pos.y][local_pos.x] = True

    def occupied_positions(self) -> Set[Position]:
        return set(self._owners)

    def __len__(self) -> int:
        return len(self._owners)


__all__ = ["GridManager", "effective_pattern", "room_cells"]
