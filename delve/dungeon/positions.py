"""Direction and placement math. Pure functions, no state."""
from __future__ import annotations

from typing import Tuple

from .models import ConnectionPoint, ExitDirection, Position, RoomTemplate

_OPPOSITE = {
    ExitDirection.NORTH: ExitDirection.SOUTH,
    ExitDirection.SOUTH: ExitDirection.NORTH,
    ExitDirection.EAST: ExitDirection.WEST,
    ExitDirection.WEST: ExitDirection.EAST,
    ExitDirection.NORTHEAST: ExitDirection.SOUTHWEST,
    ExitDirection.SOUTHWEST: ExitDirection.NORTHEAST,
    ExitDirection.NORTHWEST: ExitDirection.SOUTHEAST,
    ExitDirection.SOUTHEAST: ExitDirection.NORTHWEST,
}

_VECTORS = {
    ExitDirection.NORTH: (0, -1),
    ExitDirection.SOUTH: (0, 1),
    ExitDirection.EAST: (1, 0),
    ExitDirection.WEST: (-1, 0),
}

# (source facing, target facing) -> offset applied to the new element's origin so
# facing doors end up in adjacent cells instead of stacked on one cell.
DOOR_POSITION_ADJUSTMENTS = {
    (ExitDirection.WEST, ExitDirection.EAST): (-1, 0),
    (ExitDirection.EAST, ExitDirection.WEST): (1, 0),
    (ExitDirection.NORTH, ExitDirection.SOUTH): (0, -1),
    (ExitDirection.SOUTH, ExitDirection.NORTH): (0, 1),
}


def opposite(direction: ExitDirection) -> ExitDirection:
    return _OPPOSITE[direction]


def to_vector(direction: ExitDirection) -> Tuple[int, int]:
    """Unit step for a cardinal direction; diagonals yield (0, 0)."""
    return _VECTORS.get(direction, (0, 0))


def adjacent(position: Position, direction: ExitDirection) -> Position:
    dx, dy = to_vector(direction)
    return position.offset(dx, dy)


def connectable(cp1: ConnectionPoint, cp2: ConnectionPoint) -> bool:
    """Same cell, facing opposite ways.

    Not a door-join test: elements on either side of one wall are paired by
    ``door_registry.door_id``, which maps adjacent cells to one key.
    """
    return cp1.position == cp2.position and cp2.direction == opposite(cp1.direction)


def door_alignment_offset(source_dir: ExitDirection, target_dir: ExitDirection) -> Tuple[int, int]:
    return DOOR_POSITION_ADJUSTMENTS.get((source_dir, target_dir), (0, 0))


def calculate_room_position(source: ConnectionPoint, template: RoomTemplate) -> Tuple[Position, int]:
    """Place ``template`` so its first door facing back at ``source`` sits next to it.

    Returns ``(origin, index)``; ``index`` is -1 when the template has no
    opposite-facing door, in which case ``origin`` is the source position.
    """
    wanted = opposite(source.direction)
    for index, tcp in enumerate(template.connection_points):
        if tcp.direction != wanted:
            continue
        dx, dy = door_alignment_offset(source.direction, tcp.direction)
        origin = Position(
            source.position.x - tcp.position.x + dx,
            source.position.y - tcp.position.y + dy,
        )
        return origin, index
    return source.position, -1


__all__ = [
    "DOOR_POSITION_ADJUSTMENTS",
    "opposite",
    "to_vector",
    "adjacent",
    "connectable",
    "door_alignment_offset",
    "calculate_room_position",
]
