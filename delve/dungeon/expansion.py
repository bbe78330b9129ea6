"""Block expansion: grow a room cell by cell inside a geomorph mask.

Rather than stamping the whole template rectangle, a room starts at the cell
it was entered from and floods outward. A cell joins the room only when the
template mask allows it, it is on the grid and nothing else claims it. The
frontier is processed nearest-first with a bias away from the source, so the
room fills the far side of the geomorph before it wraps back toward the door.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from .grid import GridManager
from .models import CARDINALS, ConnectionPoint, ConnectionPointState, ExitDirection, Grid, Position, RoomTemplate
from .positions import adjacent, opposite, to_vector
from .shared_walls import SharedWallManager


@dataclass
class ExpansionContext:
    entry_point: Position
    entry_direction: ExitDirection  # from the source toward the new room
    source_connection_point: ConnectionPoint
    source_element_id: str
    template: RoomTemplate
    target_position: Position  # where the template origin would sit
    rooms: list
    corridors: list
    grid: GridManager
    shared_walls: SharedWallManager


@dataclass
class ExpansionResult:
    expanded_blocks: List[Position] = field(default_factory=list)
    final_connection_points: List[ConnectionPoint] = field(default_factory=list)
    origin: Optional[Position] = None
    width: int = 0
    height: int = 0

    @property
    def room_bounds(self) -> Tuple[int, int]:
        return self.width, self.height

    def grid_pattern(self) -> Grid:
        blocks = set(self.expanded_blocks)
        return [
            [Position(self.origin.x + x, self.origin.y + y) in blocks for x in range(self.width)]
            for y in range(self.height)
        ]


def expansion_bias(entry_direction: ExitDirection) -> Tuple[int, int]:
    """Unit vector pointing away from the source, i.e. deeper into the new room."""
    return to_vector(entry_direction)


def biased_distance(position: Position, entry: Position, bias: Tuple[int, int]) -> float:
    dx = position.x - entry.x
    dy = position.y - entry.y
    return abs(dx) + abs(dy) - (dx * bias[0] + dy * bias[1]) * 0.5


def _neighbors(position: Position) -> List[Position]:
    # north, south, east, west
    return [adjacent(position, d) for d in CARDINALS]


def can_expand_to(position: Position, context: ExpansionContext) -> bool:
    rel_x = position.x - context.target_position.x
    rel_y = position.y - context.target_position.y
    template = context.template
    if not (0 <= rel_x < template.width and 0 <= rel_y < template.height):
        return False
    if not template.grid_pattern[rel_y][rel_x]:
        return False
    if not context.grid.is_within_bounds(position):
        return False
    return not context.grid.is_occupied(position)


def _flood(context: ExpansionContext) -> Set[Position]:
    entry = context.entry_point
    bias = expansion_bias(context.entry_direction)
    expanded = {entry}
    frontier = [entry]
    while frontier:
        frontier.sort(key=lambda p: (biased_distance(p, entry, bias), p.y, p.x))
        current = frontier.pop(0)
        for neighbor in _neighbors(current):
            if neighbor in expanded or not can_expand_to(neighbor, context):
                continue
            expanded.add(neighbor)
            frontier.append(neighbor)
    return expanded


def _perimeter(blocks: Set[Position]) -> List[Position]:
    return sorted(
        (b for b in blocks if any(n not in blocks for n in _neighbors(b))),
        key=lambda p: (p.y, p.x),
    )


def should_place_door(
    cell: Position,
    direction: ExitDirection,
    context: ExpansionContext,
) -> bool:
    beyond = adjacent(cell, direction)
    facing_back = opposite(direction)
    for element in list(context.rooms) + list(context.corridors):
        for cp in element.connection_points:
            if cp.position == beyond and cp.direction == facing_back:
                return True
    rel = Position(cell.x - context.target_position.x, cell.y - context.target_position.y)
    template_has_door = any(
        tcp.position == rel and tcp.direction == direction for tcp in context.template.connection_points
    )
    if not template_has_door:
        return False
    return not context.grid.is_occupied(beyond)


def expand_room(context: ExpansionContext) -> ExpansionResult:
    """Flood-fill a room from ``context.entry_point`` within the template mask.

    Returns an empty result when the entry cell itself cannot be claimed. An
    entry boxed in on all sides yields a single block with only the entry
    connection point.
    """
    if not can_expand_to(context.entry_point, context):
        return ExpansionResult()

    blocks = _flood(context)
    min_x = min(p.x for p in blocks)
    min_y = min(p.y for p in blocks)
    max_x = max(p.x for p in blocks)
    max_y = max(p.y for p in blocks)

    points = [
        ConnectionPoint(
            direction=opposite(context.source_connection_point.direction),
            position=context.entry_point,
            is_connected=True,
            connected_element_id=context.source_element_id,
            is_generated=True,
            state=ConnectionPointState.CONNECTED,
        )
    ]
    for cell in _perimeter(blocks):
        if cell == context.entry_point:
            continue
        for direction in CARDINALS:
            if adjacent(cell, direction) in blocks:
                continue
            if should_place_door(cell, direction, context):
                points.append(ConnectionPoint(direction=direction, position=cell))

    return ExpansionResult(
        expanded_blocks=sorted(blocks, key=lambda p: (p.y, p.x)),
        final_connection_points=points,
        origin=Position(min_x, min_y),
        width=max_x - min_x + 1,
        height=max_y - min_y + 1,
    )


__all__ = [
    "ExpansionContext",
    "ExpansionResult",
    "expand_room",
    "expansion_bias",
    "biased_distance",
    "can_expand_to",
    "should_place_door",
]
