"""Placement checks run before anything is committed.

Connection point filtering keeps only door slots that still sit on the outer
edge of a trimmed shape. Room integration validation answers "may this room be
placed here" without touching the grid tracker or the shared wall manager.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional

from .grid import GridManager
from .models import (
    ConnectionPoint,
    ConnectionPointState,
    ExitDirection,
    Grid,
    Position,
    Room,
    RoomTemplate,
    TemplateConnectionPoint,
)
from .shared_walls import UNEXPECTED_DOOR, SharedWallManager

INSUFFICIENT_SPACE = "Insufficient grid space for room placement"
SOLID_WALL_DOORS = "Would create doors against solid walls"


def _in_template(template: RoomTemplate, pos: Position) -> bool:
    return 0 <= pos.x < template.width and 0 <= pos.y < template.height


def _is_available(pos: Position, available_grid: Grid, trimmed_pattern: Grid) -> bool:
    try:
        return bool(available_grid[pos.y][pos.x]) and bool(trimmed_pattern[pos.y][pos.x])
    except IndexError:
        return False


def _on_perimeter(cp: TemplateConnectionPoint, trimmed_pattern: Grid, template: RoomTemplate) -> bool:
    x, y = cp.position.x, cp.position.y
    if cp.direction == ExitDirection.NORTH:
        return y == 0 or not trimmed_pattern[y - 1][x]
    if cp.direction == ExitDirection.SOUTH:
        return y == template.height - 1 or not trimmed_pattern[y + 1][x]
    if cp.direction == ExitDirection.WEST:
        return x == 0 or not trimmed_pattern[y][x - 1]
    if cp.direction == ExitDirection.EAST:
        return x == template.width - 1 or not trimmed_pattern[y][x + 1]
    return True


def validate_connection_points(
    template: RoomTemplate,
    available_grid: Grid,
    trimmed_pattern: Grid,
    preserve_index: Optional[int] = None,
) -> List[TemplateConnectionPoint]:
    """Filter a template's door slots down to the ones a trimmed room keeps.

    The anchor slot (``preserve_index``) skips the perimeter test but must
    still be available. Survivors carry their index in the template's list.
    """
    kept = []
    for index, cp in enumerate(template.connection_points):
        if not _in_template(template, cp.position):
            continue
        if not _is_available(cp.position, available_grid, trimmed_pattern):
            continue
        if index != preserve_index and not _on_perimeter(cp, trimmed_pattern, template):
            continue
        kept.append(replace(cp, index=index))
    return kept


def trim_to_fit(
    template: RoomTemplate,
    available_grid: Grid,
    preserve_index: Optional[int] = None,
) -> Optional[RoomTemplate]:
    """Intersect a template mask with available cells; ``None`` when nothing is left."""
    pattern = []
    any_cell = False
    for y in range(template.height):
        row = []
        for x in range(template.width):
            keep = bool(template.grid_pattern[y][x]) and bool(available_grid[y][x])
            any_cell = any_cell or keep
            row.append(keep)
        pattern.append(tuple(row))
    if not any_cell:
        return None
    points = validate_connection_points(template, available_grid, pattern, preserve_index)
    return replace(template, grid_pattern=tuple(pattern), connection_points=tuple(points))


def find_connection_point(element, position: Position, direction: ExitDirection) -> Optional[ConnectionPoint]:
    for cp in element.connection_points:
        if cp.position == position and cp.direction == direction:
            return cp
    return None


def mark_connection_point_generated(
    connection_point: ConnectionPoint,
    source_element_id: str,
    rooms,
    corridors,
    connected_element_id: Optional[str] = None,
) -> Optional[ConnectionPoint]:
    """Flag the live copy of ``connection_point`` on its source element as explored."""
    for element in list(rooms) + list(corridors):
        if element.id != source_element_id:
            continue
        cp = find_connection_point(element, connection_point.position, connection_point.direction)
        if cp is not None:
            cp.is_generated = True
            cp.is_connected = True
            if connected_element_id is not None:
                cp.connected_element_id = connected_element_id
            return cp
    return None


@dataclass
class IntegrationContext:
    source_connection_point: Optional[ConnectionPoint]
    source_element_id: Optional[str]
    rooms: list
    corridors: list
    shared_walls: SharedWallManager
    grid: GridManager


@dataclass
class PlacementValidation:
    is_valid: bool
    valid_connection_points: List[ConnectionPoint] = field(default_factory=list)
    original_indices: List[int] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _temporary_room(template: RoomTemplate, position: Position) -> Room:
    return Room(
        id=f"temp-{template.id}",
        shape=template.shape,
        type=template.type,
        size=template.size,
        position=position,
        width=template.width,
        height=template.height,
        template_id=template.id,
        grid_pattern=[list(row) for row in template.grid_pattern],
        connection_points=[
            ConnectionPoint(
                direction=cp.direction,
                position=position.offset(cp.position.x, cp.position.y),
                state=ConnectionPointState.UNGENERATED,
            )
            for cp in template.connection_points
        ],
    )


def validate_placement(template: RoomTemplate, position: Position, context: IntegrationContext) -> PlacementValidation:
    """Pre-flight check for placing ``template`` with its origin at ``position``.

    Space shortage short-circuits. Per-point problems are collected without
    stopping, then the shared wall manager's conflict scan runs on the
    uncommitted room.
    """
    available = context.grid.available_area(position, template.width, template.height)
    if not any(any(row) for row in available):
        return PlacementValidation(False, errors=[INSUFFICIENT_SPACE])

    errors: List[str] = []
    temp = _temporary_room(template, position)
    valid_points: List[ConnectionPoint] = []
    indices: List[int] = []
    for index, cp in enumerate(temp.connection_points):
        where = f"({cp.position.x}, {cp.position.y})"
        if context.shared_walls.would_place_door_against_solid_wall(cp):
            errors.append(f"Connection point at {where} conflicts with solid wall")
            continue
        if not context.grid.is_within_bounds(cp.position):
            errors.append(f"Connection point at {where} is in invalid position")
            continue
        valid_points.append(cp)
        indices.append(index)

    conflicts = context.shared_walls.check_door_conflicts(temp, position)
    if any(c.conflict_type == UNEXPECTED_DOOR for c in conflicts):
        errors.append(SOLID_WALL_DOORS)

    return PlacementValidation(
        is_valid=not errors,
        valid_connection_points=valid_points,
        original_indices=indices,
        errors=errors,
    )


__all__ = [
    "validate_connection_points",
    "trim_to_fit",
    "find_connection_point",
    "mark_connection_point_generated",
    "IntegrationContext",
    "PlacementValidation",
    "validate_placement",
    "INSUFFICIENT_SPACE",
    "SOLID_WALL_DOORS",
]
