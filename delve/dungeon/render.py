"""Plain-text map rendering for the CLI and debugging.

Legend: ``.`` room floor, ``#`` corridor, ``?`` cell holding an unexplored
door, ``E`` entrance floor, blank for solid rock.
"""
from __future__ import annotations

from typing import List

from .grid import room_cells
from .models import DoorState, DungeonMap, ExplorationState, RoomType


def render_ascii(dungeon: DungeonMap, exploration: ExplorationState = None) -> str:
    size = dungeon.grid_size
    canvas: List[List[str]] = [[" "] * size for _ in range(size)]

    def put(pos, ch):
        if 0 <= pos.x < size and 0 <= pos.y < size:
            canvas[pos.y][pos.x] = ch

    for corridor in dungeon.corridors:
        for cell in corridor.path:
            put(cell, "#")
    for room in dungeon.rooms:
        floor = "E" if room.type == RoomType.ENTRANCE else "."
        for cell in room_cells(room):
            put(cell, floor)
    if exploration is not None:
        for cp in exploration.unexplored_connection_points:
            put(cp.position, "?")

    lines = ["".join(row).rstrip() for row in canvas]
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines)


def summarize(dungeon: DungeonMap, exploration: ExplorationState) -> dict:
    states = list(exploration.door_states.values())
    return {
        "rooms": len(dungeon.rooms),
        "corridors": len(dungeon.corridors),
        "doors_open": sum(1 for s in states if s == DoorState.OPEN),
        "doors_closed": sum(1 for s in states if s == DoorState.CLOSED),
        "unexplored": len(exploration.unexplored_connection_points),
    }


__all__ = ["render_ascii", "summarize"]
