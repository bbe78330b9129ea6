"""Global door registry keyed by wall edge.

A connection point names a door by the cell it sits in plus the wall it faces.
The same wall edge can be named from either side: ``(x, y) north`` and
``(x, y-1) south`` are one door. :func:`door_id` folds north/west onto the
neighbouring cell's south/east so both elements resolve to a single record.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from .models import (
    ConnectionPoint,
    DoorLocation,
    DoorState,
    ExitDirection,
    Position,
    SharedDoor,
)

_FOLD = {
    ExitDirection.NORTH: ((0, -1), ExitDirection.SOUTH),
    ExitDirection.WEST: ((-1, 0), ExitDirection.EAST),
}


def canonical_edge(position: Position, direction: ExitDirection) -> Tuple[Position, ExitDirection]:
    fold = _FOLD.get(direction)
    if fold is None:
        return position, direction
    (dx, dy), facing = fold
    return position.offset(dx, dy), facing


def door_id(position: Position, direction: ExitDirection) -> str:
    pos, facing = canonical_edge(position, direction)
    return f"door-{pos.x}-{pos.y}-{facing.value}"


class DoorRegistry:
    def __init__(self):
        self._doors: Dict[str, SharedDoor] = {}

    door_id = staticmethod(door_id)

    def register(
        self,
        position: Position,
        direction: ExitDirection,
        element_id: str,
        initial_state: DoorState = DoorState.CLOSED,
        seed: Optional[str] = None,
    ) -> str:
        gid = door_id(position, direction)
        existing = self._doors.get(gid)
        if existing is not None:
            if element_id not in existing.connected_elements:
                existing.connected_elements.append(element_id)
            return gid
        self._doors[gid] = SharedDoor(
            location=DoorLocation(position=position, direction=direction, global_id=gid),
            state=initial_state,
            connected_elements=[element_id],
            is_generated=False,
            generation_seed=seed,
        )
        return gid

    def get_door(self, global_id: str) -> Optional[SharedDoor]:
        return self._doors.get(global_id)

    def get_door_by_location(self, position: Position, direction: ExitDirection) -> Optional[SharedDoor]:
        return self._doors.get(door_id(position, direction))

    def has_door(self, position: Position, direction: ExitDirection) -> bool:
        return door_id(position, direction) in self._doors

    def update_state(self, global_id: str, state: DoorState) -> bool:
        door = self._doors.get(global_id)
        if door is None:
            return False
        door.state = state
        return True

    def mark_generated(self, global_id: str, connected_element_id: str) -> bool:
        door = self._doors.get(global_id)
        if door is None:
            return False
        door.is_generated = True
        door.connected_element_id = connected_element_id
        return True

    def get_door_state(self, position: Position, direction: ExitDirection) -> DoorState:
        door = self.get_door_by_location(position, direction)
        return door.state if door is not None else DoorState.CLOSED

    def is_door_generated(self, position: Position, direction: ExitDirection) -> bool:
        door = self.get_door_by_location(position, direction)
        return bool(door and door.is_generated)

    def get_door_generation_seed(self, position: Position, direction: ExitDirection) -> Optional[str]:
        door = self.get_door_by_location(position, direction)
        return door.generation_seed if door is not None else None

    def doors_for_element(self, element_id: str) -> List[SharedDoor]:
        return [d for d in self._doors.values() if element_id in d.connected_elements]

    def connect_element_to_existing(self, element_id: str, points: Iterable[ConnectionPoint]) -> List[ConnectionPoint]:
        """Attach ``element_id`` to doors already registered at its points' edges.

        Returns fresh point objects; points without a door come back as
        unmodified copies.
        """
        updated = []
        for cp in points:
            door = self.get_door_by_location(cp.position, cp.direction)
            if door is None:
                updated.append(cp.copy())
                continue
            if element_id not in door.connected_elements:
                door.connected_elements.append(element_id)
            updated.append(
                cp.copy(
                    is_connected=True,
                    is_generated=door.is_generated,
                    connected_element_id=door.connected_elements[0] if door.connected_elements else None,
                )
            )
        return updated

    def remove_element(self, element_id: str) -> None:
        for gid in list(self._doors):
            door = self._doors[gid]
            if element_id in door.connected_elements:
                door.connected_elements.remove(element_id)
                if not door.connected_elements:
                    del self._doors[gid]

    def has_conflicting_doors(self, position: Position) -> bool:
        """True when one cell registered doors on two opposite walls.

        Only doors first registered from ``position`` itself count; a door seen
        from the neighbouring cell belongs to that cell's wall list.
        """
        facing = set()
        for direction in (ExitDirection.NORTH, ExitDirection.SOUTH, ExitDirection.EAST, ExitDirection.WEST):
            door = self.get_door_by_location(position, direction)
            if door is not None and door.location.position == position:
                facing.add(door.location.direction)
        return {ExitDirection.NORTH, ExitDirection.SOUTH} <= facing or {ExitDirection.EAST, ExitDirection.WEST} <= facing

    def all_doors(self) -> List[SharedDoor]:
        return list(self._doors.values())

    def clear(self) -> None:
        self._doors.clear()

    def __len__(self) -> int:
        return len(self._doors)


__all__ = ["DoorRegistry", "door_id", "canonical_edge"]
