"""Shared wall manager: keeps door records consistent across adjacent elements.

Every committed room or corridor passes through :meth:`SharedWallManager.add_element`.
Doors are joined by wall edge (see ``door_registry.door_id``) so two elements
generated independently on either side of one wall share a single record, and
the door opens by itself once both sides exist.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from ..logging_utils import get_logger
from .door_registry import DoorRegistry, door_id
from .grid import room_cells
from .models import ConnectionPoint, Corridor, DoorState, ExitDirection, Position, Room
from .positions import adjacent
from .templates import TemplateCatalog

log = get_logger("delve.shared_walls")

UNEXPECTED_DOOR = "unexpected_door"
MISSING_DOOR = "missing_door"


@dataclass(frozen=True)
class DoorConflict:
    position: Position
    direction: ExitDirection
    conflict_type: str

    def to_dict(self):
        return {"position": self.position.to_dict(), "direction": self.direction.value, "conflict_type": self.conflict_type}


@dataclass(frozen=True)
class DoorIssue:
    position: Position
    issue: str

    def to_dict(self):
        return {"position": self.position.to_dict(), "issue": self.issue}


def element_cells(element, catalog: Optional[TemplateCatalog] = None) -> Set[Position]:
    if isinstance(element, Room):
        return set(room_cells(element, catalog))
    return set(element.path)


def translated(element, target_position: Position):
    """Copy of ``element`` moved so its origin sits at ``target_position``."""
    dx = target_position.x - element.position.x
    dy = target_position.y - element.position.y
    points = [cp.copy(position=cp.position.offset(dx, dy)) for cp in element.connection_points]
    if isinstance(element, Room):
        return Room(
            id=element.id,
            shape=element.shape,
            type=element.type,
            size=element.size,
            position=target_position,
            width=element.width,
            height=element.height,
            connection_points=points,
            template_id=element.template_id,
            grid_pattern=element.grid_pattern,
            is_generated=element.is_generated,
        )
    return Corridor(
        id=element.id,
        type=element.type,
        direction=element.direction,
        position=target_position,
        length=element.length,
        path=[p.offset(dx, dy) for p in element.path],
        connection_points=points,
        width=element.width,
        is_generated=element.is_generated,
    )


class SharedWallManager:
    def __init__(self, registry: Optional[DoorRegistry] = None, catalog: Optional[TemplateCatalog] = None):
        self.registry = registry or DoorRegistry()
        self.catalog = catalog
        self._elements: List = []
        self._cells: Dict[str, Set[Position]] = {}
        self.last_auto_opened: List[str] = []

    @property
    def elements(self) -> List:
        return list(self._elements)

    def get_element(self, element_id: str):
        for element in self._elements:
            if element.id == element_id:
                return element
        return None

    def add_element(self, element) -> List[ConnectionPoint]:
        """Register ``element`` and return its updated connection points.

        The element's ``connection_points`` list is replaced with the returned
        one, so callers holding the element see the merged door flags.
        """
        self._elements.append(element)
        self._cells[element.id] = element_cells(element, self.catalog)

        updated = self.registry.connect_element_to_existing(element.id, element.connection_points)
        element.connection_points = updated

        for cp in updated:
            if not self.registry.has_door(cp.position, cp.direction):
                self.registry.register(cp.position, cp.direction, element.id, DoorState.CLOSED, cp.generation_seed)

        self.last_auto_opened = self._auto_open_revealed_doors()
        return updated

    def remove_element(self, element_id: str) -> None:
        self._elements = [e for e in self._elements if e.id != element_id]
        self._cells.pop(element_id, None)
        self.registry.remove_element(element_id)

    def _auto_open_revealed_doors(self) -> List[str]:
        opened = []
        present = {e.id for e in self._elements}
        for door in self.registry.all_doors():
            if door.state == DoorState.OPEN or len(door.connected_elements) < 2:
                continue
            if not all(eid in present for eid in door.connected_elements):
                continue
            gid = door.location.global_id
            self.registry.update_state(gid, DoorState.OPEN)
            self.registry.mark_generated(gid, ",".join(door.connected_elements))
            for eid in door.connected_elements:
                element = self.get_element(eid)
                for cp in element.connection_points:
                    if door_id(cp.position, cp.direction) == gid:
                        cp.is_generated = True
                        cp.is_connected = True
            opened.append(gid)
            log.debug(event="door_auto_opened", door=gid, elements=",".join(door.connected_elements))
        return opened

    def update_door_state(self, position: Position, direction: ExitDirection, state: DoorState) -> bool:
        return self.registry.update_state(door_id(position, direction), state)

    def mark_door_generated(self, position: Position, direction: ExitDirection, connected_element_id: str) -> bool:
        return self.registry.mark_generated(door_id(position, direction), connected_element_id)

    def get_door_state(self, position: Position, direction: ExitDirection) -> DoorState:
        return self.registry.get_door_state(position, direction)

    def is_door_generated(self, position: Position, direction: ExitDirection) -> bool:
        return self.registry.is_door_generated(position, direction)

    def element_doors(self, element_id: str) -> List[dict]:
        return [
            {
                "position": d.location.position,
                "direction": d.location.direction,
                "state": d.state,
                "is_generated": d.is_generated,
            }
            for d in self.registry.doors_for_element(element_id)
        ]

    def _occupants(self, position: Position) -> List:
        return [e for e in self._elements if position in self._cells.get(e.id, ())]

    def would_place_door_against_solid_wall(self, connection_point: ConnectionPoint) -> bool:
        """True if the cell behind this door belongs to an element with no door on that edge."""
        beyond = adjacent(connection_point.position, connection_point.direction)
        occupants = self._occupants(beyond)
        if not occupants:
            return False
        gid = door_id(connection_point.position, connection_point.direction)
        for element in occupants:
            if any(door_id(cp.position, cp.direction) == gid for cp in element.connection_points):
                return False
        return True

    def check_door_conflicts(self, candidate, target_position: Position) -> List[DoorConflict]:
        """Diagnose how ``candidate`` placed at ``target_position`` fits existing doors.

        ``unexpected_door``: the candidate names a registered door whose owners
        do not actually sit across that wall. ``missing_door``: a registered
        door on a wall shared with the candidate that the candidate lacks.
        """
        temp = translated(candidate, target_position)
        conflicts: List[DoorConflict] = []
        own_edges = set()
        for cp in temp.connection_points:
            gid = door_id(cp.position, cp.direction)
            own_edges.add(gid)
            door = self.registry.get_door(gid)
            if door is None:
                continue
            beyond = adjacent(cp.position, cp.direction)
            expected = any(beyond in self._cells.get(eid, ()) for eid in door.connected_elements)
            if not expected:
                conflicts.append(DoorConflict(cp.position, cp.direction, UNEXPECTED_DOOR))

        cells = element_cells(temp, self.catalog)
        for door in self.registry.all_doors():
            gid = door.location.global_id
            if gid in own_edges:
                continue
            near = door.location.position
            far = adjacent(near, door.location.direction)
            for mine, theirs in ((near, far), (far, near)):
                if mine not in cells:
                    continue
                if any(theirs in self._cells.get(eid, ()) for eid in door.connected_elements):
                    conflicts.append(DoorConflict(mine, _facing(mine, theirs), MISSING_DOOR))
        return conflicts

    def validate_door_consistency(self) -> List[DoorIssue]:
        issues: List[DoorIssue] = []
        present = {e.id for e in self._elements}
        for door in self.registry.all_doors():
            pos = door.location.position
            if len(door.connected_elements) > 1 and not all(eid in present for eid in door.connected_elements):
                issues.append(
                    DoorIssue(pos, f"Door references missing elements: {', '.join(door.connected_elements)}")
                )
            if self.registry.has_conflicting_doors(pos):
                issues.append(DoorIssue(pos, "Conflicting doors in opposite directions at same position"))
        return issues

    def reset(self) -> None:
        self._elements = []
        self._cells.clear()
        self.last_auto_opened = []
        self.registry.clear()


def _facing(src: Position, dst: Position) -> ExitDirection:
    if dst.x > src.x:
        return ExitDirection.EAST
    if dst.x < src.x:
        return ExitDirection.WEST
    if dst.y > src.y:
        return ExitDirection.SOUTH
    return ExitDirection.NORTH


__all__ = [
    "SharedWallManager",
    "DoorConflict",
    "DoorIssue",
    "UNEXPECTED_DOOR",
    "MISSING_DOOR",
    "element_cells",
    "translated",
]
