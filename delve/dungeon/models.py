"""Data model for the incremental dungeon engine.

Everything the generator hands to callers lives here: grid positions, the
direction/state enums, connection points, room templates (geomorphs), placed
rooms and corridors, shared door records and the exploration projection.

All positions attached to placed elements are world coordinates. Template
connection points are template-local until a room is placed.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ExitDirection(str, Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"
    # Diagonals exist in the vocabulary but the engine only ever places cardinal doors.
    NORTHEAST = "northeast"
    NORTHWEST = "northwest"
    SOUTHEAST = "southeast"
    SOUTHWEST = "southwest"


CARDINALS: Tuple[ExitDirection, ...] = (
    ExitDirection.NORTH,
    ExitDirection.SOUTH,
    ExitDirection.EAST,
    ExitDirection.WEST,
)


class ConnectionPointState(str, Enum):
    UNGENERATED = "ungenerated"
    GENERATING = "generating"
    CONNECTED = "connected"


class DoorState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    LOCKED = "locked"


class RoomShape(str, Enum):
    SQUARE = "square"
    RECTANGLE = "rectangle"
    CIRCLE = "circle"
    L_SHAPE = "l-shape"
    T_SHAPE = "t-shape"
    CROSS = "cross"
    OCTAGON = "octagon"
    IRREGULAR = "irregular"


class RoomType(str, Enum):
    ENTRANCE = "entrance"
    STANDARD = "standard"
    JUNCTION = "junction"
    SPECIAL = "special"


class RoomSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    HUGE = "huge"


class CorridorType(str, Enum):
    STRAIGHT = "straight"
    CORNER = "corner"
    T_JUNCTION = "t-junction"
    CROSS_JUNCTION = "cross-junction"
    DEAD_END = "dead-end"


class CorridorDirection(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    DIAGONAL_NE = "diagonal-ne"
    DIAGONAL_NW = "diagonal-nw"
    DIAGONAL_SE = "diagonal-se"
    DIAGONAL_SW = "diagonal-sw"


@dataclass(frozen=True)
class Position:
    x: int
    y: int

    def offset(self, dx: int, dy: int) -> "Position":
        return Position(self.x + dx, self.y + dy)

    def to_dict(self):
        return {"x": self.x, "y": self.y}


Grid = List[List[bool]]


@dataclass
class ConnectionPoint:
    direction: ExitDirection
    position: Position
    is_connected: bool = False
    connected_element_id: Optional[str] = None
    is_generated: bool = False
    generation_seed: Optional[str] = None
    state: ConnectionPointState = ConnectionPointState.UNGENERATED

    def copy(self, **changes) -> "ConnectionPoint":
        data = dict(
            direction=self.direction,
            position=self.position,
            is_connected=self.is_connected,
            connected_element_id=self.connected_element_id,
            is_generated=self.is_generated,
            generation_seed=self.generation_seed,
            state=self.state,
        )
        data.update(changes)
        return ConnectionPoint(**data)

    def to_dict(self):
        return {
            "direction": self.direction.value,
            "position": self.position.to_dict(),
            "is_connected": self.is_connected,
            "connected_element_id": self.connected_element_id,
            "is_generated": self.is_generated,
            "generation_seed": self.generation_seed,
            "state": self.state.value,
        }


@dataclass(frozen=True)
class TemplateConnectionPoint:
    """A door slot in template-local coordinates.

    ``index`` is filled in by the connection point validator so filtered
    results can be traced back to the template's own list.
    """

    direction: ExitDirection
    position: Position
    index: Optional[int] = None


@dataclass(frozen=True)
class RoomTemplate:
    id: str
    name: str
    shape: RoomShape
    type: RoomType
    size: RoomSize
    width: int
    height: int
    grid_pattern: Tuple[Tuple[bool, ...], ...]
    connection_points: Tuple[TemplateConnectionPoint, ...]

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "shape": self.shape.value,
            "type": self.type.value,
            "size": self.size.value,
            "width": self.width,
            "height": self.height,
            "grid_pattern": [list(row) for row in self.grid_pattern],
            "connection_points": [
                {"direction": cp.direction.value, "position": cp.position.to_dict()} for cp in self.connection_points
            ],
        }


@dataclass
class Room:
    id: str
    shape: RoomShape
    type: RoomType
    size: RoomSize
    position: Position
    width: int
    height: int
    connection_points: List[ConnectionPoint] = field(default_factory=list)
    template_id: Optional[str] = None
    grid_pattern: Optional[Grid] = None
    is_generated: bool = True

    def to_dict(self):
        return {
            "id": self.id,
            "kind": "room",
            "shape": self.shape.value,
            "type": self.type.value,
            "size": self.size.value,
            "position": self.position.to_dict(),
            "width": self.width,
            "height": self.height,
            "template_id": self.template_id,
            "grid_pattern": [list(row) for row in self.grid_pattern] if self.grid_pattern is not None else None,
            "is_generated": self.is_generated,
            "connection_points": [cp.to_dict() for cp in self.connection_points],
        }


@dataclass
class Corridor:
    id: str
    type: CorridorType
    direction: CorridorDirection
    position: Position
    length: int
    path: List[Position] = field(default_factory=list)
    connection_points: List[ConnectionPoint] = field(default_factory=list)
    width: int = 1
    is_generated: bool = True

    def to_dict(self):
        return {
            "id": self.id,
            "kind": "corridor",
            "type": self.type.value,
            "direction": self.direction.value,
            "position": self.position.to_dict(),
            "length": self.length,
            "width": self.width,
            "is_generated": self.is_generated,
            "path": [p.to_dict() for p in self.path],
            "connection_points": [cp.to_dict() for cp in self.connection_points],
        }


@dataclass(frozen=True)
class DoorLocation:
    position: Position
    direction: ExitDirection
    global_id: str


@dataclass
class SharedDoor:
    location: DoorLocation
    state: DoorState = DoorState.CLOSED
    connected_elements: List[str] = field(default_factory=list)
    is_generated: bool = False
    connected_element_id: Optional[str] = None
    generation_seed: Optional[str] = None

    def to_dict(self):
        return {
            "id": self.location.global_id,
            "position": self.location.position.to_dict(),
            "direction": self.location.direction.value,
            "state": self.state.value,
            "connected_elements": list(self.connected_elements),
            "is_generated": self.is_generated,
            "connected_element_id": self.connected_element_id,
            "generation_seed": self.generation_seed,
        }


@dataclass
class ExplorationState:
    discovered_room_ids: set = field(default_factory=set)
    discovered_corridor_ids: set = field(default_factory=set)
    door_states: Dict[str, DoorState] = field(default_factory=dict)
    unexplored_connection_points: List[ConnectionPoint] = field(default_factory=list)

    def to_dict(self):
        return {
            "discovered_room_ids": sorted(self.discovered_room_ids),
            "discovered_corridor_ids": sorted(self.discovered_corridor_ids),
            "door_states": {k: v.value for k, v in self.door_states.items()},
            "unexplored_connection_points": [cp.to_dict() for cp in self.unexplored_connection_points],
        }


@dataclass
class DungeonMap:
    id: str
    name: str
    rooms: List[Room]
    corridors: List[Corridor]
    created_at: datetime
    grid_size: int
    total_rooms: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "rooms": [r.to_dict() for r in self.rooms],
            "corridors": [c.to_dict() for c in self.corridors],
            "created_at": self.created_at.isoformat(),
            "grid_size": self.grid_size,
            "total_rooms": self.total_rooms,
        }


__all__ = [
    "ExitDirection",
    "CARDINALS",
    "ConnectionPointState",
    "DoorState",
    "RoomShape",
    "RoomType",
    "RoomSize",
    "CorridorType",
    "CorridorDirection",
    "Position",
    "Grid",
    "ConnectionPoint",
    "TemplateConnectionPoint",
    "RoomTemplate",
    "Room",
    "Corridor",
    "DoorLocation",
    "SharedDoor",
    "ExplorationState",
    "DungeonMap",
]
