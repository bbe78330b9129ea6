"""Incremental dungeon generator.

Owns the authoritative room and corridor lists plus the exploration state, and
drives everything else: the grid tracker and shared wall manager are derived
indexes rebuilt from those lists whenever a step is rolled back.

Lifecycle of a connection point::

    ungenerated --open_door--> generating --success--> connected
                                   |
                                   +--no-op / rejected / rolled back--> ungenerated

A point whose door is already open (for example auto-opened because the
element on the other side was generated first) goes straight to connected.
"""
from __future__ import annotations

import copy
import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..logging_utils import get_logger
from .config import (
    MAX_CORRIDOR_LENGTH_VARIANCE,
    MIN_CORRIDOR_LENGTH,
    ROOM_GENERATION_PROBABILITY,
    GenerationSettings,
)
from .expansion import ExpansionContext, expand_room
from .grid import GridManager
from .metrics import bump, init_metrics
from .models import (
    ConnectionPoint,
    ConnectionPointState,
    Corridor,
    CorridorDirection,
    CorridorType,
    DoorState,
    DungeonMap,
    ExitDirection,
    ExplorationState,
    Position,
    Room,
    RoomTemplate,
    RoomType,
    TemplateConnectionPoint,
)
from .positions import adjacent, calculate_room_position, opposite
from .shared_walls import MISSING_DOOR, DoorIssue, SharedWallManager
from .templates import TemplateCatalog, default_catalog
from .validators import (
    IntegrationContext,
    PlacementValidation,
    find_connection_point,
    mark_connection_point_generated,
    validate_placement,
)

log = get_logger("delve.generator")

_ID_ALPHABET = string.ascii_lowercase + string.digits


def make_seed(connection_point: ConnectionPoint, now_ms: Optional[int] = None) -> str:
    """Seed string for a connection point: position, facing and a millisecond clock."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    pos = connection_point.position
    return f"{pos.x}-{pos.y}-{connection_point.direction.value}-{now_ms}"


def seed_to_number(seed: str) -> int:
    """Fold a seed string into a non-negative int.

    ``h = h * 31 + code`` over UTF-16 code units, wrapped to a signed 32-bit
    value after each step, absolute value at the end.
    """
    h = 0
    data = seed.encode("utf-16-le")
    for i in range(0, len(data), 2):
        code = data[i] | (data[i + 1] << 8)
        h = ((h << 5) - h + code) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 1 << 32
    return abs(h)


def chooses_room(seed_number: int, probability: float = ROOM_GENERATION_PROBABILITY) -> bool:
    return seed_number % 10 < round(probability * 10)


def corridor_length_for(seed_number: int) -> int:
    return MIN_CORRIDOR_LENGTH + seed_number % MAX_CORRIDOR_LENGTH_VARIANCE


def element_door_id(element_id: str, index: int) -> str:
    return f"{element_id}-door-{index}"


def parse_element_door_id(door_key: str) -> Tuple[str, int]:
    element_id, sep, index = door_key.rpartition("-door-")
    if not sep or not element_id or not index.isdigit():
        raise ValueError(f"not an element door id: {door_key!r}")
    return element_id, int(index)


def determine_corridor_type(path: List[Position]) -> CorridorType:
    # Corridors are walked in a single direction, so they are always straight.
    return CorridorType.STRAIGHT


def corridor_direction(path: List[Position], heading: ExitDirection) -> CorridorDirection:
    if len(path) > 1:
        return CorridorDirection.HORIZONTAL if path[1].x != path[0].x else CorridorDirection.VERTICAL
    if heading in (ExitDirection.EAST, ExitDirection.WEST):
        return CorridorDirection.HORIZONTAL
    return CorridorDirection.VERTICAL


@dataclass
class GenerationRequest:
    connection_point: ConnectionPoint
    source_element_id: str
    settings: Optional[GenerationSettings] = None


@dataclass
class GeneratedElements:
    rooms: List[Room] = field(default_factory=list)
    corridors: List[Corridor] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.rooms and not self.corridors


@dataclass(frozen=True)
class WorldState:
    """Committed state at one point in time. Deep copies; never mutated."""

    rooms: Tuple[Room, ...]
    corridors: Tuple[Corridor, ...]
    room_counter: int
    exploration: ExplorationState
    commit_order: Tuple[str, ...]


class IncrementalDungeonGenerator:
    def __init__(self, settings: Optional[GenerationSettings] = None, catalog: Optional[TemplateCatalog] = None):
        self.settings = settings or GenerationSettings()
        self.catalog = catalog or default_catalog
        self.rng = random.Random(self.settings.seed)
        self.grid = GridManager(self.settings.grid_size, self.catalog)
        self.shared_walls = SharedWallManager(catalog=self.catalog)
        self.rooms: List[Room] = []
        self.corridors: List[Corridor] = []
        self.room_counter = 0
        self.exploration = ExplorationState()
        self.metrics: Dict[str, int] = init_metrics() if self.settings.enable_metrics else {}
        self._commit_order: List[str] = []

    # ------------------------------------------------------------------ public API

    @property
    def exploration_state(self) -> ExplorationState:
        return self.exploration

    def generate_initial_dungeon(self) -> DungeonMap:
        self._reset()
        room = self._generate_entrance_room()
        self._commit(room)
        log.info(
            event="dungeon_initialized",
            grid=self.settings.grid_size,
            entrance=room.template_id,
            doors=len(room.connection_points),
        )
        return self._create_map()

    def generate_from_connection_point(self, request: GenerationRequest) -> DungeonMap:
        """Generate whatever lies behind ``request.connection_point`` and commit it.

        Never raises for generation problems: on any failure the world is
        restored to the snapshot taken on entry and the unchanged map returned.
        """
        cp = request.connection_point
        snapshot = self._snapshot()
        try:
            seed = cp.generation_seed or make_seed(cp)
            generated = self._generate_connected_content(cp, seed, request.source_element_id)
            if generated.is_empty():
                bump(self.metrics, "noop_generations")
                return self._create_map()
            self.integrate_generated_elements(generated, cp, request.source_element_id)
        except Exception as exc:  # rollback boundary
            log.warn(
                event="generation_rolled_back",
                source=request.source_element_id,
                x=cp.position.x,
                y=cp.position.y,
                direction=cp.direction.value,
                error=repr(exc),
            )
            bump(self.metrics, "rollbacks")
            self._restore(snapshot)
        return self._create_map()

    def integrate_generated_elements(
        self,
        generated: GeneratedElements,
        connection_point: ConnectionPoint,
        source_element_id: str,
    ) -> None:
        """Commit freshly generated elements. Callers must hold a snapshot."""
        for room in generated.rooms:
            self._commit(room)
        for corridor in generated.corridors:
            self._commit(corridor)

        first = (generated.rooms or generated.corridors)[0]
        mark_connection_point_generated(
            connection_point, source_element_id, self.rooms, self.corridors, connected_element_id=first.id
        )
        self.sync_all_door_states()

        consumed = (connection_point.position, connection_point.direction)
        self.exploration.unexplored_connection_points = [
            p
            for p in self.exploration.unexplored_connection_points
            if (p.position, p.direction) != consumed
            and self.shared_walls.get_door_state(p.position, p.direction) != DoorState.OPEN
        ]

    def open_door(self, door_id: str, connection_point: ConnectionPoint, source_element_id: str) -> DungeonMap:
        self.exploration.door_states[door_id] = DoorState.OPEN
        live = self._live_point(connection_point, source_element_id) or connection_point

        busy = (ConnectionPointState.GENERATING, ConnectionPointState.CONNECTED)
        if connection_point.state in busy or live.state in busy:
            bump(self.metrics, "duplicate_triggers")
            self.sync_all_door_states()
            return self._create_map()

        pos, facing = live.position, live.direction
        if (
            self.shared_walls.get_door_state(pos, facing) == DoorState.OPEN
            or self.shared_walls.is_door_generated(pos, facing)
            or live.is_generated
        ):
            live.state = connection_point.state = ConnectionPointState.CONNECTED
            self.sync_all_door_states()
            return self._create_map()

        live.state = connection_point.state = ConnectionPointState.GENERATING
        try:
            self.generate_from_connection_point(GenerationRequest(live, source_element_id, self.settings))
        except Exception:
            current = self._live_point(connection_point, source_element_id) or live
            current.state = connection_point.state = ConnectionPointState.UNGENERATED
            raise

        current = self._live_point(connection_point, source_element_id) or live
        if current.is_generated:
            current.state = connection_point.state = ConnectionPointState.CONNECTED
            outcome = "generated"
        else:
            # no-op, rejected or rolled back: the door stays explorable
            current.state = connection_point.state = ConnectionPointState.UNGENERATED
            self.sync_all_door_states()
            outcome = "unchanged"
        log.info(event="door_opened", door=door_id, source=source_element_id, outcome=outcome)
        return self._create_map()

    def sync_all_door_states(self) -> None:
        """Re-project registry door states onto ``exploration.door_states``."""
        for element in list(self.rooms) + list(self.corridors):
            for index, cp in enumerate(element.connection_points):
                self.exploration.door_states[element_door_id(element.id, index)] = self.shared_walls.get_door_state(
                    cp.position, cp.direction
                )

    def get_element(self, element_id: str):
        for element in list(self.rooms) + list(self.corridors):
            if element.id == element_id:
                return element
        return None

    def find_door(self, door_key: str):
        """Resolve ``<elementId>-door-<index>`` to ``(element, index, point)`` or ``None``."""
        try:
            element_id, index = parse_element_door_id(door_key)
        except ValueError:
            return None
        element = self.get_element(element_id)
        if element is None or index >= len(element.connection_points):
            return None
        return element, index, element.connection_points[index]

    def validate_door_consistency(self) -> List[DoorIssue]:
        return self.shared_walls.validate_door_consistency()

    def current_map(self) -> DungeonMap:
        return self._create_map()

    def to_dict(self) -> dict:
        return {"map": self._create_map().to_dict(), "exploration": self.exploration.to_dict()}

    # ------------------------------------------------------------------ generation

    def _generate_entrance_room(self) -> Room:
        template = self.catalog.random(RoomType.ENTRANCE, self.rng)
        origin = self._entrance_position()
        return Room(
            id=self._next_room_id(),
            shape=template.shape,
            type=RoomType.ENTRANCE,
            size=template.size,
            position=origin,
            width=template.width,
            height=template.height,
            template_id=template.id,
            connection_points=[
                ConnectionPoint(direction=tcp.direction, position=origin.offset(tcp.position.x, tcp.position.y))
                for tcp in template.connection_points
            ],
        )

    def _entrance_position(self) -> Position:
        center = self.settings.grid_size // 2
        return Position(center - 3, center - 2)

    def _generate_connected_content(self, cp: ConnectionPoint, seed: str, source_element_id: str) -> GeneratedElements:
        n = seed_to_number(seed)
        branch = "room" if chooses_room(n) else "corridor"
        log.debug(event="generation_choice", seed=seed, number=n, branch=branch)
        if branch == "room":
            return self._generate_connected_room(cp, seed, source_element_id)
        return self._generate_connected_corridor(cp, seed, source_element_id)

    def _generate_connected_room(self, cp: ConnectionPoint, seed: str, source_element_id: str) -> GeneratedElements:
        templates = self.catalog.by_type(RoomType.STANDARD)
        n = seed_to_number(seed)
        template = templates[n % len(templates)]
        origin, index = calculate_room_position(cp, template)
        if index == -1:
            return self._generate_connected_corridor(cp, seed, source_element_id)

        tcp = template.connection_points[index]
        entry = origin.offset(tcp.position.x, tcp.position.y)
        result = expand_room(
            ExpansionContext(
                entry_point=entry,
                entry_direction=cp.direction,
                source_connection_point=cp,
                source_element_id=source_element_id,
                template=template,
                target_position=origin,
                rooms=self.rooms,
                corridors=self.corridors,
                grid=self.grid,
                shared_walls=self.shared_walls,
            )
        )
        if not result.expanded_blocks:
            return self._generate_connected_corridor(cp, seed, source_element_id)

        if len(result.expanded_blocks) == 1:
            bump(self.metrics, "minimal_rooms")
            pattern = [[True]]
            points = result.final_connection_points[:1]
        else:
            pattern = result.grid_pattern()
            points = result.final_connection_points

        validation = self._validate_room(template, result.origin, pattern, points, cp, source_element_id)
        if not validation.is_valid:
            bump(self.metrics, "rooms_rejected")
            log.warn(event="room_rejected", template=template.id, errors="; ".join(validation.errors))
            return GeneratedElements()

        room = Room(
            id=self._next_room_id(),
            shape=template.shape,
            type=template.type,
            size=template.size,
            position=result.origin,
            width=len(pattern[0]),
            height=len(pattern),
            template_id=template.id,
            grid_pattern=pattern,
            connection_points=points,
        )
        bump(self.metrics, "rooms_generated")
        return GeneratedElements(rooms=[room])

    def _validate_room(
        self,
        template: RoomTemplate,
        origin: Position,
        pattern,
        points: List[ConnectionPoint],
        cp: ConnectionPoint,
        source_element_id: str,
    ) -> PlacementValidation:
        view = RoomTemplate(
            id=template.id,
            name=template.name,
            shape=template.shape,
            type=template.type,
            size=template.size,
            width=len(pattern[0]),
            height=len(pattern),
            grid_pattern=tuple(tuple(row) for row in pattern),
            connection_points=tuple(
                TemplateConnectionPoint(p.direction, Position(p.position.x - origin.x, p.position.y - origin.y))
                for p in points
            ),
        )
        context = IntegrationContext(
            source_connection_point=cp,
            source_element_id=source_element_id,
            rooms=self.rooms,
            corridors=self.corridors,
            shared_walls=self.shared_walls,
            grid=self.grid,
        )
        return validate_placement(view, origin, context)

    def _generate_connected_corridor(self, cp: ConnectionPoint, seed: str, source_element_id: str) -> GeneratedElements:
        length = corridor_length_for(seed_to_number(seed))
        path = self._corridor_path(cp, length)
        if not path:
            return GeneratedElements()
        corridor = Corridor(
            id=self._corridor_id(),
            type=determine_corridor_type(path),
            direction=corridor_direction(path, cp.direction),
            position=path[0],
            length=len(path),
            path=path,
            connection_points=[
                ConnectionPoint(
                    direction=opposite(cp.direction),
                    position=path[0],
                    is_connected=True,
                    connected_element_id=source_element_id,
                    is_generated=True,
                    state=ConnectionPointState.CONNECTED,
                ),
                ConnectionPoint(direction=cp.direction, position=path[-1]),
            ],
        )
        self._report_missing_doors(corridor)
        bump(self.metrics, "corridors_generated")
        return GeneratedElements(corridors=[corridor])

    def _report_missing_doors(self, corridor: Corridor) -> None:
        """Log closed doors the corridor runs past without a matching opening.

        Such a door stays explorable but can never produce anything.
        """
        for conflict in self.shared_walls.check_door_conflicts(corridor, corridor.position):
            if conflict.conflict_type != MISSING_DOOR:
                continue
            bump(self.metrics, "corridor_missing_doors")
            log.info(
                event="corridor_missing_door",
                corridor=corridor.id,
                x=conflict.position.x,
                y=conflict.position.y,
                direction=conflict.direction.value,
            )

    def _corridor_path(self, cp: ConnectionPoint, max_length: int) -> List[Position]:
        """Straight walk starting one cell past the source door.

        The walk stops at the grid edge or the first claimed cell; a blocked
        starting cell yields an empty path.
        """
        path: List[Position] = []
        current = adjacent(cp.position, cp.direction)
        for _ in range(max_length):
            if not self.grid.is_within_bounds(current) or self.grid.is_occupied(current):
                break
            path.append(current)
            current = adjacent(current, cp.direction)
        return path

    # ------------------------------------------------------------------ commit / rollback

    def _commit(self, element) -> None:
        if isinstance(element, Room):
            self.rooms.append(element)
            self.exploration.discovered_room_ids.add(element.id)
            self.grid.mark_room_occupied(element)
        else:
            self.corridors.append(element)
            self.exploration.discovered_corridor_ids.add(element.id)
            self.grid.mark_corridor_occupied(element)

        for cp in element.connection_points:
            if not cp.is_generated and cp.generation_seed is None:
                cp.generation_seed = make_seed(cp)

        self.shared_walls.add_element(element)
        self._commit_order.append(element.id)
        bump(self.metrics, "doors_auto_opened", len(self.shared_walls.last_auto_opened))

        for index, cp in enumerate(element.connection_points):
            state = self.shared_walls.get_door_state(cp.position, cp.direction)
            self.exploration.door_states[element_door_id(element.id, index)] = state
            if not cp.is_generated and state != DoorState.OPEN:
                self.exploration.unexplored_connection_points.append(cp.copy())

    def _snapshot(self) -> WorldState:
        return WorldState(
            rooms=tuple(copy.deepcopy(self.rooms)),
            corridors=tuple(copy.deepcopy(self.corridors)),
            room_counter=self.room_counter,
            exploration=copy.deepcopy(self.exploration),
            commit_order=tuple(self._commit_order),
        )

    def _restore(self, state: WorldState) -> None:
        # Copy again so the snapshot stays pristine if it is restored twice.
        self.rooms = copy.deepcopy(list(state.rooms))
        self.corridors = copy.deepcopy(list(state.corridors))
        self.room_counter = state.room_counter
        self.exploration = copy.deepcopy(state.exploration)
        self._commit_order = list(state.commit_order)
        self._rebuild_indexes()

    def _rebuild_indexes(self) -> None:
        self.grid.reset()
        self.shared_walls.reset()
        by_id = {e.id: e for e in list(self.rooms) + list(self.corridors)}
        for element_id in self._commit_order:
            element = by_id[element_id]
            if isinstance(element, Room):
                self.grid.mark_room_occupied(element)
            else:
                self.grid.mark_corridor_occupied(element)
            self.shared_walls.add_element(element)

    def _reset(self) -> None:
        self.rooms = []
        self.corridors = []
        self.room_counter = 0
        self.exploration = ExplorationState()
        self._commit_order = []
        self.grid.reset()
        self.shared_walls.reset()
        if self.metrics:
            self.metrics = init_metrics()

    # ------------------------------------------------------------------ helpers

    def _live_point(self, connection_point: ConnectionPoint, source_element_id: str) -> Optional[ConnectionPoint]:
        element = self.get_element(source_element_id)
        if element is None:
            return None
        return find_connection_point(element, connection_point.position, connection_point.direction)

    def _next_room_id(self) -> str:
        room_id = f"room-{self.room_counter:02d}"
        self.room_counter += 1
        return room_id

    def _corridor_id(self) -> str:
        suffix = "".join(self.rng.choice(_ID_ALPHABET) for _ in range(9))
        return f"corridor-{time.time_ns() // 1_000_000}-{suffix}"

    def _create_map(self) -> DungeonMap:
        """Detached snapshot; later steps never change a map already handed out."""
        now = datetime.now()
        return DungeonMap(
            id=f"dungeon-{int(now.timestamp() * 1000)}",
            name="Incremental Dungeon",
            rooms=copy.deepcopy(self.rooms),
            corridors=copy.deepcopy(self.corridors),
            created_at=now,
            grid_size=self.settings.grid_size,
            total_rooms=len(self.rooms),
        )


__all__ = [
    "IncrementalDungeonGenerator",
    "GenerationRequest",
    "GeneratedElements",
    "WorldState",
    "make_seed",
    "seed_to_number",
    "chooses_room",
    "corridor_length_for",
    "element_door_id",
    "parse_element_door_id",
    "determine_corridor_type",
]
