"""Public dungeon package interface.

Incremental geomorph generation: rooms grow organically inside template masks
and are revealed one door at a time.
"""

from .config import (  # noqa: F401
    MAX_CORRIDOR_LENGTH_VARIANCE,
    MIN_CORRIDOR_LENGTH,
    ROOM_GENERATION_PROBABILITY,
    GenerationSettings,
)
from .door_registry import DoorRegistry, door_id  # noqa: F401
from .generator import (  # noqa: F401
    GenerationRequest,
    IncrementalDungeonGenerator,
    make_seed,
    seed_to_number,
)
from .grid import GridManager  # noqa: F401
from .models import (  # noqa: F401
    ConnectionPoint,
    ConnectionPointState,
    Corridor,
    DoorState,
    DungeonMap,
    ExitDirection,
    ExplorationState,
    Position,
    Room,
    RoomTemplate,
    RoomType,
    SharedDoor,
)
from .shared_walls import SharedWallManager  # noqa: F401
from .templates import TemplateCatalog, default_catalog  # noqa: F401

__all__ = [
    "GenerationSettings",
    "ROOM_GENERATION_PROBABILITY",
    "MIN_CORRIDOR_LENGTH",
    "MAX_CORRIDOR_LENGTH_VARIANCE",
    "DoorRegistry",
    "door_id",
    "GenerationRequest",
    "IncrementalDungeonGenerator",
    "make_seed",
    "seed_to_number",
    "GridManager",
    "ConnectionPoint",
    "ConnectionPointState",
    "Corridor",
    "DoorState",
    "DungeonMap",
    "ExitDirection",
    "ExplorationState",
    "Position",
    "Room",
    "RoomTemplate",
    "RoomType",
    "SharedDoor",
    "SharedWallManager",
    "TemplateCatalog",
    "default_catalog",
]
