from delve.dungeon.grid import GridManager
from delve.dungeon.models import (
    ConnectionPoint,
    Corridor,
    CorridorDirection,
    CorridorType,
    ExitDirection,
    Position,
    Room,
    RoomShape,
    RoomSize,
    RoomType,
)
from delve.dungeon.shared_walls import SharedWallManager
from delve.dungeon.templates import default_catalog, parse_template
from delve.dungeon.validators import (
    INSUFFICIENT_SPACE,
    SOLID_WALL_DOORS,
    IntegrationContext,
    find_connection_point,
    mark_connection_point_generated,
    trim_to_fit,
    validate_connection_points,
    validate_placement,
)

E, W = ExitDirection.EAST, ExitDirection.WEST


def _full(width, height, value=True):
    return [[value] * width for _ in range(height)]


def _context(grid_size=20):
    return IntegrationContext(
        source_connection_point=None,
        source_element_id=None,
        rooms=[],
        corridors=[],
        shared_walls=SharedWallManager(),
        grid=GridManager(grid_size),
    )


def _place(context, corridor):
    context.corridors.append(corridor)
    context.grid.mark_corridor_occupied(corridor)
    context.shared_walls.add_element(corridor)


def _corridor(corridor_id, path, points):
    return Corridor(
        id=corridor_id,
        type=CorridorType.STRAIGHT,
        direction=CorridorDirection.HORIZONTAL,
        position=path[0],
        length=len(path),
        path=path,
        connection_points=points,
    )


def test_all_points_survive_on_untouched_template():
    template = default_catalog.by_id("standard-square-small")
    pattern = [list(row) for row in template.grid_pattern]
    kept = validate_connection_points(template, _full(4, 4), pattern)
    assert [cp.index for cp in kept] == [0, 1, 2, 3]


def test_trim_drops_points_in_lost_cells():
    template = default_catalog.by_id("standard-square-small")
    available = [[x < 3 for x in range(4)] for _ in range(4)]
    trimmed = trim_to_fit(template, available)
    assert all(not row[3] for row in trimmed.grid_pattern)
    # the east slot at (3, 2) is gone
    assert [cp.index for cp in trimmed.connection_points] == [0, 1, 3]
    assert trim_to_fit(template, _full(4, 4, False)) is None


def test_interior_points_need_preserve_index():
    template = parse_template(
        "inner", "Inner", RoomShape.SQUARE, RoomType.STANDARD, RoomSize.SMALL, ["###", "#N#", "###"]
    )
    pattern = [list(row) for row in template.grid_pattern]
    assert validate_connection_points(template, _full(3, 3), pattern) == []
    kept = validate_connection_points(template, _full(3, 3), pattern, preserve_index=0)
    assert [cp.index for cp in kept] == [0]
    # preserved but unavailable is still dropped
    blocked = _full(3, 3)
    blocked[1][1] = False
    assert validate_connection_points(template, blocked, pattern, preserve_index=0) == []


def test_placement_out_of_space():
    template = default_catalog.by_id("standard-square-small")
    result = validate_placement(template, Position(50, 50), _context())
    assert not result.is_valid
    assert result.errors == [INSUFFICIENT_SPACE]


def test_placement_on_open_ground():
    template = default_catalog.by_id("standard-square-small")
    result = validate_placement(template, Position(5, 5), _context())
    assert result.is_valid
    assert result.errors == []
    assert result.original_indices == [0, 1, 2, 3]
    assert len(result.valid_connection_points) == 4


def test_placement_against_solid_wall():
    template = default_catalog.by_id("standard-square-small")
    context = _context()
    _place(context, _corridor("corridor-a", [Position(9, 7)], []))
    result = validate_placement(template, Position(5, 5), context)
    assert not result.is_valid
    assert "Connection point at (8, 7) conflicts with solid wall" in result.errors
    assert 2 not in result.original_indices


def test_placement_with_door_outside_grid():
    template = default_catalog.by_id("standard-square-small")
    result = validate_placement(template, Position(-1, 5), _context())
    assert not result.is_valid
    assert "Connection point at (-1, 6) is in invalid position" in result.errors


def test_placement_onto_foreign_door():
    template = default_catalog.by_id("standard-square-small")
    context = _context()
    _place(context, _corridor("corridor-a", [Position(15, 15)], [ConnectionPoint(E, Position(8, 7))]))
    result = validate_placement(template, Position(5, 5), context)
    assert not result.is_valid
    assert SOLID_WALL_DOORS in result.errors


def test_mark_connection_point_generated_updates_live_copy():
    point = ConnectionPoint(E, Position(3, 3))
    room = Room(
        id="room-00",
        shape=RoomShape.SQUARE,
        type=RoomType.ENTRANCE,
        size=RoomSize.SMALL,
        position=Position(0, 0),
        width=4,
        height=4,
        connection_points=[point],
    )
    probe = point.copy()
    live = mark_connection_point_generated(probe, "room-00", [room], [], connected_element_id="corridor-z")
    assert live is point
    assert point.is_generated and point.is_connected
    assert point.connected_element_id == "corridor-z"
    assert not probe.is_generated
    assert find_connection_point(room, Position(3, 3), W) is None
    assert mark_connection_point_generated(probe, "room-99", [room], []) is None
