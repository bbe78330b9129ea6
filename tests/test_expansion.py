from delve.dungeon.expansion import (
    ExpansionContext,
    biased_distance,
    can_expand_to,
    expand_room,
    expansion_bias,
    should_place_door,
)
from delve.dungeon.grid import GridManager
from delve.dungeon.models import (
    ConnectionPoint,
    ConnectionPointState,
    Corridor,
    CorridorDirection,
    CorridorType,
    ExitDirection,
    Position,
)
from delve.dungeon.shared_walls import SharedWallManager
from delve.dungeon.templates import default_catalog

N, S, E, W = ExitDirection.NORTH, ExitDirection.SOUTH, ExitDirection.EAST, ExitDirection.WEST


def _corridor(corridor_id, path, points=None):
    return Corridor(
        id=corridor_id,
        type=CorridorType.STRAIGHT,
        direction=CorridorDirection.VERTICAL,
        position=path[0],
        length=len(path),
        path=path,
        connection_points=points or [],
    )


def _context(occupied=(), corridors=None, grid_size=30):
    """Square-small template with origin (5, 5), entered through its north slot from (6, 4)."""
    grid = GridManager(grid_size)
    source = _corridor("corridor-src", [Position(6, 4)], [ConnectionPoint(S, Position(6, 4))])
    grid.mark_corridor_occupied(source)
    all_corridors = [source] + list(corridors or [])
    if occupied:
        blocker = _corridor("corridor-block", list(occupied))
        grid.mark_corridor_occupied(blocker)
        all_corridors.append(blocker)
    for corridor in corridors or []:
        grid.mark_corridor_occupied(corridor)
    return ExpansionContext(
        entry_point=Position(6, 5),
        entry_direction=S,
        source_connection_point=source.connection_points[0],
        source_element_id=source.id,
        template=default_catalog.by_id("standard-square-small"),
        target_position=Position(5, 5),
        rooms=[],
        corridors=all_corridors,
        grid=grid,
        shared_walls=SharedWallManager(),
    )


def test_bias_points_away_from_source():
    assert expansion_bias(S) == (0, 1)
    entry = Position(6, 5)
    deeper = biased_distance(Position(6, 6), entry, (0, 1))
    sideways = biased_distance(Position(7, 5), entry, (0, 1))
    assert deeper < sideways


def test_full_growth_fills_mask():
    result = expand_room(_context())
    assert len(result.expanded_blocks) == 16
    assert result.origin == Position(5, 5)
    assert result.room_bounds == (4, 4)
    entry = result.final_connection_points[0]
    assert entry.position == Position(6, 5) and entry.direction == N
    assert entry.is_generated and entry.state == ConnectionPointState.CONNECTED
    assert entry.connected_element_id == "corridor-src"
    doors = {(cp.position, cp.direction) for cp in result.final_connection_points[1:]}
    assert doors == {(Position(5, 6), W), (Position(8, 7), E), (Position(7, 8), S)}


def test_growth_stops_at_claimed_cells():
    column = [Position(8, y) for y in range(5, 9)]
    result = expand_room(_context(occupied=column))
    assert len(result.expanded_blocks) == 12
    assert result.room_bounds == (3, 4)
    assert all(b.x < 8 for b in result.expanded_blocks)
    doors = {(cp.position, cp.direction) for cp in result.final_connection_points[1:]}
    # the east slot was lost with its cell
    assert doors == {(Position(5, 6), W), (Position(7, 8), S)}
    pattern = result.grid_pattern()
    assert len(pattern) == 4 and len(pattern[0]) == 3
    assert all(all(row) for row in pattern)


def test_boxed_in_entry_yields_single_block():
    result = expand_room(_context(occupied=[Position(5, 5), Position(7, 5), Position(6, 6)]))
    assert result.expanded_blocks == [Position(6, 5)]
    assert result.room_bounds == (1, 1)
    assert result.origin == Position(6, 5)
    assert len(result.final_connection_points) == 1


def test_claimed_entry_gives_empty_result():
    result = expand_room(_context(occupied=[Position(6, 5)]))
    assert result.expanded_blocks == []
    assert result.final_connection_points == []


def test_doors_stay_on_the_perimeter():
    result = expand_room(_context())
    blocks = set(result.expanded_blocks)
    for cp in result.final_connection_points:
        assert cp.position in blocks
        dx, dy = {N: (0, -1), S: (0, 1), E: (1, 0), W: (-1, 0)}[cp.direction]
        assert cp.position.offset(dx, dy) not in blocks


def test_existing_door_facing_back_gets_a_matching_door():
    # a corridor east of the room with a door pointing west at (8, 6)
    neighbour = _corridor("corridor-east", [Position(9, 6)], [ConnectionPoint(W, Position(9, 6))])
    context = _context(corridors=[neighbour])
    assert should_place_door(Position(8, 6), E, context)
    result = expand_room(context)
    doors = {(cp.position, cp.direction) for cp in result.final_connection_points}
    assert (Position(8, 6), E) in doors


def test_template_door_needs_free_cell_beyond():
    context = _context(occupied=[Position(9, 7)])
    assert not should_place_door(Position(8, 7), E, context)
    assert not can_expand_to(Position(9, 7), context)
    assert not can_expand_to(Position(5, 4), context)  # outside the template
