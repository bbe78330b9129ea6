from delve.dungeon.grid import GridManager, effective_pattern, room_cells
from delve.dungeon.models import (
    Corridor,
    CorridorDirection,
    CorridorType,
    Position,
    Room,
    RoomShape,
    RoomSize,
    RoomType,
)


def _room(pos, width, height, template_id=None, pattern=None):
    return Room(
        id="room-x",
        shape=RoomShape.SQUARE,
        type=RoomType.STANDARD,
        size=RoomSize.SMALL,
        position=pos,
        width=width,
        height=height,
        template_id=template_id,
        grid_pattern=pattern,
    )


def test_room_cells_follow_pattern_then_template_then_rectangle():
    custom = _room(Position(2, 2), 2, 2, pattern=[[True, False], [True, True]])
    assert sorted(room_cells(custom), key=lambda p: (p.y, p.x)) == [Position(2, 2), Position(2, 3), Position(3, 3)]

    cross = _room(Position(0, 0), 5, 5, template_id="entrance-crossroads")
    assert Position(0, 0) not in room_cells(cross)
    assert Position(2, 0) in room_cells(cross)

    plain = _room(Position(1, 1), 3, 2)
    assert len(room_cells(plain)) == 6
    assert effective_pattern(plain) == [[True] * 3, [True] * 3]


def test_marking_and_ownership():
    grid = GridManager(10)
    grid.mark_room_occupied(_room(Position(1, 1), 2, 2))
    corridor = Corridor(
        id="corridor-1",
        type=CorridorType.STRAIGHT,
        direction=CorridorDirection.HORIZONTAL,
        position=Position(3, 1),
        length=2,
        path=[Position(3, 1), Position(4, 1)],
    )
    grid.mark_corridor_occupied(corridor)
    assert grid.is_occupied(Position(2, 2))
    assert grid.owner_of(Position(2, 2)) == "room-x"
    assert grid.owner_of(Position(4, 1)) == "corridor-1"
    assert grid.owner_of(Position(5, 5)) is None
    assert len(grid) == 6
    assert Position(3, 1) in grid.occupied_positions()

    grid.reset()
    assert len(grid) == 0


def test_bounds_and_available_area():
    grid = GridManager(5)
    assert grid.is_within_bounds(Position(0, 4))
    assert not grid.is_within_bounds(Position(5, 0))
    assert not grid.is_within_bounds(Position(-1, 2))

    grid.mark_room_occupied(_room(Position(1, 0), 1, 1))
    area = grid.available_area(Position(0, 0), 3, 2)
    # indexed [y][x]
    assert area == [[True, False, True], [True, True, True]]
    assert not grid.is_area_available(Position(0, 0), 3, 2)
    assert grid.is_area_available(Position(0, 1), 3, 2)
    assert grid.available_area(Position(4, 0), 2, 1) == [[True, False]]


def test_force_mark_available():
    grid = GridManager(5)
    area = [[False, False], [False, False]]
    grid.force_mark_available(Position(1, 0), area)
    assert area == [[False, True], [False, False]]
    # out of range is ignored
    grid.force_mark_available(Position(7, 7), area)
    assert area == [[False, True], [False, False]]
