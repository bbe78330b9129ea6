import random

import pytest

from delve.dungeon.models import ExitDirection, Position, RoomShape, RoomSize, RoomType
from delve.dungeon.templates import TemplateCatalog, default_catalog, parse_template


def test_catalog_contents():
    assert len(default_catalog.by_type(RoomType.ENTRANCE)) == 3
    assert len(default_catalog.by_type(RoomType.STANDARD)) == 9
    assert default_catalog.by_id("standard-l-shape").shape == RoomShape.L_SHAPE
    assert default_catalog.by_id(None) is None
    assert default_catalog.by_id("nope") is None


def test_every_door_slot_sits_on_the_outer_edge():
    for template in default_catalog.all():
        pattern = template.grid_pattern
        for tcp in template.connection_points:
            x, y = tcp.position.x, tcp.position.y
            assert pattern[y][x], f"{template.id} door at {(x, y)} is not floor"
            dx, dy = {
                ExitDirection.NORTH: (0, -1),
                ExitDirection.SOUTH: (0, 1),
                ExitDirection.EAST: (1, 0),
                ExitDirection.WEST: (-1, 0),
            }[tcp.direction]
            nx, ny = x + dx, y + dy
            inside = 0 <= nx < template.width and 0 <= ny < template.height
            assert not inside or not pattern[ny][nx], f"{template.id} door at {(x, y)} faces floor"


def test_every_standard_template_offers_all_four_facings():
    for template in default_catalog.by_type(RoomType.STANDARD):
        facings = {tcp.direction for tcp in template.connection_points}
        assert facings == {ExitDirection.NORTH, ExitDirection.SOUTH, ExitDirection.EAST, ExitDirection.WEST}


def test_parse_template_marks():
    t = parse_template("tiny", "Tiny", RoomShape.SQUARE, RoomType.STANDARD, RoomSize.SMALL, ["N#", ".S"])
    assert (t.width, t.height) == (2, 2)
    assert t.grid_pattern == ((True, True), (False, True))
    assert [(c.direction, c.position) for c in t.connection_points] == [
        (ExitDirection.NORTH, Position(0, 0)),
        (ExitDirection.SOUTH, Position(1, 1)),
    ]


@pytest.mark.parametrize("rows", [[], ["##", "#"], ["#x"]])
def test_parse_template_rejects_bad_masks(rows):
    with pytest.raises(ValueError):
        parse_template("bad", "Bad", RoomShape.SQUARE, RoomType.STANDARD, RoomSize.SMALL, rows)


def test_random_pick_and_missing_type():
    rng = random.Random(3)
    assert default_catalog.random(RoomType.ENTRANCE, rng).type == RoomType.ENTRANCE
    with pytest.raises(LookupError):
        default_catalog.random(RoomType.JUNCTION, rng)


def test_duplicate_ids_rejected():
    t = default_catalog.by_id("standard-cross")
    with pytest.raises(ValueError):
        TemplateCatalog([t, t])
