"""Geomorph template catalog.

Templates are authored as ASCII masks, one string per row:

    ``#``  floor cell
    ``.``  outside the geomorph
    ``N`` ``S`` ``E`` ``W``  floor cell carrying a door slot facing that way

Door slots must sit on the outer edge of the mask in their stated direction.
The catalog is read-only; the engine never mutates a template.
"""
from __future__ import annotations

import random
from typing import Dict, List, Optional, Sequence

from .models import (
    ExitDirection,
    Position,
    RoomShape,
    RoomSize,
    RoomTemplate,
    RoomType,
    TemplateConnectionPoint,
)

_DOOR_MARKS = {
    "N": ExitDirection.NORTH,
    "S": ExitDirection.SOUTH,
    "E": ExitDirection.EAST,
    "W": ExitDirection.WEST,
}


def parse_template(
    template_id: str,
    name: str,
    shape: RoomShape,
    room_type: RoomType,
    size: RoomSize,
    rows: Sequence[str],
) -> RoomTemplate:
    """Build a :class:`RoomTemplate` from an ASCII mask."""
    if not rows:
        raise ValueError(f"template {template_id} has no rows")
    width = len(rows[0])
    if any(len(r) != width for r in rows):
        raise ValueError(f"template {template_id} rows must share one width")
    pattern = []
    points = []
    for y, row in enumerate(rows):
        line = []
        for x, ch in enumerate(row):
            if ch == ".":
                line.append(False)
            elif ch == "#":
                line.append(True)
            elif ch in _DOOR_MARKS:
                line.append(True)
                points.append(TemplateConnectionPoint(_DOOR_MARKS[ch], Position(x, y)))
            else:
                raise ValueError(f"template {template_id}: unknown mark {ch!r} at ({x}, {y})")
        pattern.append(tuple(line))
    return RoomTemplate(
        id=template_id,
        name=name,
        shape=shape,
        type=room_type,
        size=size,
        width=width,
        height=len(rows),
        grid_pattern=tuple(pattern),
        connection_points=tuple(points),
    )


# fmt: off
_ENTRANCES = [
    parse_template("entrance-vestibule", "Vestibule", RoomShape.RECTANGLE, RoomType.ENTRANCE, RoomSize.MEDIUM, [
        "##N###",
        "W#####",
        "#####E",
        "###S##",
    ]),
    parse_template("entrance-crossroads", "Crossroads Landing", RoomShape.CROSS, RoomType.ENTRANCE, RoomSize.SMALL, [
        "..N..",
        ".###.",
        "W###E",
        ".###.",
        "..S..",
    ]),
    parse_template("entrance-stairwell", "Stairwell", RoomShape.SQUARE, RoomType.ENTRANCE, RoomSize.SMALL, [
        "#N##",
        "W###",
        "###E",
        "##S#",
    ]),
]

_STANDARD = [
    parse_template("standard-square-small", "Small Chamber", RoomShape.SQUARE, RoomType.STANDARD, RoomSize.SMALL, [
        "#N##",
        "W###",
        "###E",
        "##S#",
    ]),
    parse_template("standard-rectangle-medium", "Long Hall", RoomShape.RECTANGLE, RoomType.STANDARD, RoomSize.MEDIUM, [
        "##N###",
        "W#####",
        "#####E",
        "###S##",
    ]),
    parse_template("standard-l-shape", "Crooked Gallery", RoomShape.L_SHAPE, RoomType.STANDARD, RoomSize.MEDIUM, [
        "#N#...",
        "###...",
        "W##...",
        "####NE",
        "######",
        "##S###",
    ]),
    parse_template("standard-t-shape", "Audience Room", RoomShape.T_SHAPE, RoomType.STANDARD, RoomSize.MEDIUM, [
        "##N####",
        "W#####E",
        "..###..",
        "..###..",
        "..#S#..",
    ]),
    parse_template("standard-cross", "Shrine Crossing", RoomShape.CROSS, RoomType.STANDARD, RoomSize.SMALL, [
        "..N..",
        ".###.",
        "W###E",
        ".###.",
        "..S..",
    ]),
    parse_template("standard-octagon", "Octagonal Vault", RoomShape.OCTAGON, RoomType.STANDARD, RoomSize.MEDIUM, [
        ".#N##.",
        "######",
        "W#####",
        "#####E",
        "######",
        ".##S#.",
    ]),
    parse_template("standard-circle", "Round Cistern", RoomShape.CIRCLE, RoomType.STANDARD, RoomSize.LARGE, [
        "..#N#..",
        ".#####.",
        "W######",
        "######E",
        "#######",
        ".#####.",
        "..S##..",
    ]),
    parse_template("standard-irregular", "Collapsed Cave", RoomShape.IRREGULAR, RoomType.STANDARD, RoomSize.MEDIUM, [
        "##N....",
        "####...",
        "W######",
        "...###E",
        "...#S#.",
    ]),
    parse_template("standard-great-hall", "Great Hall", RoomShape.RECTANGLE, RoomType.STANDARD, RoomSize.LARGE, [
        "#N####N#",
        "########",
        "W#######",
        "#######E",
        "########",
        "###S####",
    ]),
]
# fmt: on


class TemplateCatalog:
    """Read-only lookup over a fixed list of templates.

    Order matters: generation picks ``by_type(...)[n % len]``, so reordering
    templates changes what a given seed produces.
    """

    def __init__(self, templates: Optional[Sequence[RoomTemplate]] = None):
        items = list(templates) if templates is not None else _ENTRANCES + _STANDARD
        self._by_id: Dict[str, RoomTemplate] = {}
        for t in items:
            if t.id in self._by_id:
                raise ValueError(f"duplicate template id {t.id}")
            self._by_id[t.id] = t
        self._ordered: List[RoomTemplate] = items

    def all(self) -> List[RoomTemplate]:
        return list(self._ordered)

    def by_type(self, room_type: RoomType) -> List[RoomTemplate]:
        return [t for t in self._ordered if t.type == room_type]

    def by_id(self, template_id: Optional[str]) -> Optional[RoomTemplate]:
        if template_id is None:
            return None
        return self._by_id.get(template_id)

    def random(self, room_type: RoomType, rng=None) -> RoomTemplate:
        choices = self.by_type(room_type)
        if not choices:
            raise LookupError(f"no templates of type {room_type.value}")
        return (rng or random).choice(choices)


default_catalog = TemplateCatalog()

__all__ = ["TemplateCatalog", "default_catalog", "parse_template"]
