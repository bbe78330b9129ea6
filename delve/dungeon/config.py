import os
from dataclasses import dataclass
from typing import Optional

# Chance (0..1) that opening a door yields a room rather than a corridor.
ROOM_GENERATION_PROBABILITY = 0.7
MIN_CORRIDOR_LENGTH = 3
MAX_CORRIDOR_LENGTH_VARIANCE = 5

_TRUTHY_OFF = {"0", "false", "no", "off", ""}


@dataclass
class GenerationSettings:
    """Settings for one generation session.

    Only ``grid_size`` (and ``seed``, for the entrance template draw) drive the
    incremental engine. The room count, spacing and exit limits are accepted so
    callers can share one settings object with other generation modes.

    Precedence, lowest to highest: field defaults, ``DELVE_*`` environment
    variables, Flask ``app.config`` keys of the same name when an app context
    is active. Explicit keyword arguments are treated as defaults for that
    instance; pass ``apply_overrides=False`` to pin them.
    """

    grid_size: int = 30
    min_rooms: int = 6
    max_rooms: int = 12
    room_spacing: int = 1
    max_exits_per_room: int = 4
    allow_irregular_rooms: bool = True
    force_connectivity: bool = True
    enable_metrics: bool = True
    seed: Optional[int] = None
    apply_overrides: bool = True

    def __post_init__(self):
        if self.apply_overrides:
            env_map = {
                "DELVE_GRID_SIZE": "grid_size",
                "DELVE_MIN_ROOMS": "min_rooms",
                "DELVE_MAX_ROOMS": "max_rooms",
                "DELVE_ROOM_SPACING": "room_spacing",
                "DELVE_MAX_EXITS_PER_ROOM": "max_exits_per_room",
                "DELVE_ALLOW_IRREGULAR_ROOMS": "allow_irregular_rooms",
                "DELVE_FORCE_CONNECTIVITY": "force_connectivity",
                "DELVE_ENABLE_GENERATION_METRICS": "enable_metrics",
                "DELVE_SEED": "seed",
            }
            for env_key, attr in env_map.items():
                if env_key in os.environ:
                    self._set_coerced(attr, os.environ.get(env_key, ""))
            # Flask app config overrides (highest precedence)
            from flask import current_app, has_app_context

            if has_app_context():
                cfg = current_app.config
                for key, attr in env_map.items():
                    if key in cfg and cfg.get(key) is not None:
                        self._set_coerced(attr, cfg.get(key))
        self.validate()

    def _set_coerced(self, attr: str, raw):
        current = getattr(self, attr)
        if isinstance(current, bool):
            value = raw if isinstance(raw, bool) else str(raw).strip().lower() not in _TRUTHY_OFF
        elif attr == "seed":
            value = None if raw in (None, "") else int(raw)
        else:
            try:
                value = int(raw)
            except (TypeError, ValueError):
                raise ValueError(f"{attr} must be an integer, got {raw!r}") from None
        setattr(self, attr, value)

    def validate(self):
        if self.grid_size < 8:
            raise ValueError(f"grid_size must be at least 8, got {self.grid_size}")
        if self.min_rooms < 0 or self.max_rooms < self.min_rooms:
            raise ValueError("room bounds must satisfy 0 <= min_rooms <= max_rooms")
        if self.room_spacing < 0:
            raise ValueError("room_spacing must be >= 0")
        if self.max_exits_per_room < 1:
            raise ValueError("max_exits_per_room must be >= 1")


__all__ = [
    "GenerationSettings",
    "ROOM_GENERATION_PROBABILITY",
    "MIN_CORRIDOR_LENGTH",
    "MAX_CORRIDOR_LENGTH_VARIANCE",
]
