"""
project: Delve
module: explore_api.py
License: MIT

Exploration API routes.

Each browser session owns one IncrementalDungeonGenerator, kept in a small
in-process cache keyed by an id stored in the Flask session. The presentation
layer starts a dungeon, reads the map and exploration state, and opens doors
by their element door id (``<elementId>-door-<index>``).
"""

import hashlib
import random
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, replace

from flask import Blueprint, current_app, jsonify, request, session

from delve.dungeon import GenerationSettings, IncrementalDungeonGenerator
from delve.logging_utils import get_logger

log = get_logger("delve.api")

bp_explore = Blueprint("explore_api", __name__)

SESSION_KEY = "delve_session_id"
MIN_GRID_SIZE = 8
MAX_GRID_SIZE = 200
MAX_SEED = 2**31 - 1


@dataclass
class DungeonSession:
    """A cached generator plus the lock every request on it must hold."""

    generator: IncrementalDungeonGenerator
    lock: threading.Lock = field(default_factory=threading.Lock)


_generators: dict[str, DungeonSession] = {}
_generators_lock = threading.Lock()


def _coerce_seed(payload_seed):
    """Convert provided seed (int or str) into a bounded non-negative int."""
    if payload_seed is None:
        return random.randint(1, 1_000_000)
    if isinstance(payload_seed, bool):
        raise ValueError("seed must be an integer or string")
    if isinstance(payload_seed, int):
        return payload_seed % MAX_SEED
    if isinstance(payload_seed, str):
        s = payload_seed.strip()
        if not s:
            return random.randint(1, 1_000_000)
        if s.isdigit():
            return int(s) % MAX_SEED
        h = hashlib.sha256(s.encode("utf-8")).digest()
        return int.from_bytes(h[:8], "big") % MAX_SEED
    raise ValueError("seed must be an integer or string")


def _coerce_grid_size(raw):
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValueError("grid_size must be an integer")
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValueError("grid_size must be an integer") from None
    if not MIN_GRID_SIZE <= value <= MAX_GRID_SIZE:
        raise ValueError(f"grid_size must be between {MIN_GRID_SIZE} and {MAX_GRID_SIZE}")
    return value


def _store_generator(generator: IncrementalDungeonGenerator) -> str:
    session_id = uuid.uuid4().hex
    cap = max(1, int(current_app.config.get("DELVE_SESSION_CACHE_MAX", 16)))
    with _generators_lock:
        _generators[session_id] = DungeonSession(generator)
        while len(_generators) > cap:
            oldest = next(iter(_generators))
            _generators.pop(oldest, None)
    return session_id


def _current_session():
    session_id = session.get(SESSION_KEY)
    if not session_id:
        return None
    with _generators_lock:
        return _generators.get(session_id)


@contextmanager
def _current_generator():
    """Yield this session's generator with its lock held, or None."""
    entry = _current_session()
    if entry is None:
        yield None
        return
    with entry.lock:
        yield entry.generator


def _no_session():
    return jsonify({"error": "no active dungeon; POST /api/dungeon/generate first"}), 404


def reset_sessions() -> None:
    with _generators_lock:
        _generators.clear()


@bp_explore.route("/api/dungeon/generate", methods=["POST"])
def generate_dungeon():
    """Start a new dungeon for this session.

    Body JSON (all optional): ``{"grid_size": <int>, "seed": <int|str>}``.
    Response: ``{"seed", "map", "exploration"}``.
    """
    data = request.get_json(silent=True) or {}
    try:
        grid_size = _coerce_grid_size(data.get("grid_size"))
        seed = _coerce_seed(data.get("seed"))
        settings = GenerationSettings()
        settings = replace(
            settings,
            grid_size=grid_size if grid_size is not None else settings.grid_size,
            seed=seed,
            apply_overrides=False,
        )
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    generator = IncrementalDungeonGenerator(settings)
    generator.generate_initial_dungeon()
    session[SESSION_KEY] = _store_generator(generator)
    log.info(event="dungeon_started", grid=settings.grid_size, seed=seed)
    payload = generator.to_dict()
    payload["seed"] = seed
    return jsonify(payload)


@bp_explore.route("/api/dungeon/map")
def dungeon_map():
    with _current_generator() as generator:
        if generator is None:
            return _no_session()
        return jsonify({"map": generator.current_map().to_dict()})


@bp_explore.route("/api/dungeon/exploration")
def exploration_state():
    with _current_generator() as generator:
        if generator is None:
            return _no_session()
        return jsonify({"exploration": generator.exploration_state.to_dict()})


@bp_explore.route("/api/dungeon/doors/<door_id>/open", methods=["POST"])
def open_door(door_id):
    """Open an element door and reveal what lies behind it.

    Response: ``{"door_id", "state", "point_state", "map", "exploration"}``.
    Unknown door ids return 404. Requests on one session run one at a time.
    """
    with _current_generator() as generator:
        if generator is None:
            return _no_session()
        found = generator.find_door(door_id)
        if found is None:
            return jsonify({"error": f"unknown door {door_id}"}), 404
        element, _index, point = found
        generator.open_door(door_id, point, element.id)
        payload = generator.to_dict()
        payload["door_id"] = door_id
        payload["state"] = generator.exploration_state.door_states[door_id].value
        # re-resolve: a rollback swaps element objects
        refreshed = generator.find_door(door_id)
        payload["point_state"] = refreshed[2].state.value if refreshed else None
    return jsonify(payload)


@bp_explore.route("/api/dungeon/consistency")
def door_consistency():
    with _current_generator() as generator:
        if generator is None:
            return _no_session()
        issues = [issue.to_dict() for issue in generator.validate_door_consistency()]
    return jsonify({"issues": issues})


@bp_explore.route("/api/dungeon/metrics")
def generation_metrics():
    with _current_generator() as generator:
        if generator is None:
            return _no_session()
        metrics = dict(generator.metrics)
    return jsonify({"metrics": metrics, "enabled": bool(metrics)})
