"""Minimal structured logging helper.

Emits one line per event, either ``key=value`` pairs or compact JSON, with a
timestamp and level. The generator logs lifecycle events through this
(dungeon initialised, generation choice, rollbacks, door opens) so they can
be grepped or shipped without configuring stdlib logging.

Usage:
    from delve.logging_utils import get_logger
    log = get_logger("delve.generator")
    log.info(event="door_opened", door="room-00-door-1")

Environment:
    DELVE_LOG_LEVEL  debug|info|warn|error (default info)
    DELVE_LOG_JSON   1/true/yes/on for JSON lines

Reserved keys: level, ts, logger.
"""

from __future__ import annotations

import json
import os
import sys
import time

LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}
CURRENT_LEVEL = LEVELS.get(os.getenv("DELVE_LOG_LEVEL", "info").lower(), 20)
JSON_MODE = os.getenv("DELVE_LOG_JSON", "0").lower() in ("1", "true", "yes", "on")


def configure(level: str | None = None, json_mode: bool | None = None) -> None:
    """Adjust level / output mode at runtime (CLI flags, tests)."""
    global CURRENT_LEVEL, JSON_MODE
    if level is not None:
        if level not in LEVELS:
            raise ValueError(f"unknown log level {level!r}; expected one of {sorted(LEVELS)}")
        CURRENT_LEVEL = LEVELS[level]
    if json_mode is not None:
        JSON_MODE = bool(json_mode)


def _format(level: str, **fields):
    if JSON_MODE:
        rec = {k: v for k, v in fields.items() if v is not None}
        rec["level"] = level
        rec["ts"] = int(time.time())
        return json.dumps(rec, separators=(",", ":"), default=str)
    parts = [f"level={level}", f"ts={int(time.time())}"]
    for k, v in fields.items():
        if v is None:
            continue
        if isinstance(v, (int, float)):
            parts.append(f"{k}={v}")
        else:
            s = str(v).replace(" ", "_")
            parts.append(f"{k}={s}")
    return " ".join(parts)


class _Logger:
    def __init__(self, name: str | None = None):
        self.name = name or "delve"

    def _log(self, lvl: str, **fields):
        if LEVELS[lvl] < CURRENT_LEVEL:
            return
        fields.setdefault("logger", self.name)
        print(_format(lvl, **fields), file=sys.stdout if lvl != "error" else sys.stderr)

    def debug(self, **fields):
        self._log("debug", **fields)

    def info(self, **fields):
        self._log("info", **fields)

    def warn(self, **fields):
        self._log("warn", **fields)

    def error(self, **fields):
        self._log("error", **fields)


_LOGGER_CACHE: dict[str, _Logger] = {}


def get_logger(name: str) -> _Logger:
    if name not in _LOGGER_CACHE:
        _LOGGER_CACHE[name] = _Logger(name)
    return _LOGGER_CACHE[name]


log = get_logger("delve")
