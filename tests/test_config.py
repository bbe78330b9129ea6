import pytest

from delve.dungeon.config import GenerationSettings


def test_defaults(monkeypatch):
    for key in ("DELVE_GRID_SIZE", "DELVE_SEED", "DELVE_ENABLE_GENERATION_METRICS"):
        monkeypatch.delenv(key, raising=False)
    s = GenerationSettings()
    assert s.grid_size == 30
    assert (s.min_rooms, s.max_rooms) == (6, 12)
    assert s.seed is None
    assert s.enable_metrics is True


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("DELVE_GRID_SIZE", "42")
    monkeypatch.setenv("DELVE_SEED", "1234")
    monkeypatch.setenv("DELVE_ALLOW_IRREGULAR_ROOMS", "off")
    s = GenerationSettings(grid_size=20)
    assert s.grid_size == 42
    assert s.seed == 1234
    assert s.allow_irregular_rooms is False


def test_pinned_settings_ignore_env(monkeypatch):
    monkeypatch.setenv("DELVE_GRID_SIZE", "42")
    s = GenerationSettings(grid_size=20, apply_overrides=False)
    assert s.grid_size == 20


def test_app_config_beats_env(monkeypatch, test_app):
    monkeypatch.setenv("DELVE_GRID_SIZE", "42")
    monkeypatch.setitem(test_app.config, "DELVE_GRID_SIZE", 55)
    with test_app.app_context():
        s = GenerationSettings()
    assert s.grid_size == 55


@pytest.mark.parametrize(
    "kwargs",
    [
        {"grid_size": 4},
        {"min_rooms": 5, "max_rooms": 2},
        {"room_spacing": -1},
        {"max_exits_per_room": 0},
    ],
)
def test_invalid_values_raise(kwargs):
    with pytest.raises(ValueError):
        GenerationSettings(apply_overrides=False, **kwargs)


def test_non_numeric_env_raises(monkeypatch):
    monkeypatch.setenv("DELVE_GRID_SIZE", "large")
    with pytest.raises(ValueError):
        GenerationSettings()
