import os
import sys

import pytest

# Ensure repository root importable early
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from delve import create_app  # noqa: E402
from delve.dungeon import GenerationSettings, IncrementalDungeonGenerator  # noqa: E402
from delve.dungeon import generator as generator_module  # noqa: E402
from delve.routes.explore_api import reset_sessions  # noqa: E402


@pytest.fixture(scope="session")
def test_app():
    app = create_app({"TESTING": True, "SECRET_KEY": "test-secret"})
    return app


@pytest.fixture()
def client(test_app):
    return test_app.test_client()


@pytest.fixture(autouse=True)
def _clear_generator_sessions():
    """Per-session generators live in a module-level cache; keep tests isolated."""
    reset_sessions()
    yield
    reset_sessions()


@pytest.fixture()
def make_generator():
    """Factory for generators that ignore DELVE_* environment overrides."""

    def _make(grid_size=30, seed=1, catalog=None, enable_metrics=True):
        settings = GenerationSettings(
            grid_size=grid_size, seed=seed, enable_metrics=enable_metrics, apply_overrides=False
        )
        return IncrementalDungeonGenerator(settings, catalog=catalog)

    return _make


@pytest.fixture()
def fixed_seeds(monkeypatch):
    """Pin connection point seeds to a zero clock so runs are reproducible."""
    real = generator_module.make_seed

    def _seed(cp, now_ms=None):
        return real(cp, now_ms=0)

    monkeypatch.setattr(generator_module, "make_seed", _seed)
    return _seed
